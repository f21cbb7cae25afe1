"""
Seed a small demo org for Payline.

Usage:
    python scripts/seed_demo_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_demo_data.py

This script creates:
- Roles: Sales Rep, Team Lead, Regional Manager
- A three-level chain: rep -> team lead -> regional manager
- A "Standard Solar" pay plan with a 10% base rule for reps and a
  2% level-1 setter override for team leads
- One $100,000 self-gen solar deal, then recalculates it
"""

import asyncio
import os
import sys
from datetime import date
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.db import get_db_context
from src.models import (
    CalcMethod,
    CommissionRule,
    Deal,
    DealType,
    OverrideSource,
    PayPlan,
    Person,
    PersonPayPlanAssignment,
    Role,
    RuleType,
)
from src.services.recalculation import recalculate

PLAN_START = date(2024, 1, 1)


async def seed_org(db) -> dict:
    rep_role = Role(name="Sales Rep")
    lead_role = Role(name="Team Lead")
    regional_role = Role(name="Regional Manager")
    db.add_all([rep_role, lead_role, regional_role])
    await db.flush()

    regional = Person(first_name="Morgan", last_name="Reyes", role_id=regional_role.id)
    db.add(regional)
    await db.flush()

    lead = Person(first_name="Jordan", last_name="Kim", role_id=lead_role.id, reports_to_id=regional.id)
    db.add(lead)
    await db.flush()

    rep = Person(first_name="Sam", last_name="Ortiz", role_id=rep_role.id, reports_to_id=lead.id,
                 setter_tier="Veteran")
    db.add(rep)
    await db.flush()

    print(f"Created chain: {rep.full_name} -> {lead.full_name} -> {regional.full_name}")
    return {"rep": rep, "lead": lead, "regional": regional, "rep_role": rep_role, "lead_role": lead_role}


async def seed_plan(db, org: dict) -> PayPlan:
    plan = PayPlan(name="Standard Solar", description="Demo plan")
    db.add(plan)
    await db.flush()

    db.add_all([
        CommissionRule(
            pay_plan_id=plan.id,
            name="Rep base 10%",
            rule_type=RuleType.BASE,
            calc_method=CalcMethod.PERCENT_OF_DEAL_VALUE.value,
            amount=Decimal("10"),
            applies_to_role_id=org["rep_role"].id,
            deal_types=["solar"],
        ),
        CommissionRule(
            pay_plan_id=plan.id,
            name="Team lead L1 setter override 2%",
            rule_type=RuleType.OVERRIDE,
            calc_method=CalcMethod.PERCENT_OF_DEAL_VALUE.value,
            amount=Decimal("2"),
            applies_to_role_id=org["lead_role"].id,
            override_level=1,
            override_source=OverrideSource.SETTER,
        ),
    ])

    for key in ("rep", "lead", "regional"):
        db.add(PersonPayPlanAssignment(
            person_id=org[key].id,
            pay_plan_id=plan.id,
            effective_date=PLAN_START,
        ))
    await db.flush()

    print(f"Created pay plan #{plan.id} ({plan.name}) and assigned it to the chain")
    return plan


async def seed_all():
    """Seed the demo org and run one recalculation."""
    async with get_db_context() as db:
        print("\n=== Creating demo data ===\n")
        org = await seed_org(db)
        await seed_plan(db, org)

        deal = Deal(
            setter_id=org["rep"].id,
            closer_id=org["rep"].id,
            is_self_gen=True,
            deal_type=DealType.SOLAR.value,
            deal_value=Decimal("100000.00"),
            system_size_kw=Decimal("8.4"),
            ppw=Decimal("3.15"),
            sale_date=date(2024, 5, 20),
            close_date=date(2024, 6, 1),
        )
        db.add(deal)
        await db.commit()
        print(f"Created deal #{deal.id}")

        result = await recalculate(db, deal.id)

    print("\n" + "=" * 50)
    print(f"Deal #{result.deal_id}: {result.commission_count} commissions")
    print("=" * 50)
    for commission in result.commissions:
        print(f"  person {commission.person_id:>4}  {commission.commission_type:<22} ${commission.amount}")


if __name__ == "__main__":
    asyncio.run(seed_all())
