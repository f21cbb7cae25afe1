"""Pay plan administration endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import Permission, require_permission
from src.db import get_db
from src.models import CommissionRule, PayPlan
from src.schemas.auth import TokenPayload
from src.schemas.pay_plan import (
    CommissionRuleCreate,
    CommissionRuleResponse,
    PayPlanAssignmentResponse,
    PayPlanAssignRequest,
)
from src.services.errors import NotFound
from src.services.pay_plans import assign_pay_plan

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pay Plans"])


@router.post(
    "/people/{person_id}/pay-plan",
    response_model=PayPlanAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_person_pay_plan(
    person_id: int,
    data: PayPlanAssignRequest,
    db: AsyncSession = Depends(get_db),
    actor: TokenPayload = Depends(require_permission(Permission.MANAGE_PAY_PLANS)),
):
    """
    Move a person onto a pay plan.

    A current open-ended assignment is closed at the new effective
    date; any other overlap is rejected with 409.
    """
    assignment = await assign_pay_plan(
        db,
        person_id=person_id,
        pay_plan_id=data.pay_plan_id,
        effective_date=data.effective_date,
        end_date=data.end_date,
        notes=data.notes,
        actor_id=actor.person_id,
    )
    await db.commit()
    await db.refresh(assignment)

    return PayPlanAssignmentResponse.model_validate(assignment)


@router.post(
    "/pay-plans/{pay_plan_id}/rules",
    response_model=CommissionRuleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_commission_rule(
    pay_plan_id: int,
    data: CommissionRuleCreate,
    db: AsyncSession = Depends(get_db),
    actor: TokenPayload = Depends(require_permission(Permission.MANAGE_PAY_PLANS)),
):
    """Add a rule to a pay plan. It takes effect on the next recalculation."""
    plan = await db.get(PayPlan, pay_plan_id)
    if plan is None:
        raise NotFound("pay plan", pay_plan_id)

    values = data.model_dump(exclude={"conditions"})
    if data.conditions is not None:
        # JSON column: thresholds are stored as strings, like calc_details
        values["conditions"] = data.conditions.model_dump(mode="json", exclude_none=True) or None
    rule = CommissionRule(pay_plan_id=pay_plan_id, **values)
    db.add(rule)
    await db.commit()
    await db.refresh(rule)

    logger.info(f"Rule {rule.id} ({rule.rule_type.value}/{rule.calc_method}) added to pay plan {pay_plan_id}")
    return CommissionRuleResponse.model_validate(rule)
