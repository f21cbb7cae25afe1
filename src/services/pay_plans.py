"""
Pay plan resolution and assignment.

An assignment covers [effective_date, end_date) with end_date NULL
meaning "current". assign_pay_plan keeps ranges for one person from
overlapping at write time, which lets resolve_active_plan treat more
than one hit as corrupt data instead of guessing.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.models import ActivityAction, PayPlan, Person, PersonPayPlanAssignment
from src.services.errors import (
    AmbiguousAssignment,
    InvalidAssignment,
    NotFound,
    OverlappingAssignment,
)
from src.utils.activity import log_activity

logger = logging.getLogger(__name__)


async def resolve_active_plan(
    db: AsyncSession,
    person_id: int,
    as_of: date,
) -> Optional[PayPlan]:
    """
    Find the pay plan a person was on for a given date.

    Returns:
        PayPlan with its rules loaded, or None if the person had no
        assignment on that date (not an error, e.g. a new hire
        awaiting a plan)

    Raises:
        AmbiguousAssignment: more than one assignment covers the date
    """
    result = await db.execute(
        select(PersonPayPlanAssignment)
        .where(
            and_(
                PersonPayPlanAssignment.person_id == person_id,
                PersonPayPlanAssignment.effective_date <= as_of,
                or_(
                    PersonPayPlanAssignment.end_date.is_(None),
                    PersonPayPlanAssignment.end_date > as_of,
                ),
            )
        )
        .order_by(PersonPayPlanAssignment.id)
    )
    assignments = result.scalars().all()

    if not assignments:
        logger.debug(f"Person {person_id} has no pay plan on {as_of}")
        return None

    if len(assignments) > 1:
        raise AmbiguousAssignment(person_id, as_of, [a.id for a in assignments])

    plan_result = await db.execute(
        select(PayPlan)
        .options(selectinload(PayPlan.rules))
        .where(PayPlan.id == assignments[0].pay_plan_id)
    )
    plan = plan_result.scalar_one_or_none()
    if plan is None:
        raise NotFound("pay plan", assignments[0].pay_plan_id)
    return plan


async def resolve_plans(
    db: AsyncSession,
    person_ids: Iterable[int],
    as_of: date,
) -> dict[int, Optional[PayPlan]]:
    """Resolve each distinct person once, in ascending id order."""
    plans: dict[int, Optional[PayPlan]] = {}
    for person_id in sorted(set(person_ids)):
        plans[person_id] = await resolve_active_plan(db, person_id, as_of)
    return plans


async def assign_pay_plan(
    db: AsyncSession,
    person_id: int,
    pay_plan_id: int,
    effective_date: date,
    end_date: Optional[date] = None,
    notes: Optional[str] = None,
    actor_id: Optional[int] = None,
) -> PersonPayPlanAssignment:
    """
    Put a person on a pay plan from effective_date.

    An open-ended assignment that started earlier is closed at
    effective_date (the usual "change pay plan" flow). Any overlap
    that remains after that is rejected.

    Does not commit; the caller owns the transaction.

    Raises:
        NotFound: person or pay plan missing
        InvalidAssignment: inactive plan or empty date range
        OverlappingAssignment: range collides with another assignment
    """
    if end_date is not None and end_date <= effective_date:
        raise InvalidAssignment("end_date must be after effective_date", person_id=person_id)

    person = await db.get(Person, person_id)
    if person is None:
        raise NotFound("person", person_id)

    plan = await db.get(PayPlan, pay_plan_id)
    if plan is None:
        raise NotFound("pay plan", pay_plan_id)
    if not plan.is_active:
        raise InvalidAssignment(
            f"Cannot assign inactive pay plan {pay_plan_id} to a person",
            person_id=person_id,
        )

    result = await db.execute(
        select(PersonPayPlanAssignment)
        .where(PersonPayPlanAssignment.person_id == person_id)
        .order_by(PersonPayPlanAssignment.effective_date, PersonPayPlanAssignment.id)
        .with_for_update()
    )
    existing = result.scalars().all()

    closed: list[int] = []
    for assignment in existing:
        if assignment.end_date is None and assignment.effective_date < effective_date:
            assignment.end_date = effective_date
            closed.append(assignment.id)

    conflicts = [a.id for a in existing if a.overlaps(effective_date, end_date)]
    if conflicts:
        raise OverlappingAssignment(person_id, conflicts)

    assignment = PersonPayPlanAssignment(
        person_id=person_id,
        pay_plan_id=pay_plan_id,
        effective_date=effective_date,
        end_date=end_date,
        notes=notes,
    )
    db.add(assignment)
    await db.flush()

    await log_activity(
        db,
        entity_type="person",
        entity_id=person_id,
        action=ActivityAction.PAY_PLAN_ASSIGNED,
        details={
            "assignment_id": assignment.id,
            "pay_plan_id": pay_plan_id,
            "effective_date": effective_date.isoformat(),
            "end_date": end_date.isoformat() if end_date else None,
            "closed_assignment_ids": closed,
        },
        actor_id=actor_id,
    )

    logger.info(
        f"Person {person_id} assigned to pay plan {pay_plan_id} from {effective_date}"
        + (f" (closed {closed})" if closed else "")
    )
    return assignment
