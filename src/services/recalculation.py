"""
Recalculation coordinator.

Start -> Computed -> Reconciled -> Committed, all inside one
transaction and under a per-deal lock:

1. Lock the deal, capture setter/closer org snapshots, resolve plans
2. Evaluate commission lines
3. Reconcile with existing rows: approved/paid/void rows are never
   touched; pending (and, by default, held) rows are replaced
   wholesale; a new line that collides with a protected row for the
   same person and rule is skipped and reported as a discrepancy
4. Commit once, or roll back everything

This is the only place in the engine that commits.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.models import (
    PROTECTED_STATUSES,
    ActivityAction,
    Commission,
    CommissionStatus,
    Deal,
)
from src.schemas.commission import Discrepancy
from src.services.commission import evaluate
from src.services.errors import ConcurrentRecalculation, NotFound
from src.services.locks import deal_locks
from src.services.org_snapshot import build_snapshot, walk_chain
from src.services.pay_plans import resolve_plans
from src.utils.activity import log_activity

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for FOR UPDATE NOWAIT on a locked row
LOCK_NOT_AVAILABLE = "55P03"


@dataclass
class RecalculationResult:
    """Outcome of one recalculation run."""

    deal_id: int
    commission_count: int
    commissions: list[Commission]
    discrepancies: list[Discrepancy] = field(default_factory=list)
    org_snapshot_ids: list[int] = field(default_factory=list)


def _is_lock_not_available(exc: DBAPIError) -> bool:
    code = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    return code == LOCK_NOT_AVAILABLE


async def _lock_deal(db: AsyncSession, deal_id: int, wait: bool) -> Deal:
    try:
        result = await db.execute(
            select(Deal)
            .where(Deal.id == deal_id)
            .with_for_update(nowait=not wait)
        )
    except DBAPIError as exc:
        if _is_lock_not_available(exc):
            raise ConcurrentRecalculation(deal_id) from exc
        raise

    deal = result.scalar_one_or_none()
    if deal is None:
        raise NotFound("deal", deal_id)
    return deal


def _replaceable(row: Commission) -> bool:
    if row.status in PROTECTED_STATUSES:
        return False
    if row.status == CommissionStatus.HELD and not settings.recalc_replace_held:
        return False
    return True


async def _reconcile(
    db: AsyncSession,
    deal: Deal,
    lines: list[Commission],
    actor_id: Optional[int],
) -> tuple[list[Commission], list[Discrepancy]]:
    result = await db.execute(
        select(Commission)
        .where(Commission.deal_id == deal.id)
        .order_by(Commission.id)
    )
    existing = result.scalars().all()

    protected: dict[tuple, Commission] = {}
    for row in existing:
        if _replaceable(row):
            continue
        # Compare new lines against a live protected row over a void one
        current = protected.get(row.payout_key)
        if current is None or current.status == CommissionStatus.VOID:
            protected[row.payout_key] = row

    for row in existing:
        if not _replaceable(row):
            continue
        await db.delete(row)
        await db.flush()
        await log_activity(
            db,
            entity_type="commission",
            entity_id=row.id,
            action=ActivityAction.VOIDED,
            details={
                "deal_id": deal.id,
                "person_id": row.person_id,
                "commission_type": row.commission_type,
                "amount": str(row.amount),
                "status": row.status.value,
                "reason": "superseded by recalculation",
            },
            actor_id=actor_id,
        )

    written: list[Commission] = []
    discrepancies: list[Discrepancy] = []
    for line in lines:
        guard = protected.get(line.payout_key)
        if guard is None:
            db.add(line)
            written.append(line)
            continue

        changed = guard.amount != line.amount
        if guard.status == CommissionStatus.VOID:
            note = (
                f"Commission {guard.id} is void at ${guard.amount}; "
                f"recalculated ${line.amount} was not re-issued"
            )
        elif changed:
            note = (
                f"Commission {guard.id} is {guard.status.value} at ${guard.amount}; "
                f"recalculated ${line.amount} was not written"
            )
        else:
            note = (
                f"Commission {guard.id} is already {guard.status.value} at ${guard.amount}; "
                f"recalculated line matches and was not duplicated"
            )
        discrepancy = Discrepancy(
            person_id=line.person_id,
            commission_rule_id=line.commission_rule_id,
            commission_type=line.commission_type,
            protected_commission_id=guard.id,
            protected_status=guard.status,
            protected_amount=guard.amount,
            computed_amount=line.amount,
            amount_changed=changed,
            note=note,
        )
        discrepancies.append(discrepancy)
        if changed or guard.status == CommissionStatus.VOID:
            logger.warning(f"Deal {deal.id}: {note}")
        else:
            logger.info(f"Deal {deal.id}: {note}")
        await log_activity(
            db,
            entity_type="commission",
            entity_id=guard.id,
            action=ActivityAction.DISCREPANCY_DETECTED,
            details=discrepancy.model_dump(mode="json"),
            actor_id=actor_id,
        )

    await db.flush()
    for line in written:
        await log_activity(
            db,
            entity_type="commission",
            entity_id=line.id,
            action=ActivityAction.CREATED,
            details={
                "deal_id": deal.id,
                "person_id": line.person_id,
                "commission_type": line.commission_type,
                "amount": str(line.amount),
                "commission_rule_id": line.commission_rule_id,
                "org_snapshot_id": line.calc_details.get("org_snapshot_id"),
            },
            actor_id=actor_id,
        )

    return written, discrepancies


async def _run(
    db: AsyncSession,
    deal_id: int,
    actor_id: Optional[int],
    wait: bool,
    today: Optional[date],
) -> tuple[int, list[Discrepancy], list[int]]:
    # Start
    deal = await _lock_deal(db, deal_id, wait)
    as_of = deal.calculation_date(today)

    # Both chains are walked before either snapshot is written.
    # One snapshot only when one person both set and closed.
    same_person = deal.setter_id == deal.closer_id
    setter_chain = await walk_chain(db, deal.setter_id)
    closer_chain = setter_chain if same_person else await walk_chain(db, deal.closer_id)

    setter_snapshot = await build_snapshot(db, deal.setter_id, as_of, chain=setter_chain)
    if same_person:
        closer_snapshot = setter_snapshot
    else:
        closer_snapshot = await build_snapshot(db, deal.closer_id, as_of, chain=closer_chain)

    people = [entry["person_id"] for entry in setter_chain + closer_chain]
    plans = await resolve_plans(db, people, as_of)

    # Computed
    lines = evaluate(deal, {"setter": setter_snapshot, "closer": closer_snapshot}, plans)

    # Reconciled
    written, discrepancies = await _reconcile(db, deal, lines, actor_id)

    snapshot_ids = sorted({setter_snapshot.id, closer_snapshot.id})
    return len(written), discrepancies, snapshot_ids


async def recalculate(
    db: AsyncSession,
    deal_id: int,
    *,
    actor_id: Optional[int] = None,
    wait: Optional[bool] = None,
    today: Optional[date] = None,
) -> RecalculationResult:
    """
    Recompute and persist every commission for a deal.

    Args:
        db: Database session with no transaction in progress
        deal_id: Deal to recalculate
        actor_id: Person triggering the run, recorded in the activity log
        wait: Queue behind an in-flight run of the same deal (default
            from settings.recalc_lock_mode) instead of failing fast
        today: Fallback calculation date for deals without close/sale dates

    Returns:
        RecalculationResult with the rows written and the full post-run
        commission list for the deal

    Raises:
        NotFound, AmbiguousAssignment, CyclicHierarchy,
        UnrecognizedCalcMethod, ConcurrentRecalculation
    """
    if wait is None:
        wait = settings.recalc_lock_mode == "wait"

    logger.info(f"Recalculating commissions for deal {deal_id}")

    async with deal_locks.hold(deal_id, wait=wait):
        try:
            count, discrepancies, snapshot_ids = await _run(db, deal_id, actor_id, wait, today)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    result = await db.execute(
        select(Commission)
        .where(Commission.deal_id == deal_id)
        .order_by(Commission.id)
    )
    commissions = list(result.scalars().all())

    logger.info(
        f"Deal {deal_id} recalculated: {count} written, {len(commissions)} total, "
        f"{len(discrepancies)} discrepancies"
    )
    return RecalculationResult(
        deal_id=deal_id,
        commission_count=count,
        commissions=commissions,
        discrepancies=discrepancies,
        org_snapshot_ids=snapshot_ids,
    )
