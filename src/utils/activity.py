"""
Activity log utilities.

Every commission write is mirrored into the append-only activity log.
The log is fire-and-forget from the engine's point of view: a failed
insert is logged and must never abort the calculation.
"""

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.activity import ActivityAction, ActivityLog

logger = logging.getLogger(__name__)


async def log_activity(
    db: AsyncSession,
    entity_type: str,
    entity_id: int,
    action: ActivityAction,
    details: Optional[dict[str, Any]] = None,
    actor_id: Optional[int] = None,
) -> Optional[ActivityLog]:
    """
    Append an activity entry.

    The insert runs in a SAVEPOINT so a failure rolls back only the
    log entry, leaving the caller's transaction usable.

    Args:
        db: Database session
        entity_type: Type of entity affected (e.g., "commission")
        entity_id: ID of the affected entity
        action: What happened
        details: Additional JSON context
        actor_id: Person who triggered the write; None for system runs

    Returns:
        Created ActivityLog entry, or None if the write failed
    """
    entry = ActivityLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        details=details,
        actor_id=actor_id,
        actor_type="user" if actor_id is not None else "system",
    )
    # Caller's pending rows flush outside the savepoint
    await db.flush()
    try:
        async with db.begin_nested():
            db.add(entry)
    except SQLAlchemyError:
        logger.warning(
            f"Activity log write failed for {entity_type}#{entity_id} ({action.value})",
            exc_info=True,
        )
        return None
    # Note: commit should happen in the calling context
    return entry
