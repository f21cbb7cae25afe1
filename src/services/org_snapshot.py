"""
Org snapshot builder.

Materialises a person's chain of command (person, manager, manager's
manager, ...) as an immutable OrgSnapshot row so a disputed paycheck
can be traced back to exactly who was in the chain when it was run.
"""

import logging
from datetime import date
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.models import OrgSnapshot, Person
from src.services.errors import CyclicHierarchy, NotFound

logger = logging.getLogger(__name__)


async def walk_chain(
    db: AsyncSession,
    root_person_id: int,
    max_depth: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    Walk reports_to_id upward from the root person.

    Pure read. Iterative with a visited set and a hard depth cap;
    the hierarchy is untrusted data, so a revisit or an overly deep
    chain is an error rather than a truncated result.

    Returns:
        Chain entries, level 0 first
    """
    if max_depth is None:
        max_depth = settings.org_max_depth

    chain: list[dict[str, Any]] = []
    visited: set[int] = set()
    path: list[int] = []
    current_id: Optional[int] = root_person_id
    level = 0

    while current_id is not None:
        if current_id in visited:
            raise CyclicHierarchy(root_person_id, path + [current_id], "person appears twice")
        if level > max_depth:
            raise CyclicHierarchy(root_person_id, path, f"deeper than {max_depth} levels")

        person = await db.get(Person, current_id)
        if person is None:
            raise NotFound("person", current_id)

        visited.add(current_id)
        path.append(current_id)
        chain.append({
            "person_id": person.id,
            "level": level,
            "role_id": person.role_id,
            "reports_to_id": person.reports_to_id,
            "setter_tier": person.setter_tier,
        })

        current_id = person.reports_to_id
        level += 1

    return chain


async def build_snapshot(
    db: AsyncSession,
    root_person_id: int,
    as_of: date,
    max_depth: Optional[int] = None,
    chain: Optional[list[dict[str, Any]]] = None,
) -> OrgSnapshot:
    """
    Capture and persist the reporting chain of a person.

    The whole chain is walked before anything is written, so a
    cyclic hierarchy never leaves a row behind. The snapshot is
    flushed immediately to obtain its id; committing is left to the
    caller's transaction. Snapshots are never reused across runs.

    Args:
        db: Database session
        root_person_id: Person whose chain is captured
        as_of: Calculation date the snapshot stands for
        max_depth: Override for settings.org_max_depth
        chain: Chain already produced by walk_chain for this person

    Returns:
        The flushed OrgSnapshot
    """
    if chain is None:
        chain = await walk_chain(db, root_person_id, max_depth=max_depth)

    snapshot = OrgSnapshot(
        root_person_id=root_person_id,
        snapshot_date=as_of,
        chain=chain,
    )
    db.add(snapshot)
    await db.flush()

    logger.debug(
        f"Org snapshot {snapshot.id} for person {root_person_id} as of {as_of}: "
        f"{[entry['person_id'] for entry in chain]}"
    )
    return snapshot
