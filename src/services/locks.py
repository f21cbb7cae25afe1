"""
Per-deal recalculation locks.

The database row lock (SELECT ... FOR UPDATE on the deal) serialises
workers across processes on PostgreSQL. This registry does the same
inside one process, which also covers SQLite where FOR UPDATE is a
no-op.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from src.services.errors import ConcurrentRecalculation

logger = logging.getLogger(__name__)


class DealLockRegistry:
    """asyncio.Lock per deal id, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    def is_locked(self, deal_id: int) -> bool:
        lock = self._locks.get(deal_id)
        return lock is not None and lock.locked()

    def in_flight(self) -> list[int]:
        """Deal ids with a recalculation currently running."""
        return sorted(deal_id for deal_id, lock in self._locks.items() if lock.locked())

    @asynccontextmanager
    async def hold(self, deal_id: int, wait: bool = True) -> AsyncIterator[None]:
        """
        Hold the lock for a deal.

        With wait=False a held lock raises ConcurrentRecalculation
        instead of queueing behind it.
        """
        if not wait and self.is_locked(deal_id):
            raise ConcurrentRecalculation(deal_id)

        lock = self._locks.setdefault(deal_id, asyncio.Lock())
        self._users[deal_id] = self._users.get(deal_id, 0) + 1
        try:
            if lock.locked():
                logger.info(f"Deal {deal_id} recalculation waiting for in-flight run")
            async with lock:
                yield
        finally:
            self._users[deal_id] -= 1
            if self._users[deal_id] == 0:
                del self._users[deal_id]
                del self._locks[deal_id]


deal_locks = DealLockRegistry()
