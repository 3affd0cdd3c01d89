"""
In-process serialization of occupancy writes.

A booking, availability block or blocked date is written in two steps:
conflict check, then insert. Without a lock two requests for the same
apartment can both pass the check before either commits. OccupancyLocks
closes that gap inside one worker process:

- apartment-scoped writes hold a per-apartment lock, so different
  apartments proceed in parallel;
- a fleet-wide write (global blocked date, apartment_id=None) waits until
  no apartment writer is active and keeps new ones out until it finishes.

The guarantee is per process. Running several workers against one
database needs an exclusion constraint in the database as well.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

logger = logging.getLogger(__name__)


class OccupancyLocks:
    def __init__(self) -> None:
        self._apartment_locks: dict[int, asyncio.Lock] = {}
        self._state = asyncio.Condition()
        self._apartment_writers = 0
        self._fleet_writer = False
        # Queued fleet writers; apartment writers arriving later wait behind them
        self._fleet_waiting = 0

    def _lock_for(self, apartment_id: int) -> asyncio.Lock:
        lock = self._apartment_locks.get(apartment_id)
        if lock is None:
            lock = self._apartment_locks[apartment_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, apartment_id: Optional[int]) -> AsyncIterator[None]:
        if apartment_id is None:
            async with self._hold_fleet():
                yield
            return

        async with self._state:
            await self._state.wait_for(
                lambda: not self._fleet_writer and self._fleet_waiting == 0
            )
            self._apartment_writers += 1
        try:
            async with self._lock_for(apartment_id):
                yield
        finally:
            async with self._state:
                self._apartment_writers -= 1
                self._state.notify_all()

    @asynccontextmanager
    async def _hold_fleet(self) -> AsyncIterator[None]:
        async with self._state:
            self._fleet_waiting += 1
            try:
                await self._state.wait_for(
                    lambda: not self._fleet_writer and self._apartment_writers == 0
                )
            finally:
                self._fleet_waiting -= 1
                self._state.notify_all()
            self._fleet_writer = True
        logger.debug("Fleet-wide occupancy lock acquired")
        try:
            yield
        finally:
            async with self._state:
                self._fleet_writer = False
                self._state.notify_all()


occupancy_locks = OccupancyLocks()


def get_occupancy_locks() -> OccupancyLocks:
    """FastAPI dependency; overridden in tests with a fresh instance."""
    return occupancy_locks
