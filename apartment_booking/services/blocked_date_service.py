import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from apartment_booking.core.locks import OccupancyLocks
from apartment_booking.domain.errors import NotFoundError
from apartment_booking.domain.interval import Interval
from apartment_booking.models import BlockedDate, User
from apartment_booking.schemas.blocked_date import BlockedDateCreate
from apartment_booking.services.apartment_service import ApartmentService
from apartment_booking.services.availability_engine import AvailabilityEngine
from apartment_booking.services.occupancy import BlockedDateSource

logger = logging.getLogger(__name__)


class BlockedDateService:
    """Admin blocks, apartment-scoped or global (apartment_id None)."""

    @staticmethod
    async def get_all_blocked_dates(db: AsyncSession) -> List[BlockedDate]:
        result = await db.execute(
            select(BlockedDate).order_by(BlockedDate.start_date, BlockedDate.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def create_blocked_date(
        db: AsyncSession, locks: OccupancyLocks, admin: User, data: BlockedDateCreate
    ) -> BlockedDate:
        """
        An apartment-scoped block is checked against that apartment's
        occupancy; a global block against every apartment's.
        """
        if data.apartment_id is not None:
            await ApartmentService.require_apartment(db, data.apartment_id)

        interval = Interval(data.start_date, data.end_date)

        async with locks.hold(data.apartment_id):
            engine = AvailabilityEngine.for_session(db)
            await engine.ensure_available(data.apartment_id, interval)

            blocked = BlockedDate(
                start_date=interval.start,
                end_date=interval.end,
                reason=data.reason,
                apartment_id=data.apartment_id,
                created_by=admin.id,
            )
            db.add(blocked)
            await db.commit()
            await db.refresh(blocked)

        logger.info(
            "Blocked %s - %s for %s (%s)",
            blocked.start_date,
            blocked.end_date,
            f"apartment {blocked.apartment_id}" if blocked.apartment_id else "all apartments",
            blocked.reason,
        )
        return blocked

    @staticmethod
    async def delete_blocked_date(db: AsyncSession, blocked_id: int) -> None:
        blocked = await db.get(BlockedDate, blocked_id)
        if blocked is None:
            raise NotFoundError("Blocked date not found")
        await db.delete(blocked)
        await db.commit()
        logger.info("Blocked date #%s removed", blocked_id)

    @staticmethod
    async def find_blocking(
        db: AsyncSession, apartment_id: int, interval: Interval
    ) -> Optional[BlockedDate]:
        """First blocked date (apartment-scoped or global) overlapping interval."""
        occupancies = await BlockedDateSource(db).occupied(apartment_id, window=interval)
        if not occupancies:
            return None
        return await db.get(BlockedDate, occupancies[0].record_id)
