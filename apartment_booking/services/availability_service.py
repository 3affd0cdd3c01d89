import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from apartment_booking.core.locks import OccupancyLocks
from apartment_booking.domain.errors import NotFoundError, PermissionDeniedError
from apartment_booking.domain.interval import Interval
from apartment_booking.models import AvailabilityBlock, User
from apartment_booking.schemas.availability import (
    AvailabilityBlockCreate,
    AvailabilityBlockUpdate,
)
from apartment_booking.services.apartment_service import ApartmentService, can_manage
from apartment_booking.services.availability_engine import AvailabilityEngine
from apartment_booking.services.occupancy import OccupancyKind

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Owner/admin managed unavailable periods of a single apartment."""

    @staticmethod
    async def get_apartment_blocks(
        db: AsyncSession, apartment_id: int, window: Optional[Interval] = None
    ) -> List[AvailabilityBlock]:
        stmt = select(AvailabilityBlock).where(
            AvailabilityBlock.apartment_id == apartment_id,
            AvailabilityBlock.is_available.is_(False),
        )
        if window is not None:
            stmt = stmt.where(
                AvailabilityBlock.start_date < window.end,
                AvailabilityBlock.end_date > window.start,
            )
        result = await db.execute(stmt.order_by(AvailabilityBlock.start_date))
        return list(result.scalars().all())

    @staticmethod
    async def get_all_blocks(db: AsyncSession) -> List[AvailabilityBlock]:
        stmt = (
            select(AvailabilityBlock)
            .where(AvailabilityBlock.is_available.is_(False))
            .order_by(AvailabilityBlock.start_date)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def block_dates(
        db: AsyncSession, locks: OccupancyLocks, user: User, data: AvailabilityBlockCreate
    ) -> AvailabilityBlock:
        """
        Block a period for one apartment.

        Checked against bookings and blocked dates too, not only other
        blocks: an owner cannot block days a guest already holds.
        """
        apartment = await ApartmentService.require_apartment(db, data.apartment_id)
        if not can_manage(apartment, user):
            raise PermissionDeniedError("Not authorized to block dates for this apartment")

        interval = Interval(data.start_date, data.end_date)

        async with locks.hold(apartment.id):
            engine = AvailabilityEngine.for_session(db)
            await engine.ensure_available(apartment.id, interval)

            block = AvailabilityBlock(
                apartment_id=apartment.id,
                start_date=interval.start,
                end_date=interval.end,
                is_available=False,
                reason=data.reason,
                notes=data.notes,
                created_by=user.id,
            )
            db.add(block)
            await db.commit()
            await db.refresh(block)

        logger.info(
            "Apartment %s blocked %s - %s (%s) by user %s",
            apartment.id,
            block.start_date,
            block.end_date,
            block.reason.value,
            user.id,
        )
        return block

    @staticmethod
    async def _require_managed_block(
        db: AsyncSession, block_id: int, user: User
    ) -> AvailabilityBlock:
        block = await db.get(AvailabilityBlock, block_id)
        if block is None:
            raise NotFoundError("Availability period not found")
        apartment = await ApartmentService.require_apartment(db, block.apartment_id)
        if not can_manage(apartment, user) and block.created_by != user.id:
            raise PermissionDeniedError("Not authorized to manage this availability period")
        return block

    @staticmethod
    async def update_block(
        db: AsyncSession,
        locks: OccupancyLocks,
        block_id: int,
        user: User,
        data: AvailabilityBlockUpdate,
    ) -> AvailabilityBlock:
        block = await AvailabilityService._require_managed_block(db, block_id, user)

        interval = Interval(data.start_date or block.start_date, data.end_date or block.end_date)

        async with locks.hold(block.apartment_id):
            if interval != Interval(block.start_date, block.end_date):
                engine = AvailabilityEngine.for_session(db)
                await engine.ensure_available(
                    block.apartment_id,
                    interval,
                    exclude=(OccupancyKind.AVAILABILITY_BLOCK, block.id),
                )

            block.start_date = interval.start
            block.end_date = interval.end
            if data.reason is not None:
                block.reason = data.reason
            if "notes" in data.model_fields_set:
                block.notes = data.notes
            await db.commit()
            await db.refresh(block)

        return block

    @staticmethod
    async def unblock_dates(db: AsyncSession, block_id: int, user: User) -> None:
        block = await AvailabilityService._require_managed_block(db, block_id, user)
        await db.delete(block)
        await db.commit()
        logger.info("Availability period #%s removed by user %s", block_id, user.id)
