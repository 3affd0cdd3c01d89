import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from apartment_booking.core.locks import OccupancyLocks
from apartment_booking.domain.errors import NotFoundError, PermissionDeniedError
from apartment_booking.domain.interval import Interval
from apartment_booking.models import (
    OCCUPYING_STATUSES,
    Booking,
    BookingStatus,
    PaymentStatus,
    User,
)
from apartment_booking.schemas.booking import BookingCreate
from apartment_booking.services.apartment_service import ApartmentService, can_manage
from apartment_booking.services.availability_engine import AvailabilityEngine
from apartment_booking.services.occupancy import OccupancyKind

logger = logging.getLogger(__name__)


class BookingService:
    """Booking lifecycle; every transition into an occupying status is conflict-checked."""

    @staticmethod
    async def create_booking(
        db: AsyncSession, locks: OccupancyLocks, user: User, data: BookingCreate
    ) -> Booking:
        """
        Create a booking after checking all occupancy sources.

        The check and the insert run under the apartment's occupancy lock, so
        two overlapping requests cannot both pass the check.
        """
        apartment = await ApartmentService.require_apartment(db, data.apartment_id)
        interval = Interval(data.start_date, data.end_date)

        total_price = data.total_price
        if not total_price:
            total_price = Decimal(apartment.price_per_night) * interval.nights

        paid = data.payment_status == PaymentStatus.COMPLETED
        now = datetime.now(timezone.utc)

        async with locks.hold(apartment.id):
            engine = AvailabilityEngine.for_session(db)
            await engine.ensure_available(apartment.id, interval)

            booking = Booking(
                apartment_id=apartment.id,
                user_id=user.id,
                start_date=interval.start,
                end_date=interval.end,
                total_price=total_price,
                payment_method=data.payment_method,
                payment_status=data.payment_status,
                payment_id=data.payment_id,
                notes=data.notes,
                status=BookingStatus.CONFIRMED if paid else BookingStatus.PENDING,
                confirmed_at=now if paid else None,
                payment_date=now if paid else None,
            )
            db.add(booking)
            await db.commit()
            await db.refresh(booking)

        logger.info(
            "Booking #%s created for apartment %s (%s - %s, %s)",
            booking.id,
            apartment.id,
            booking.start_date,
            booking.end_date,
            booking.status.value,
        )
        return booking

    @staticmethod
    async def get_user_bookings(db: AsyncSession, user: User) -> List[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.user_id == user.id)
            .order_by(Booking.start_date, Booking.id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def require_booking(db: AsyncSession, booking_id: int) -> Booking:
        booking = await db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    async def confirm_booking(
        db: AsyncSession, locks: OccupancyLocks, booking_id: int, user: User
    ) -> Booking:
        """Only the apartment owner or an admin can confirm."""
        booking = await BookingService.require_booking(db, booking_id)
        apartment = await ApartmentService.require_apartment(db, booking.apartment_id)
        if not can_manage(apartment, user):
            raise PermissionDeniedError("Not authorized to confirm this booking")

        async with locks.hold(apartment.id):
            if booking.status not in OCCUPYING_STATUSES:
                # The booking is not holding its days right now; they may
                # have been taken since.
                engine = AvailabilityEngine.for_session(db)
                await engine.ensure_available(
                    apartment.id,
                    Interval(booking.start_date, booking.end_date),
                    exclude=(OccupancyKind.BOOKING, booking.id),
                )

            booking.status = BookingStatus.CONFIRMED
            booking.confirmed_at = datetime.now(timezone.utc)
            booking.cancelled_at = None
            booking.cancellation_reason = None
            await db.commit()
            await db.refresh(booking)

        logger.info("Booking #%s confirmed by user %s", booking.id, user.id)
        return booking

    @staticmethod
    async def cancel_booking(
        db: AsyncSession, booking_id: int, user: User, reason: str | None = None
    ) -> Booking:
        """The guest, the apartment owner or an admin can cancel; days are freed."""
        booking = await BookingService.require_booking(db, booking_id)
        if booking.user_id != user.id:
            apartment = await ApartmentService.require_apartment(db, booking.apartment_id)
            if not can_manage(apartment, user):
                raise PermissionDeniedError("Not authorized to cancel this booking")

        booking.status = BookingStatus.CANCELLED
        booking.cancelled_at = datetime.now(timezone.utc)
        booking.cancellation_reason = reason
        await db.commit()
        await db.refresh(booking)

        logger.info("Booking #%s cancelled by user %s", booking.id, user.id)
        return booking

    @staticmethod
    async def delete_booking(db: AsyncSession, booking_id: int, user: User) -> None:
        booking = await BookingService.require_booking(db, booking_id)
        if booking.user_id != user.id:
            raise PermissionDeniedError("Not allowed")

        logger.info(
            "Deleting booking #%s (%s - %s)", booking.id, booking.start_date, booking.end_date
        )
        await db.delete(booking)
        await db.commit()
