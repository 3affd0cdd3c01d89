from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from apartment_booking.api.deps import get_current_user
from apartment_booking.core.config import settings
from apartment_booking.core.locks import OccupancyLocks, get_occupancy_locks
from apartment_booking.core.rate_limiter import limiter
from apartment_booking.database import get_db
from apartment_booking.models import BookingStatus, User
from apartment_booking.schemas.booking import (
    BookingCancel,
    BookingCreate,
    BookingCreatedOut,
    BookingOut,
)
from apartment_booking.services.booking_service import BookingService

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


@router.get("", response_model=list[BookingOut])
async def list_my_bookings(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await BookingService.get_user_bookings(db, user)


@router.get("/my", response_model=list[BookingOut])
async def list_my_bookings_alias(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await BookingService.get_user_bookings(db, user)


@router.post("", response_model=BookingCreatedOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_writes)
async def create_booking(
    request: Request,
    payload: BookingCreate,
    db: AsyncSession = Depends(get_db),
    locks: OccupancyLocks = Depends(get_occupancy_locks),
    user: User = Depends(get_current_user),
):
    """
    Create a booking. Rejected with 400 when the dates overlap an occupying
    booking, an availability block or a blocked date of the apartment.
    """
    booking = await BookingService.create_booking(db, locks, user, payload)
    message = (
        "Booking confirmed successfully"
        if booking.status == BookingStatus.CONFIRMED
        else "Booking created successfully. Please complete the payment."
    )
    return BookingCreatedOut(**BookingOut.model_validate(booking).model_dump(), message=message)


@router.put("/{booking_id}/confirm")
async def confirm_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    locks: OccupancyLocks = Depends(get_occupancy_locks),
    user: User = Depends(get_current_user),
):
    booking = await BookingService.confirm_booking(db, locks, booking_id, user)
    return {
        "message": "Booking confirmed",
        "booking": BookingOut.model_validate(booking).model_dump(mode="json", by_alias=True),
    }


@router.put("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: int,
    payload: Optional[BookingCancel] = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reason = payload.reason if payload else None
    booking = await BookingService.cancel_booking(db, booking_id, user, reason)
    return {
        "message": "Booking cancelled",
        "booking": BookingOut.model_validate(booking).model_dump(mode="json", by_alias=True),
    }


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await BookingService.delete_booking(db, booking_id, user)
    return {"message": "Deleted"}
