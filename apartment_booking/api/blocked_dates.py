from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from apartment_booking.api.deps import query_interval, require_admin
from apartment_booking.core.locks import OccupancyLocks, get_occupancy_locks
from apartment_booking.database import get_db
from apartment_booking.models import User
from apartment_booking.schemas.blocked_date import (
    BlockedDateCheckOut,
    BlockedDateCreate,
    BlockedDateOut,
)
from apartment_booking.services.blocked_date_service import BlockedDateService

router = APIRouter(prefix="/api/blocked-dates", tags=["blocked-dates"])


@router.get("", response_model=list[BlockedDateOut])
async def list_blocked_dates(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await BlockedDateService.get_all_blocked_dates(db)


@router.post("", response_model=BlockedDateOut, status_code=status.HTTP_201_CREATED)
async def create_blocked_date(
    payload: BlockedDateCreate,
    db: AsyncSession = Depends(get_db),
    locks: OccupancyLocks = Depends(get_occupancy_locks),
    admin: User = Depends(require_admin),
):
    """Block dates for one apartment, or for all of them when apartmentId is omitted."""
    return await BlockedDateService.create_blocked_date(db, locks, admin, payload)


@router.delete("/{blocked_id}")
async def delete_blocked_date(
    blocked_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    await BlockedDateService.delete_blocked_date(db, blocked_id)
    return {"message": "Blocked date removed"}


@router.get("/check/{apartment_id}", response_model=BlockedDateCheckOut)
async def check_blocked(
    apartment_id: int,
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
):
    interval = query_interval(start_date, end_date)
    blocked = await BlockedDateService.find_blocking(db, apartment_id, interval)
    return BlockedDateCheckOut(
        is_blocked=blocked is not None,
        blocked_date=BlockedDateOut.model_validate(blocked) if blocked else None,
    )
