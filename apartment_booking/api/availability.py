from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from apartment_booking.api.deps import get_current_user, query_interval, require_admin
from apartment_booking.core.config import settings
from apartment_booking.core.locks import OccupancyLocks, get_occupancy_locks
from apartment_booking.core.rate_limiter import limiter
from apartment_booking.database import get_db
from apartment_booking.models import User
from apartment_booking.schemas.availability import (
    AvailabilityBlockCreate,
    AvailabilityBlockOut,
    AvailabilityBlockSavedOut,
    AvailabilityBlockUpdate,
    AvailabilityCheckOut,
)
from apartment_booking.services.availability_engine import AvailabilityEngine
from apartment_booking.services.availability_service import AvailabilityService

router = APIRouter(prefix="/api/availability", tags=["availability"])


@router.get("/apartment/{apartment_id}", response_model=list[AvailabilityBlockOut])
async def list_apartment_blocks(
    apartment_id: int,
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
):
    """Blocked periods of one apartment, optionally only those overlapping a range."""
    window = query_interval(start_date, end_date) if start_date or end_date else None
    return await AvailabilityService.get_apartment_blocks(db, apartment_id, window)


@router.get("/check/{apartment_id}", response_model=AvailabilityCheckOut)
async def check_availability(
    apartment_id: int,
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
):
    candidate = query_interval(start_date, end_date)
    available = await AvailabilityEngine.for_session(db).is_available(apartment_id, candidate)
    return AvailabilityCheckOut(
        available=available,
        apartment_id=apartment_id,
        start_date=candidate.start,
        end_date=candidate.end,
    )


@router.post(
    "/block", response_model=AvailabilityBlockSavedOut, status_code=status.HTTP_201_CREATED
)
@limiter.limit(settings.rate_limit_writes)
async def block_dates(
    request: Request,
    payload: AvailabilityBlockCreate,
    db: AsyncSession = Depends(get_db),
    locks: OccupancyLocks = Depends(get_occupancy_locks),
    user: User = Depends(get_current_user),
):
    block = await AvailabilityService.block_dates(db, locks, user, payload)
    return AvailabilityBlockSavedOut(
        **AvailabilityBlockOut.model_validate(block).model_dump(),
        message="Dates blocked successfully",
    )


@router.put("/{block_id}", response_model=AvailabilityBlockSavedOut)
async def update_block(
    block_id: int,
    payload: AvailabilityBlockUpdate,
    db: AsyncSession = Depends(get_db),
    locks: OccupancyLocks = Depends(get_occupancy_locks),
    user: User = Depends(get_current_user),
):
    block = await AvailabilityService.update_block(db, locks, block_id, user, payload)
    return AvailabilityBlockSavedOut(
        **AvailabilityBlockOut.model_validate(block).model_dump(),
        message="Availability period updated successfully",
    )


@router.delete("/{block_id}")
async def unblock_dates(
    block_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await AvailabilityService.unblock_dates(db, block_id, user)
    return {"message": "Dates unblocked successfully"}


@router.get("/admin/all", response_model=list[AvailabilityBlockOut])
async def list_all_blocks(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await AvailabilityService.get_all_blocks(db)
