from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from apartment_booking.api.deps import get_current_user, query_interval
from apartment_booking.database import get_db
from apartment_booking.models import User
from apartment_booking.schemas.apartment import (
    ApartmentCreate,
    ApartmentOut,
    ApartmentUpdate,
    CalendarDayOut,
    CalendarOut,
    FreePeriodsOut,
    PeriodOut,
    UnavailableDatesOut,
)
from apartment_booking.services.apartment_service import ApartmentService
from apartment_booking.services.availability_engine import AvailabilityEngine

router = APIRouter(prefix="/api/apartments", tags=["apartments"])


@router.get("", response_model=list[ApartmentOut])
async def list_apartments(db: AsyncSession = Depends(get_db)):
    return await ApartmentService.get_all_apartments(db)


@router.get("/{apartment_id}", response_model=ApartmentOut)
async def get_apartment(apartment_id: int, db: AsyncSession = Depends(get_db)):
    return await ApartmentService.require_apartment(db, apartment_id)


@router.post("", response_model=ApartmentOut, status_code=status.HTTP_201_CREATED)
async def create_apartment(
    payload: ApartmentCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await ApartmentService.create_apartment(db, user, payload)


@router.put("/{apartment_id}", response_model=ApartmentOut)
async def update_apartment(
    apartment_id: int,
    payload: ApartmentUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await ApartmentService.update_apartment(db, apartment_id, user, payload)


@router.delete("/{apartment_id}")
async def delete_apartment(
    apartment_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await ApartmentService.delete_apartment(db, apartment_id, user)
    return {"message": "Deleted"}


@router.get("/{apartment_id}/unavailable-dates", response_model=UnavailableDatesOut)
async def get_unavailable_dates(apartment_id: int, db: AsyncSession = Depends(get_db)):
    """
    Every occupied day (bookings, availability blocks, blocked dates),
    sorted and de-duplicated. Used to disable days in the booking calendar.
    """
    await ApartmentService.require_apartment(db, apartment_id)
    days = await AvailabilityEngine.for_session(db).unavailable_days(apartment_id)
    return UnavailableDatesOut(apartment_id=apartment_id, unavailable_dates=days)


@router.get("/{apartment_id}/calendar", response_model=CalendarOut)
async def get_month_calendar(
    apartment_id: int,
    year: int = Query(...),
    month: int = Query(..., ge=1, le=12),
    db: AsyncSession = Depends(get_db),
):
    await ApartmentService.require_apartment(db, apartment_id)
    days = await AvailabilityEngine.for_session(db).month_calendar(apartment_id, year, month)
    return CalendarOut(
        apartment_id=apartment_id,
        year=year,
        month=month,
        days=[
            CalendarDayOut(
                day=d.day,
                available=d.available,
                occupied_by=[kind.value for kind in d.kinds],
            )
            for d in days
        ],
    )


@router.get("/{apartment_id}/free-periods", response_model=FreePeriodsOut)
async def get_free_periods(
    apartment_id: int,
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
):
    window = query_interval(start_date, end_date)
    await ApartmentService.require_apartment(db, apartment_id)
    periods = await AvailabilityEngine.for_session(db).free_intervals(apartment_id, window)
    return FreePeriodsOut(
        apartment_id=apartment_id,
        start_date=window.start,
        end_date=window.end,
        free_periods=[
            PeriodOut(start_date=p.start, end_date=p.end, nights=p.nights) for p in periods
        ],
    )
