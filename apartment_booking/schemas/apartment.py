from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from apartment_booking.schemas.base import CamelModel


class ApartmentBase(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    location: str = Field(min_length=1, max_length=200)
    price_per_night: Decimal = Field(ge=0)
    description: Optional[str] = None


class ApartmentCreate(ApartmentBase):
    pass


class ApartmentUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    location: Optional[str] = Field(default=None, min_length=1, max_length=200)
    price_per_night: Optional[Decimal] = Field(default=None, ge=0)
    description: Optional[str] = None


class ApartmentOut(ApartmentBase):
    id: int
    owner_id: int
    created_at: datetime


class UnavailableDatesOut(CamelModel):
    apartment_id: int
    unavailable_dates: list[date]


class CalendarDayOut(CamelModel):
    day: date
    available: bool
    occupied_by: list[str] = []


class CalendarOut(CamelModel):
    apartment_id: int
    year: int
    month: int
    days: list[CalendarDayOut]


class PeriodOut(CamelModel):
    start_date: date
    end_date: date
    nights: int


class FreePeriodsOut(CamelModel):
    apartment_id: int
    start_date: date
    end_date: date
    free_periods: list[PeriodOut]
