from datetime import date, datetime
from typing import Optional

from pydantic import Field

from apartment_booking.models import BlockReason
from apartment_booking.schemas.base import CamelModel, Day


class AvailabilityBlockCreate(CamelModel):
    apartment_id: int
    start_date: Day
    end_date: Day
    reason: BlockReason = BlockReason.BLOCKED
    notes: Optional[str] = Field(default=None, max_length=2000)


class AvailabilityBlockUpdate(CamelModel):
    start_date: Optional[Day] = None
    end_date: Optional[Day] = None
    reason: Optional[BlockReason] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class AvailabilityBlockOut(CamelModel):
    id: int
    apartment_id: int
    start_date: date
    end_date: date
    is_available: bool
    reason: BlockReason
    notes: Optional[str] = None
    created_by: int
    created_at: datetime


class AvailabilityBlockSavedOut(AvailabilityBlockOut):
    message: str


class AvailabilityCheckOut(CamelModel):
    available: bool
    apartment_id: int
    start_date: date
    end_date: date
