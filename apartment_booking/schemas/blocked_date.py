from datetime import date, datetime
from typing import Optional

from pydantic import Field

from apartment_booking.schemas.base import CamelModel, Day


class BlockedDateCreate(CamelModel):
    start_date: Day
    end_date: Day
    reason: str = Field(min_length=1, max_length=200)
    # None blocks every apartment
    apartment_id: Optional[int] = None


class BlockedDateOut(CamelModel):
    id: int
    start_date: date
    end_date: date
    reason: str
    apartment_id: Optional[int] = None
    created_by: int
    created_at: datetime


class BlockedDateCheckOut(CamelModel):
    is_blocked: bool
    blocked_date: Optional[BlockedDateOut] = None
