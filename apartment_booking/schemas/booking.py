from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from apartment_booking.models import BookingStatus, PaymentMethod, PaymentStatus
from apartment_booking.schemas.base import CamelModel, Day


class BookingCreate(CamelModel):
    apartment_id: int
    start_date: Day
    end_date: Day
    # Computed from the nightly price when omitted or zero
    total_price: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_id: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class BookingCancel(CamelModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class BookingOut(CamelModel):
    id: int
    apartment_id: int
    user_id: int
    start_date: date
    end_date: date
    total_price: Decimal
    status: BookingStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    payment_id: Optional[str] = None
    payment_date: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class BookingCreatedOut(BookingOut):
    message: str
