from __future__ import annotations
from typing import Optional
from enum import Enum as PyEnum

from pydantic import Field

from .base import WireModel

class BookingStatus(str, PyEnum):
    PENDING_TRANSFER = "pendingTransfer"
    PAYMENT_FAILED = "paymentFailed"
    BOOKED = "booked"
    CHECKED_IN = "checkedIn"
    CANCELED = "canceled"

class Booking(WireModel):
    id: int
    status: BookingStatus
    hotel_id: Optional[str] = None
    room_id: int
    user_id: str
    check_in: int  # ns since epoch
    check_out: int  # ns since epoch
    total_price: int
    guests: int
    rooms_count: int = 1
    timestamp: int = 0
    payment_proof: Optional[str] = None
    currency: str = "IDR"

class BookingQueryResult(WireModel):
    bookings: list[Booking] = Field(default_factory=list)
    total_count: int = 0

class BookingFilter(WireModel):
    hotel_id: Optional[str] = None
    user_id: Optional[str] = None
    status: Optional[BookingStatus] = None
