from __future__ import annotations
from typing import Optional
from enum import Enum as PyEnum

from pydantic import Field

from .base import WireModel
from .room import Room

class SubscriptionStatus(str, PyEnum):
    PAID = "paid"
    UNPAID = "unpaid"
    TEST = "test"

class PaymentMethod(WireModel):
    name: str
    details: str

class HotelContact(WireModel):
    whatsapp: Optional[str] = None
    email: Optional[str] = None

class Hotel(WireModel):
    id: str
    name: str
    location: str = ""
    address: str = ""
    map_link: str = ""
    active: bool = False
    subscription_status: SubscriptionStatus = SubscriptionStatus.UNPAID
    rooms: list[Room] = Field(default_factory=list)
    payment_methods: list[PaymentMethod] = Field(default_factory=list)
    contact: HotelContact = Field(default_factory=HotelContact)

class HotelProfileInput(WireModel):
    name: str
    location: str
    address: str
    map_link: str = ""
    email: Optional[str] = None
    whatsapp: Optional[str] = None
