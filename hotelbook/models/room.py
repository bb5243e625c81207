from typing import Optional

from pydantic import Field

from .base import WireModel

class Room(WireModel):
    id: int
    hotel_id: str
    room_number: str = ""
    room_type: str
    price_per_night: int
    promo_percent: int = 0
    discounted_price: Optional[int] = None
    currency: str = "IDR"
    pictures: list[str] = Field(default_factory=list)

class RoomInput(WireModel):
    room_number: str
    room_type: str
    price_per_night: int
    promo_percent: int = 0
    currency: str = "IDR"
    pictures: list[str] = Field(default_factory=list)
