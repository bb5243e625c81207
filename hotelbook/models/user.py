from typing import Optional
from enum import Enum

from .base import WireModel

class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"

ROLE_LABELS = {
    UserRole.ADMIN: "Admin",
    UserRole.USER: "Hotel",
    UserRole.GUEST: "Guest",
}

class UserProfile(WireModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
