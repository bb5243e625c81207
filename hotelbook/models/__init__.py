from .user import UserRole, UserProfile
from .room import Room, RoomInput
from .hotel import Hotel, HotelContact, HotelProfileInput, PaymentMethod, SubscriptionStatus
from .booking import Booking, BookingFilter, BookingQueryResult, BookingStatus
from .invite import InviteToken
