"""Thin JSON RPC client for the backend canister.

Every backend method is reached with ``POST {BACKEND_URL}/api/{method}`` and a
body of ``{"args": [...]}``. The caller's principal travels in the
``X-Caller-Principal`` header. Replies are ``{"ok": value}`` or
``{"err": "message"}``.
"""
import logging
from typing import Any, Callable, Optional

import requests

from .config import settings
from .errors import ActorUnavailableError, BackendRejectedError
from .models import (
    Booking,
    BookingFilter,
    BookingQueryResult,
    BookingStatus,
    Hotel,
    HotelProfileInput,
    InviteToken,
    PaymentMethod,
    Room,
    RoomInput,
    SubscriptionStatus,
    UserProfile,
    UserRole,
)

logger = logging.getLogger(__name__)

Transport = Callable[[str, list, Optional[str]], Any]


class HttpTransport:
    def __init__(self, base_url: str, timeout: float = 15.0, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def __call__(self, method: str, args: list, caller: Optional[str]) -> Any:
        headers = {"X-Caller-Principal": caller} if caller else {}
        try:
            resp = self.session.post(
                f"{self.base_url}/api/{method}",
                json={"args": args},
                headers=headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.exceptions.RequestException as e:
            logger.warning("Backend call %s failed: %s", method, e)
            raise ActorUnavailableError(method, "Backend is unavailable") from e
        except ValueError as e:
            raise ActorUnavailableError(method, "Malformed reply from backend") from e

        if not isinstance(payload, dict):
            raise ActorUnavailableError(method, "Malformed reply from backend")
        if "err" in payload:
            raise BackendRejectedError(method, str(payload["err"]))
        if "ok" not in payload:
            raise ActorUnavailableError(method, "Malformed reply from backend")
        return payload["ok"]


def http_transport() -> HttpTransport:
    return HttpTransport(settings.BACKEND_URL, timeout=settings.BACKEND_TIMEOUT_SECONDS)


class BackendClient:
    """One client per request; ``caller`` is the authenticated principal or None."""

    def __init__(self, transport: Transport, caller: Optional[str] = None):
        self.transport = transport
        self.caller = caller

    def call(self, method: str, *args) -> Any:
        logger.debug("rpc %s caller=%s", method, self.caller or "anonymous")
        return self.transport(method, list(args), self.caller)

    # ---- identity / profile ----

    def get_caller_user_role(self) -> UserRole:
        return UserRole(self.call("getCallerUserRole"))

    def is_caller_admin(self) -> bool:
        return bool(self.call("isCallerAdmin"))

    def get_caller_user_profile(self) -> UserProfile | None:
        data = self.call("getCallerUserProfile")
        return UserProfile.model_validate(data) if data else None

    def save_caller_user_profile(self, profile: UserProfile) -> None:
        self.call("saveCallerUserProfile", profile.to_wire())

    def make_me_admin(self) -> None:
        self.call("makeMeAdmin")

    # ---- invite tokens ----

    def validate_invite_token(self, token: str) -> bool:
        return bool(self.call("validateInviteToken", token))

    def consume_invite_token(self, token: str) -> bool:
        return bool(self.call("consumeInviteToken", token))

    def create_invite_token(self, max_uses: int, bound_principal: str | None) -> InviteToken:
        return InviteToken.model_validate(self.call("createInviteToken", max_uses, bound_principal))

    def get_invite_tokens(self) -> list[InviteToken]:
        return [InviteToken.model_validate(t) for t in self.call("getInviteTokens") or []]

    # ---- hotels ----

    def get_hotels(self) -> list[Hotel]:
        return [Hotel.model_validate(h) for h in self.call("getHotels") or []]

    def get_caller_hotel_profile(self) -> Hotel | None:
        data = self.call("getCallerHotelProfile")
        return Hotel.model_validate(data) if data else None

    def update_hotel_profile(self, profile: HotelProfileInput) -> None:
        self.call("updateHotelProfile", profile.to_wire())

    def set_hotel_active_status(self, hotel_id: str, active: bool) -> None:
        self.call("setHotelActiveStatus", hotel_id, active)

    def set_hotel_subscription_status(self, hotel_id: str, status: SubscriptionStatus) -> None:
        self.call("setHotelSubscriptionStatus", hotel_id, SubscriptionStatus(status).value)

    def activate_hotel_owner(self, principal: str) -> bool:
        return bool(self.call("activateHotelOwner", principal))

    def add_payment_method(self, method: PaymentMethod) -> None:
        self.call("addPaymentMethod", method.to_wire())

    def remove_payment_method(self, name: str) -> None:
        self.call("removePaymentMethod", name)

    # ---- rooms ----

    def get_rooms(self, hotel_id: str | None = None) -> list[Room]:
        return [Room.model_validate(r) for r in self.call("getRooms", hotel_id) or []]

    def create_room(self, room: RoomInput) -> Room:
        return Room.model_validate(self.call("createRoom", room.to_wire()))

    def update_room(self, room_id: int, room: RoomInput) -> Room:
        return Room.model_validate(self.call("updateRoom", room_id, room.to_wire()))

    # ---- bookings ----

    def get_bookings(self, filters: BookingFilter | None = None) -> BookingQueryResult:
        payload = filters.to_wire() if filters else None
        return BookingQueryResult.model_validate(self.call("getBookings", payload))

    def create_booking(self, hotel_id: str, room_id: int, check_in: int, check_out: int,
                       guests: int, rooms_count: int, currency: str, total_price: int) -> Booking:
        data = self.call("createBooking", {
            "hotelId": hotel_id,
            "roomId": room_id,
            "checkIn": check_in,
            "checkOut": check_out,
            "guests": guests,
            "roomsCount": rooms_count,
            "currency": currency,
            "totalPrice": total_price,
        })
        return Booking.model_validate(data)

    def set_payment_proof(self, booking_id: int, proof: str) -> None:
        self.call("setPaymentProof", booking_id, proof)

    def update_booking_status(self, booking_id: int, status: BookingStatus) -> None:
        self.call("updateBookingStatus", booking_id, BookingStatus(status).value)

    def record_stay_completion(self, booking_id: int) -> None:
        self.call("recordStayCompletion", booking_id)

    # ---- admin maintenance ----

    def admin_remove_legacy_room_photos(self, hotel_id: str, room_id: int) -> None:
        self.call("adminRemoveLegacyRoomPhotos", hotel_id, room_id)

    def admin_remove_legacy_payment_methods(self, hotel_id: str) -> None:
        self.call("adminRemoveLegacyPaymentMethods", hotel_id)

    def admin_purge_principal_data(self, principal: str) -> None:
        self.call("adminPurgePrincipalData", principal)
