import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse

from ..config import settings
from ..errors import BackendError, InputError
from ..limiter import limiter
from ..models import BookingFilter, Hotel, HotelProfileInput, PaymentMethod, Room, RoomInput, UserRole
from ..queries import QueryCache, get_bookings, get_rooms
from ..rpc import BackendClient
from ..security import Caller, get_cache, get_client, require_login, require_role
from ..services.access import ActivationRequired
from ..services.booking_rules import BookingAction, BookingActor, available_actions
from ..services.bookings import apply_booking_action, find_booking
from ..services.currency import SUPPORTED_CURRENCIES, is_supported_currency
from ..services.invites import consume_invite_token, validate_token_format
from ..services.media import save_room_picture, save_room_pictures
from ..services.pricing import compute_discounted_price, validate_promo_percent
from ..templating import flash, templates
from .common import perform, see_other

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hotel", tags=["hotel"])

HOTEL_ROLES = (UserRole.USER, UserRole.ADMIN)
require_hotel = require_role(*HOTEL_ROLES, require_activation=True)

TABS = ("profile", "rooms", "bookings", "payments", "subscription")

# URL slug -> action, for the hotel and admin booking tables
BOOKING_ACTION_SLUGS = {
    "confirm": BookingAction.CONFIRM,
    "cancel": BookingAction.CANCEL,
    "record-stay": BookingAction.RECORD_STAY,
}


def _owned_hotel(caller: Caller) -> Hotel:
    if caller.hotel is None:
        raise InputError("This account has no hotel profile")
    return caller.hotel


def _hotel_rooms(client: BackendClient, cache: QueryCache, hotel: Hotel) -> list[Room]:
    res = get_rooms(client, cache, hotel.id)
    return res.data if res.data is not None else hotel.rooms


def _hotel_bookings(client: BackendClient, cache: QueryCache, hotel: Hotel):
    res = get_bookings(client, cache, BookingFilter(hotel_id=hotel.id))
    return sorted(res.data.bookings if res.data else [], key=lambda b: b.check_in, reverse=True), res.error


@router.get("", response_class=HTMLResponse)
def hotel_area(request: Request, tab: str = "profile", caller: Caller = Depends(require_hotel),
               client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    hotel = caller.hotel
    ctx = {
        "request": request,
        "viewer": caller,
        "hotel": hotel,
        "tab": tab if tab in TABS else "profile",
        "tabs": TABS,
        "currencies": SUPPORTED_CURRENCIES,
        "admin_email": settings.ADMIN_CONTACT_EMAIL,
        "admin_whatsapp": settings.ADMIN_CONTACT_WHATSAPP,
    }
    if hotel is not None:
        rooms = _hotel_rooms(client, cache, hotel)
        bookings, error = _hotel_bookings(client, cache, hotel)
        ctx.update(
            rooms=rooms,
            room_labels={r.id: r.room_type for r in rooms},
            show_guest=True,
            discounted={r.id: compute_discounted_price(r.price_per_night, r.promo_percent) for r in rooms},
            bookings=bookings,
            bookings_error=error.message if error else None,
            actions={b.id: available_actions(b.status, BookingActor.HOTEL) for b in bookings},
            action_base="/hotel/bookings",
        )
    return templates.TemplateResponse("hotel/area.html", ctx)


# ---- activation (reachable before the hotel profile exists) ----

def _activation_page(request: Request, caller: Caller, token: str, valid: bool | None, status_code: int = 200):
    return templates.TemplateResponse(
        "auth/access_denied.html",
        {
            "request": request,
            "viewer": caller,
            "decision": ActivationRequired(caller.role, HOTEL_ROLES),
            "needs_activation": True,
            "token": token,
            "token_valid": valid,
        },
        status_code=status_code,
    )


@router.post("/activate/validate", response_class=HTMLResponse)
@limiter.limit(settings.RATE_LIMIT_ACTIVATION)
def activation_validate(request: Request, token: str = Form(""), caller: Caller = Depends(require_login),
                        client: BackendClient = Depends(get_client)):
    token = token.strip()
    if not token:
        flash(request, "Please enter an invite token", "error")
        return _activation_page(request, caller, token, None, status_code=400)
    if not validate_token_format(token):
        return _activation_page(request, caller, token, False, status_code=400)
    try:
        valid = client.validate_invite_token(token)
    except BackendError as e:
        flash(request, f"Failed to validate token: {e.message}", "error")
        return _activation_page(request, caller, token, False)
    if valid:
        flash(request, "Token is valid! You can now activate your hotel account.")
    else:
        flash(request, "Invalid or expired token. Please check and try again.", "error")
    return _activation_page(request, caller, token, valid)


@router.post("/activate", response_class=HTMLResponse)
@limiter.limit(settings.RATE_LIMIT_ACTIVATION)
def activation_consume(request: Request, token: str = Form(""), caller: Caller = Depends(require_login),
                       client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    if not token.strip():
        flash(request, "Please enter an invite token", "error")
        return see_other("/hotel")
    if not perform(request, lambda: consume_invite_token(client, cache, token), failure="Activation failed"):
        return see_other("/hotel")
    flash(request, "Hotel account activated successfully!")
    return templates.TemplateResponse(
        "auth/activated.html",
        {"request": request, "viewer": caller, "delay": settings.ACTIVATION_REDIRECT_DELAY_SECONDS},
    )


# ---- profile, payment methods, subscription ----

@router.post("/profile")
def hotel_profile_update(request: Request, name: str = Form(""), location: str = Form(""), address: str = Form(""),
                         map_link: str = Form(""), email: str = Form(""), whatsapp: str = Form(""),
                         caller: Caller = Depends(require_hotel),
                         client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    def _update():
        _owned_hotel(caller)
        if not (name.strip() and location.strip() and address.strip()):
            raise InputError("Please fill in all required fields")
        profile = HotelProfileInput(
            name=name.strip(), location=location.strip(), address=address.strip(), map_link=map_link.strip(),
            email=email.strip() or None, whatsapp=whatsapp.strip() or None,
        )
        cache.mutate("updateHotelProfile", lambda: client.update_hotel_profile(profile))

    perform(request, _update, success="Hotel profile updated successfully", failure="Failed to update hotel profile")
    return see_other("/hotel?tab=profile")


@router.post("/payment-methods")
def payment_method_add(request: Request, name: str = Form(""), details: str = Form(""),
                       caller: Caller = Depends(require_hotel),
                       client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    def _add():
        _owned_hotel(caller)
        if not name.strip() or not details.strip():
            raise InputError("Please fill in all required fields")
        method = PaymentMethod(name=name.strip(), details=details.strip())
        cache.mutate("addPaymentMethod", lambda: client.add_payment_method(method))

    perform(request, _add, success="Payment method added", failure="Failed to add payment method")
    return see_other("/hotel?tab=payments")


@router.post("/payment-methods/remove")
def payment_method_remove(request: Request, name: str = Form(...), caller: Caller = Depends(require_hotel),
                          client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    def _remove():
        _owned_hotel(caller)
        cache.mutate("removePaymentMethod", lambda: client.remove_payment_method(name))

    perform(request, _remove, success="Payment method removed", failure="Failed to remove payment method")
    return see_other("/hotel?tab=payments")


# ---- rooms ----

def _room_input(room_number: str, room_type: str, price_per_night: int, promo_percent: int,
                currency: str, pictures: list[str]) -> RoomInput:
    if not room_type.strip():
        raise InputError("Please fill in all required fields")
    if price_per_night <= 0:
        raise InputError("Price must be greater than 0")
    if not validate_promo_percent(promo_percent):
        raise InputError("Promo percent must be between 0 and 100")
    if not is_supported_currency(currency):
        raise InputError(f"Unsupported currency {currency}")
    return RoomInput(
        room_number=room_number.strip(), room_type=room_type.strip(), price_per_night=price_per_night,
        promo_percent=promo_percent, currency=currency, pictures=pictures,
    )


def _input_from_room(room: Room, pictures: list[str]) -> RoomInput:
    return RoomInput(
        room_number=room.room_number, room_type=room.room_type, price_per_night=room.price_per_night,
        promo_percent=room.promo_percent, currency=room.currency, pictures=pictures,
    )


def _owned_room(client: BackendClient, cache: QueryCache, caller: Caller, room_id: int) -> Room:
    hotel = _owned_hotel(caller)
    room = next((r for r in _hotel_rooms(client, cache, hotel) if r.id == room_id), None)
    if room is None:
        raise InputError("Room not found")
    return room


async def _read_uploads(files: list[UploadFile]) -> list[bytes]:
    return [await f.read() for f in files if f and f.filename]


@router.post("/rooms")
async def room_create(request: Request, room_number: str = Form(""), room_type: str = Form(""),
                      price_per_night: int = Form(0), promo_percent: int = Form(0), currency: str = Form("IDR"),
                      photos: list[UploadFile] = File(default=[]), caller: Caller = Depends(require_hotel),
                      client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    uploads = await _read_uploads(photos)

    def _create():
        _owned_hotel(caller)
        room = _room_input(room_number, room_type, price_per_night, promo_percent, currency, [])
        room.pictures = save_room_pictures(uploads)
        cache.mutate("createRoom", lambda: client.create_room(room))

    perform(request, _create, success="Room created successfully", failure="Failed to save room")
    return see_other("/hotel?tab=rooms")


@router.post("/rooms/{room_id}")
async def room_update(request: Request, room_id: int, room_number: str = Form(""), room_type: str = Form(""),
                      price_per_night: int = Form(0), promo_percent: int = Form(0), currency: str = Form("IDR"),
                      keep_pictures: list[str] = Form(default=[]), photos: list[UploadFile] = File(default=[]),
                      caller: Caller = Depends(require_hotel),
                      client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    uploads = await _read_uploads(photos)

    def _update():
        existing = _owned_room(client, cache, caller, room_id)
        kept = [p for p in existing.pictures if p in keep_pictures]
        room = _room_input(room_number, room_type, price_per_night, promo_percent, currency, [])
        room.pictures = kept + save_room_pictures(uploads)
        cache.mutate("updateRoom", lambda: client.update_room(room_id, room))

    perform(request, _update, success="Room updated successfully", failure="Failed to save room")
    return see_other("/hotel?tab=rooms")


@router.post("/rooms/{room_id}/photos/remove")
def room_photo_remove(request: Request, room_id: int, url: str = Form(...), caller: Caller = Depends(require_hotel),
                      client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    def _remove():
        room = _owned_room(client, cache, caller, room_id)
        if url not in room.pictures:
            raise InputError("Photo not found")
        pictures = [p for p in room.pictures if p != url]
        cache.mutate("updateRoom", lambda: client.update_room(room_id, _input_from_room(room, pictures)))

    perform(request, _remove, success="Photo deleted successfully", failure="Failed to delete photo")
    return see_other("/hotel?tab=rooms")


@router.post("/rooms/{room_id}/photos/replace")
async def room_photo_replace(request: Request, room_id: int, url: str = Form(...), photo: UploadFile = File(...),
                             caller: Caller = Depends(require_hotel),
                             client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    data = await photo.read()

    def _replace():
        room = _owned_room(client, cache, caller, room_id)
        if url not in room.pictures:
            raise InputError("Photo not found")
        new_url = save_room_picture(data)
        # same slot, so neighbouring photos keep their order
        pictures = [new_url if p == url else p for p in room.pictures]
        cache.mutate("updateRoom", lambda: client.update_room(room_id, _input_from_room(room, pictures)))

    perform(request, _replace, success="Photo replaced successfully", failure="Failed to replace photo")
    return see_other("/hotel?tab=rooms")


# ---- bookings ----

@router.post("/bookings/{booking_id}/{action}")
def hotel_booking_action(request: Request, booking_id: int, action: str, caller: Caller = Depends(require_hotel),
                         client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    def _apply():
        if action not in BOOKING_ACTION_SLUGS:
            raise InputError(f"Unknown booking action {action}")
        bookings, _ = _hotel_bookings(client, cache, _owned_hotel(caller))
        booking = find_booking(bookings, booking_id)
        apply_booking_action(client, cache, booking, BOOKING_ACTION_SLUGS[action], BookingActor.HOTEL)

    perform(request, _apply, success="Booking updated", failure="Failed to update booking")
    return see_other("/hotel?tab=bookings")
