from datetime import date

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse

from ..errors import InputError
from ..models import BookingFilter
from ..principal import parse_principal
from ..queries import QueryCache, get_bookings, get_hotels, get_rooms
from ..rpc import BackendClient
from ..security import Caller, get_cache, get_client, require_profile
from ..services.booking_rules import BookingAction, BookingActor, available_actions
from ..services.bookings import apply_booking_action, find_booking, request_booking, submit_payment_proof
from ..templating import flash, templates
from .common import perform, see_other

router = APIRouter(prefix="/bookings", tags=["bookings"])


def guest_bookings_context(client: BackendClient, cache: QueryCache, caller: Caller) -> dict:
    """Bookings of the signed-in guest plus lookups the booking table needs."""
    res = get_bookings(client, cache, BookingFilter(user_id=caller.principal))
    bookings = sorted(res.data.bookings if res.data else [], key=lambda b: b.check_in, reverse=True)
    hotels = get_hotels(client, cache).data or []
    return {
        "bookings": bookings,
        "hotel_names": {h.id: h.name for h in hotels},
        "room_labels": {r.id: r.room_type for h in hotels for r in h.rooms},
        "actions": {b.id: available_actions(b.status, BookingActor.GUEST) for b in bookings},
        "action_base": "/bookings",
        "error": res.error.message if res.error else None,
    }


@router.get("", response_class=HTMLResponse)
def bookings_index(request: Request, caller: Caller = Depends(require_profile),
                   client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    ctx = guest_bookings_context(client, cache, caller)
    return templates.TemplateResponse("bookings.html", {"request": request, "viewer": caller, **ctx})


@router.post("")
def bookings_create(request: Request, hotel_id: str = Form(...), room_id: int = Form(...),
                    check_in: str = Form(...), check_out: str = Form(...), guests: int = Form(1),
                    rooms_count: int = Form(1), caller: Caller = Depends(require_profile),
                    client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    back = f"/browse/{hotel_id}?room_id={room_id}"
    try:
        hotel_id = parse_principal(hotel_id)
        try:
            start, end = date.fromisoformat(check_in), date.fromisoformat(check_out)
        except ValueError:
            raise InputError("Please pick valid check-in and check-out dates")
        rooms = get_rooms(client, cache, hotel_id).data or []
        room = next((r for r in rooms if r.id == room_id), None)
        if room is None:
            raise InputError("Room not found")
    except InputError as e:
        flash(request, str(e), "error")
        return see_other(back)

    if not perform(request, lambda: request_booking(client, cache, room, start, end, guests, rooms_count),
                   success="Booking request submitted", failure="Booking failed"):
        return see_other(back)
    return see_other("/bookings")


def _own_booking(client: BackendClient, cache: QueryCache, caller: Caller, booking_id: int):
    res = get_bookings(client, cache, BookingFilter(user_id=caller.principal))
    return find_booking(res.data.bookings if res.data else [], booking_id)


@router.post("/{booking_id}/cancel")
def bookings_cancel(request: Request, booking_id: int, caller: Caller = Depends(require_profile),
                    client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    perform(
        request,
        lambda: apply_booking_action(client, cache, _own_booking(client, cache, caller, booking_id),
                                     BookingAction.CANCEL, BookingActor.GUEST),
        success="Booking canceled",
        failure="Could not cancel booking",
    )
    return see_other("/bookings")


@router.post("/{booking_id}/payment-proof")
def bookings_payment_proof(request: Request, booking_id: int, proof: str = Form(""),
                           caller: Caller = Depends(require_profile),
                           client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    perform(
        request,
        lambda: submit_payment_proof(client, cache, _own_booking(client, cache, caller, booking_id), proof),
        success="Payment proof submitted",
        failure="Could not submit payment proof",
    )
    return see_other("/bookings")
