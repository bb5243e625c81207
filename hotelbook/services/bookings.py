"""Booking requests and status changes issued from the guest, hotel and admin pages."""
import logging
from datetime import date

from ..errors import InputError
from ..models import Booking, BookingStatus, Room
from ..queries import QueryCache
from ..rpc import BackendClient
from ..timeutil import date_to_ns
from .booking_rules import BookingAction, BookingActor, next_status
from .pricing import compute_discounted_price, compute_total_price, nights_between

logger = logging.getLogger(__name__)

MAX_GUESTS = 20
MAX_ROOMS = 10


def effective_nightly_price(room: Room) -> int:
    if room.discounted_price is not None:
        return room.discounted_price
    return compute_discounted_price(room.price_per_night, room.promo_percent)


def quote_booking(room: Room, check_in: date, check_out: date, rooms_count: int = 1) -> int:
    return compute_total_price(effective_nightly_price(room), nights_between(check_in, check_out), rooms_count)


def request_booking(client: BackendClient, cache: QueryCache, room: Room, check_in: date, check_out: date,
                    guests: int, rooms_count: int = 1, today: date | None = None) -> Booking:
    today = today or date.today()
    if check_in < today:
        raise InputError("Check-in cannot be in the past")
    if not 1 <= guests <= MAX_GUESTS:
        raise InputError(f"Guests must be between 1 and {MAX_GUESTS}")
    if not 1 <= rooms_count <= MAX_ROOMS:
        raise InputError(f"Rooms must be between 1 and {MAX_ROOMS}")
    total = quote_booking(room, check_in, check_out, rooms_count)

    booking = cache.mutate("createBooking", lambda: client.create_booking(
        room.hotel_id, room.id, date_to_ns(check_in), date_to_ns(check_out),
        guests, rooms_count, room.currency, total,
    ))
    logger.info("Booking %s requested by %s for room %s", booking.id, client.caller, room.id)
    return booking


def find_booking(bookings: list[Booking], booking_id: int) -> Booking:
    for b in bookings:
        if b.id == booking_id:
            return b
    raise InputError("Booking not found")


def apply_booking_action(client: BackendClient, cache: QueryCache, booking: Booking,
                         action: BookingAction, actor: BookingActor) -> BookingStatus:
    """Check the transition locally, then ask the backend to perform it."""
    target = next_status(booking.status, action, actor)
    if action == BookingAction.RECORD_STAY:
        cache.mutate("recordStayCompletion", lambda: client.record_stay_completion(booking.id))
    else:
        cache.mutate("updateBookingStatus", lambda: client.update_booking_status(booking.id, target))
    logger.info("Booking %s: %s by %s (%s -> %s)", booking.id, action.value, actor.value,
                booking.status.value, target.value)
    return target


def submit_payment_proof(client: BackendClient, cache: QueryCache, booking: Booking, proof: str) -> None:
    proof = (proof or "").strip()
    if not proof:
        raise InputError("Please provide a transfer reference or receipt")
    next_status(booking.status, BookingAction.PAYMENT_PROOF, BookingActor.GUEST)
    cache.mutate("setPaymentProof", lambda: client.set_payment_proof(booking.id, proof))
