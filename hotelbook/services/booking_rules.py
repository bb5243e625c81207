"""Booking lifecycle as seen by the UI.

    pendingTransfer -> booked -> checkedIn
    pendingTransfer -> paymentFailed
    pendingTransfer | booked -> canceled

The backend enforces the lifecycle; these rules only decide which actions a
page offers and reject obviously invalid form posts early.
"""
from enum import Enum

from ..errors import InvalidTransitionError
from ..models import BookingStatus


class BookingActor(str, Enum):
    GUEST = "guest"
    HOTEL = "hotel"
    ADMIN = "admin"


class BookingAction(str, Enum):
    CANCEL = "cancel"
    CONFIRM = "confirm"
    RECORD_STAY = "record_stay"
    PAYMENT_PROOF = "payment_proof"


LIFECYCLE: dict[BookingStatus, frozenset] = {
    BookingStatus.PENDING_TRANSFER: frozenset({
        BookingStatus.BOOKED, BookingStatus.PAYMENT_FAILED, BookingStatus.CANCELED,
    }),
    BookingStatus.BOOKED: frozenset({BookingStatus.CHECKED_IN, BookingStatus.CANCELED}),
    BookingStatus.CHECKED_IN: frozenset(),
    BookingStatus.PAYMENT_FAILED: frozenset(),
    BookingStatus.CANCELED: frozenset(),
}

_STAFF = (BookingActor.HOTEL, BookingActor.ADMIN)

STATUS_LABELS = {
    BookingStatus.BOOKED: "Booked",
    BookingStatus.CHECKED_IN: "Checked In",
    BookingStatus.PENDING_TRANSFER: "Pending Transfer",
    BookingStatus.CANCELED: "Canceled",
    BookingStatus.PAYMENT_FAILED: "Payment Failed",
}

STATUS_VARIANTS = {
    BookingStatus.BOOKED: "default",
    BookingStatus.CHECKED_IN: "secondary",
    BookingStatus.PENDING_TRANSFER: "outline",
    BookingStatus.CANCELED: "destructive",
    BookingStatus.PAYMENT_FAILED: "destructive",
}


def is_terminal(status: BookingStatus) -> bool:
    return not LIFECYCLE[BookingStatus(status)]


def can_cancel(status: BookingStatus, actor: BookingActor) -> bool:
    status = BookingStatus(status)
    if actor == BookingActor.GUEST:
        return status == BookingStatus.PENDING_TRANSFER
    return actor in _STAFF and status in (BookingStatus.PENDING_TRANSFER, BookingStatus.BOOKED)


def can_confirm(status: BookingStatus, actor: BookingActor) -> bool:
    return actor in _STAFF and BookingStatus(status) == BookingStatus.PENDING_TRANSFER


def can_record_stay(status: BookingStatus, actor: BookingActor) -> bool:
    return actor in _STAFF and BookingStatus(status) in (BookingStatus.BOOKED, BookingStatus.CHECKED_IN)


def can_submit_payment_proof(status: BookingStatus, actor: BookingActor) -> bool:
    return actor == BookingActor.GUEST and BookingStatus(status) == BookingStatus.PENDING_TRANSFER


_CHECKS = {
    BookingAction.CANCEL: can_cancel,
    BookingAction.CONFIRM: can_confirm,
    BookingAction.RECORD_STAY: can_record_stay,
    BookingAction.PAYMENT_PROOF: can_submit_payment_proof,
}

_TARGETS = {
    BookingAction.CANCEL: BookingStatus.CANCELED,
    BookingAction.CONFIRM: BookingStatus.BOOKED,
    BookingAction.RECORD_STAY: BookingStatus.CHECKED_IN,
}


def available_actions(status: BookingStatus, actor: BookingActor) -> list[BookingAction]:
    return [action for action, check in _CHECKS.items() if check(status, actor)]


def next_status(status: BookingStatus, action: BookingAction, actor: BookingActor) -> BookingStatus:
    """Status after ``action``; raises InvalidTransitionError when not allowed."""
    status = BookingStatus(status)
    action = BookingAction(action)
    if not _CHECKS[action](status, actor):
        raise InvalidTransitionError(status, action.value)
    return _TARGETS.get(action, status)


def status_label(status) -> str:
    try:
        return STATUS_LABELS[BookingStatus(status)]
    except ValueError:
        return str(status)


def status_variant(status) -> str:
    try:
        return STATUS_VARIANTS[BookingStatus(status)]
    except ValueError:
        return "outline"
