import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse

from ..errors import InputError
from ..models import SubscriptionStatus, UserRole
from ..principal import parse_principal
from ..queries import QueryCache, get_bookings, get_hotels, get_invite_tokens
from ..rpc import BackendClient
from ..security import Caller, get_cache, get_client, require_role
from ..services.booking_rules import BookingActor, available_actions
from ..services.bookings import apply_booking_action, find_booking
from ..services.invites import create_invite_token, split_tokens
from ..templating import flash, templates
from .common import perform, see_other
from .hotel_views import BOOKING_ACTION_SLUGS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

require_admin = require_role(UserRole.ADMIN)

TABS = ("hotels", "tokens", "bookings", "activation", "cleanup", "purge")


@router.get("", response_class=HTMLResponse)
def admin_panel(request: Request, tab: str = "hotels", confirm: str | None = None,
                caller: Caller = Depends(require_admin),
                client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    hotels_res = get_hotels(client, cache)
    tokens_res = get_invite_tokens(client, cache)
    bookings_res = get_bookings(client, cache)

    hotels = hotels_res.data or []
    active_tokens, used_tokens = split_tokens(tokens_res.data or [])
    bookings = sorted(bookings_res.data.bookings if bookings_res.data else [], key=lambda b: b.timestamp, reverse=True)
    errors = [r.error.message for r in (hotels_res, tokens_res, bookings_res) if r.error]
    return templates.TemplateResponse(
        "admin/panel.html",
        {
            "request": request,
            "viewer": caller,
            "tab": tab if tab in TABS else "hotels",
            "tabs": TABS,
            "hotels": hotels,
            "hotel_names": {h.id: h.name for h in hotels},
            "subscription_statuses": list(SubscriptionStatus),
            "active_tokens": active_tokens,
            "used_tokens": used_tokens,
            "bookings": bookings,
            "total_bookings": bookings_res.data.total_count if bookings_res.data else 0,
            "actions": {b.id: available_actions(b.status, BookingActor.ADMIN) for b in bookings},
            "action_base": "/admin/bookings",
            "confirm_principal": confirm,
            "errors": errors,
        },
    )


# ---- hotels ----

@router.post("/hotels/{hotel_id}/active")
def admin_hotel_active(request: Request, hotel_id: str, active: bool = Form(...),
                       caller: Caller = Depends(require_admin),
                       client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    perform(
        request,
        lambda: cache.mutate("setHotelActiveStatus", lambda: client.set_hotel_active_status(parse_principal(hotel_id), active)),
        success=f"Hotel {'activated' if active else 'deactivated'} successfully",
        failure="Failed to update hotel status",
    )
    return see_other("/admin?tab=hotels")


@router.post("/hotels/{hotel_id}/subscription")
def admin_hotel_subscription(request: Request, hotel_id: str, status: str = Form(...),
                             caller: Caller = Depends(require_admin),
                             client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    def _update():
        try:
            sub = SubscriptionStatus(status)
        except ValueError:
            raise InputError(f"Unknown subscription status {status}")
        hid = parse_principal(hotel_id)
        cache.mutate("setHotelSubscriptionStatus", lambda: client.set_hotel_subscription_status(hid, sub))

    perform(request, _update, success="Subscription status updated successfully", failure="Failed to update subscription")
    return see_other("/admin?tab=hotels")


@router.post("/hotel-owners/activate")
def admin_activate_owner(request: Request, principal: str = Form(""), caller: Caller = Depends(require_admin),
                         client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    def _activate():
        if not principal.strip():
            raise InputError("Please enter hotel principal")
        target = parse_principal(principal)
        if not cache.mutate("activateHotelOwner", lambda: client.activate_hotel_owner(target)):
            raise InputError("Hotel owner could not be activated")
        logger.info("Hotel owner %s activated by %s", target, caller.principal)

    perform(request, _activate, success="Hotel owner activated", failure="Activation failed")
    return see_other("/admin?tab=activation")


# ---- invite tokens ----

@router.post("/invite-tokens")
def admin_invite_create(request: Request, max_uses: int = Form(1), bound_principal: str = Form(""),
                        caller: Caller = Depends(require_admin),
                        client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    created = []
    if perform(request, lambda: created.append(create_invite_token(client, cache, max_uses, bound_principal)),
               failure="Failed to generate invite code"):
        flash(request, f"Invite code generated successfully: {created[0].token}")
    return see_other("/admin?tab=tokens")


# ---- bookings ----

@router.post("/bookings/{booking_id}/{action}")
def admin_booking_action(request: Request, booking_id: int, action: str, caller: Caller = Depends(require_admin),
                         client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    def _apply():
        if action not in BOOKING_ACTION_SLUGS:
            raise InputError(f"Unknown booking action {action}")
        res = get_bookings(client, cache)
        booking = find_booking(res.data.bookings if res.data else [], booking_id)
        apply_booking_action(client, cache, booking, BOOKING_ACTION_SLUGS[action], BookingActor.ADMIN)

    perform(request, _apply, success="Booking updated", failure="Failed to update booking")
    return see_other("/admin?tab=bookings")


# ---- legacy data cleanup ----

@router.post("/cleanup/room-photos")
def admin_cleanup_room_photos(request: Request, hotel_id: str = Form(""), room_id: str = Form(""),
                              caller: Caller = Depends(require_admin),
                              client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    def _cleanup():
        if not hotel_id.strip() or not room_id.strip():
            raise InputError("Please enter both hotel principal and room ID")
        if not room_id.strip().isdigit():
            raise InputError("Room ID must be a number")
        hid, rid = parse_principal(hotel_id), int(room_id)
        cache.mutate("adminRemoveLegacyRoomPhotos", lambda: client.admin_remove_legacy_room_photos(hid, rid))

    perform(request, _cleanup, success="Legacy room photos removed successfully",
            failure="Failed to remove legacy room photos")
    return see_other("/admin?tab=cleanup")


@router.post("/cleanup/payment-methods")
def admin_cleanup_payment_methods(request: Request, hotel_id: str = Form(""), caller: Caller = Depends(require_admin),
                                  client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    def _cleanup():
        if not hotel_id.strip():
            raise InputError("Please enter hotel principal")
        hid = parse_principal(hotel_id)
        cache.mutate("adminRemoveLegacyPaymentMethods", lambda: client.admin_remove_legacy_payment_methods(hid))

    perform(request, _cleanup, success="Legacy payment methods removed successfully",
            failure="Failed to remove legacy payment methods")
    return see_other("/admin?tab=cleanup")


# ---- principal purge ----

@router.post("/purge")
def admin_purge(request: Request, principal: str = Form(""), confirmation: str | None = Form(None),
                caller: Caller = Depends(require_admin),
                client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    try:
        target = parse_principal(principal)
    except InputError as e:
        flash(request, str(e), "error")
        return see_other("/admin?tab=purge")

    # first post only asks for the principal to be typed again
    if confirmation is None:
        return see_other(f"/admin?tab=purge&confirm={target}")
    if confirmation.strip() != target:
        flash(request, "Confirmation does not match. Please type the exact Principal ID.", "error")
        return see_other(f"/admin?tab=purge&confirm={target}")

    if perform(request, lambda: cache.mutate("adminPurgePrincipalData", lambda: client.admin_purge_principal_data(target)),
               success="Hotel data purged successfully", failure="Failed to purge hotel data"):
        logger.warning("Data for principal %s purged by %s", target, caller.principal)
    return see_other("/admin?tab=purge")
