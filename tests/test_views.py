from datetime import date, timedelta

import pytest

from conftest import ADMIN, GUEST, NEWCOMER, OWNER, make_principal

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def _row(html, booking_id):
    start = html.index(f'id="booking-{booking_id}"')
    return html[start:html.index("</tr>", start)]


@pytest.fixture
def hotel(canister):
    canister.add_user(OWNER, "user", name="Olga")
    canister.add_hotel(OWNER)
    return canister.add_room(OWNER, price=100_000, promo=10)


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_main_menu_anonymous(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "Sign in" in r.text


# ---- sign in ----

def test_login_sets_identity(client, canister):
    canister.add_user(GUEST, name="Gina")
    r = client.post("/auth/login", data={"principal": GUEST, "next": "/account"})
    assert r.status_code == 200
    assert r.url.path == "/account"
    assert "Signed in" in r.text


def test_login_rejects_malformed_principal(client):
    r = client.post("/auth/login", data={"principal": "not a principal"})
    assert r.status_code == 400
    assert "login-error" in r.text


def test_login_ignores_offsite_next(client):
    r = client.post("/auth/login", data={"principal": GUEST, "next": "https://evil.example/x"},
                    follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"


# ---- access gate ----

def test_admin_requires_login(client):
    r = client.get("/admin")
    assert r.status_code == 401
    assert "Sign in required" in r.text


def test_admin_denies_guest(client, login):
    login(GUEST)
    r = client.get("/admin")
    assert r.status_code == 403
    assert "Access Denied" in r.text
    assert "Admin Access Only" in r.text


def test_admin_flag_overrides_role(client, canister, login):
    canister.add_user(ADMIN, "guest", admin=True)
    login(ADMIN)
    assert client.get("/admin").status_code == 200


def test_hotel_area_denies_guest_without_activation_form(client, login):
    login(GUEST)
    r = client.get("/hotel")
    assert r.status_code == 403
    assert "Hotel or Admin" in r.text
    assert "Activate Hotel Account" not in r.text


def test_hotel_area_asks_unactivated_owner_for_token(client, canister, login):
    canister.add_user(NEWCOMER, "user")
    login(NEWCOMER)
    r = client.get("/hotel")
    assert r.status_code == 403
    assert "Activate Hotel Account" in r.text


def test_guard_failure_then_retry(client, canister, login):
    canister.add_user(ADMIN, "admin", admin=True)
    canister.unavailable = {"getCallerUserRole"}
    login(ADMIN)
    r = client.get("/admin")
    assert r.status_code == 503
    assert "Permission check failed" in r.text
    # one try plus one retry
    assert canister.count("getCallerUserRole") == 2

    canister.unavailable = set()
    r = client.post("/auth/recheck", data={"next": "/admin"})
    assert r.status_code == 200
    assert r.url.path == "/admin"


def test_bookings_need_profile(client, login):
    login(GUEST)
    r = client.get("/bookings")
    assert r.status_code == 200
    assert "Complete your profile" in r.text


def test_save_profile_validates(client, login, canister):
    login(GUEST)
    r = client.post("/account/profile", data={"name": "  ", "email": "nope"})
    assert r.status_code == 400
    assert "Name is required" in r.text
    assert "Enter a valid email address" in r.text

    r = client.post("/account/profile", data={"name": "Gina", "email": "gina@example.com", "next": "/bookings"})
    assert r.url.path == "/bookings"
    assert canister.profiles[GUEST]["name"] == "Gina"
    assert "Profile saved" in r.text


# ---- activation ----

def test_activation_with_exhausted_token(client, canister, login):
    canister.add_user(NEWCOMER, "user")
    canister.add_token("1-invite-42", max_uses=1, usage_count=1)
    login(NEWCOMER)
    r = client.post("/hotel/activate", data={"token": "1-invite-42"})
    assert r.status_code == 403
    assert "Activation failed: Invite token has reached its maximum uses" in r.text
    assert "activated successfully" not in r.text
    assert NEWCOMER not in canister.hotels


def test_activation_success(client, canister, login):
    canister.add_user(NEWCOMER, "user")
    canister.add_token("1-invite-42")
    login(NEWCOMER)
    r = client.post("/hotel/activate", data={"token": " 1-invite-42 "})
    assert r.status_code == 200
    assert "Hotel account activated successfully!" in r.text
    assert 'http-equiv="refresh"' in r.text

    assert client.get("/hotel").status_code == 200


def test_validate_token(client, canister, login):
    canister.add_user(NEWCOMER, "user")
    canister.add_token("1-invite-42")
    login(NEWCOMER)
    r = client.post("/hotel/activate/validate", data={"token": "1-invite-42"})
    assert "Token is valid!" in r.text
    assert "token-valid" in r.text
    # validation never consumes
    assert canister.tokens["1-invite-42"]["usageCount"] == 0

    r = client.post("/hotel/activate/validate", data={"token": "bad token!"})
    assert r.status_code == 400
    assert "token-invalid" in r.text


# ---- browsing and booking ----

def test_browse_lists_active_hotels_only(client, canister, hotel):
    hidden = make_principal(5)
    canister.add_hotel(hidden, name="Hidden Lodge", active=False)
    r = client.get("/browse")
    assert "Sunrise Inn" in r.text
    assert "Hidden Lodge" not in r.text

    assert client.get(f"/browse/{hidden}").status_code == 404
    assert client.get(f"/browse/{OWNER}").status_code == 200
    assert client.get("/browse/not-a-principal").status_code == 404


def test_booking_request_total(client, canister, login, hotel):
    canister.add_user(GUEST, name="Gina")
    login(GUEST)
    check_in = date.today() + timedelta(days=10)
    r = client.post("/bookings", data={
        "hotel_id": OWNER,
        "room_id": hotel["id"],
        "check_in": check_in.isoformat(),
        "check_out": (check_in + timedelta(days=2)).isoformat(),
        "guests": 2,
    })
    assert r.url.path == "/bookings"
    assert "Booking request submitted" in r.text
    (booking,) = canister.bookings.values()
    assert booking["totalPrice"] == 180_000
    assert booking["status"] == "pendingTransfer"


def test_booking_in_the_past_is_refused(client, canister, login, hotel):
    canister.add_user(GUEST, name="Gina")
    login(GUEST)
    r = client.post("/bookings", data={
        "hotel_id": OWNER, "room_id": hotel["id"], "check_in": "2020-01-01", "check_out": "2020-01-03",
    })
    assert r.url.path == f"/browse/{OWNER}"
    assert "Check-in cannot be in the past" in r.text
    assert canister.bookings == {}


def test_guest_cancel_visibility(client, canister, login, hotel):
    canister.add_user(GUEST, name="Gina")
    pending = canister.add_booking(GUEST, hotel, status="pendingTransfer")
    booked = canister.add_booking(GUEST, hotel, status="booked")
    login(GUEST)
    html = client.get("/bookings").text
    assert "action-cancel" in _row(html, pending["id"])
    assert "action-payment-proof" in _row(html, pending["id"])
    assert "action-cancel" not in _row(html, booked["id"])
    assert "action-confirm" not in _row(html, pending["id"])


def test_hotel_cancel_visibility(client, canister, login, hotel):
    pending = canister.add_booking(GUEST, hotel, status="pendingTransfer")
    booked = canister.add_booking(GUEST, hotel, status="booked")
    done = canister.add_booking(GUEST, hotel, status="checkedIn")
    login(OWNER)
    html = client.get("/hotel?tab=bookings").text
    assert "action-cancel" in _row(html, pending["id"])
    assert "action-confirm" in _row(html, pending["id"])
    assert "action-cancel" in _row(html, booked["id"])
    assert "action-record-stay" in _row(html, booked["id"])
    assert "action-cancel" not in _row(html, done["id"])


def test_guest_cannot_cancel_booked(client, canister, login, hotel):
    canister.add_user(GUEST, name="Gina")
    booked = canister.add_booking(GUEST, hotel, status="booked")
    login(GUEST)
    r = client.post(f"/bookings/{booked['id']}/cancel")
    assert "Could not cancel booking" in r.text
    assert booked["status"] == "booked"
    assert canister.count("updateBookingStatus") == 0


def test_guest_cancels_pending(client, canister, login, hotel):
    canister.add_user(GUEST, name="Gina")
    pending = canister.add_booking(GUEST, hotel)
    login(GUEST)
    r = client.post(f"/bookings/{pending['id']}/cancel")
    assert "Booking canceled" in r.text
    assert pending["status"] == "canceled"


def test_hotel_confirms_booking(client, canister, login, hotel):
    pending = canister.add_booking(GUEST, hotel)
    login(OWNER)
    r = client.post(f"/hotel/bookings/{pending['id']}/confirm")
    assert "Booking updated" in r.text
    assert pending["status"] == "booked"


def test_hotel_creates_room_with_photo(client, canister, login, hotel):
    login(OWNER)
    r = client.post("/hotel/rooms",
                    data={"room_number": "12", "room_type": "Suite", "price_per_night": "500", "currency": "USD"},
                    files=[("photos", ("room.png", PNG, "image/png"))])
    assert "Room created successfully" in r.text
    suite = next(room for room in canister.rooms.values() if room["roomType"] == "Suite")
    assert suite["pictures"][0].startswith("data:image/png;base64,")


def test_backend_rejection_becomes_toast(client, canister, login, hotel):
    canister.rejecting = {"updateHotelProfile": "Hotel profile locked"}
    login(OWNER)
    r = client.post("/hotel/profile", data={"name": "Sunset", "location": "Ubud", "address": "Jl. 2"})
    assert "Failed to update hotel profile: Hotel profile locked" in r.text
    assert canister.hotels[OWNER]["name"] == "Sunrise Inn"


# ---- admin ----

@pytest.fixture
def admin(canister, login):
    canister.add_user(ADMIN, "admin", admin=True)
    return login(ADMIN)


def test_admin_generates_invite(client, canister, admin):
    r = client.post("/admin/invite-tokens", data={"max_uses": 2})
    assert "Invite code generated successfully:" in r.text
    (token,) = canister.tokens.values()
    assert token["maxUses"] == 2


def test_admin_toggles_hotel(client, canister, admin, hotel):
    r = client.post(f"/admin/hotels/{OWNER}/active", data={"active": "false"})
    assert "Hotel deactivated successfully" in r.text
    assert canister.hotels[OWNER]["active"] is False
    # admins may still open the hidden listing
    assert client.get(f"/browse/{OWNER}").status_code == 200


def test_purge_requires_matching_confirmation(client, canister, admin, hotel):
    r = client.post("/admin/purge", data={"principal": OWNER}, follow_redirects=False)
    assert r.headers["location"] == f"/admin?tab=purge&confirm={OWNER}"

    r = client.post("/admin/purge", data={"principal": OWNER, "confirmation": GUEST})
    assert "Confirmation does not match" in r.text
    assert OWNER in canister.hotels

    r = client.post("/admin/purge", data={"principal": OWNER, "confirmation": OWNER})
    assert "Hotel data purged successfully" in r.text
    assert OWNER not in canister.hotels
