import itertools
import os

# must be set before hotelbook.config is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ["CLOUDINARY_URL"] = ""

import pytest
from fastapi.testclient import TestClient

from hotelbook.config import settings
from hotelbook.errors import ActorUnavailableError, BackendRejectedError
from hotelbook.main import create_app
from hotelbook.principal import Principal
from hotelbook.queries import QueryCache
from hotelbook.security import serializer


def make_principal(seed: int) -> str:
    return Principal(bytes([seed]) * 10).to_text()


GUEST = make_principal(1)
OWNER = make_principal(2)
ADMIN = make_principal(3)
NEWCOMER = make_principal(4)


class FakeCanister:
    """In-memory backend speaking the same method names as the real one."""

    def __init__(self):
        self.roles = {}
        self.admins = set()
        self.profiles = {}
        self.hotels = {}
        self.rooms = {}
        self.bookings = {}
        self.tokens = {}
        self.calls = []
        self.unavailable = set()
        self.rejecting = {}
        self._ids = itertools.count(1)

    def __call__(self, method, args, caller):
        self.calls.append((method, args, caller))
        if method in self.unavailable:
            raise ActorUnavailableError(method, "Actor not available")
        if method in self.rejecting:
            raise BackendRejectedError(method, self.rejecting[method])
        return getattr(self, method)(caller, *args)

    def count(self, method):
        return sum(1 for m, _, _ in self.calls if m == method)

    # ---- seeding helpers ----

    def add_user(self, principal, role="guest", name=None, admin=False):
        self.roles[principal] = role
        if admin:
            self.admins.add(principal)
        if name:
            self.profiles[principal] = {"name": name, "email": None, "phone": None}

    def add_hotel(self, principal, name="Sunrise Inn", active=True, subscription="paid"):
        self.roles.setdefault(principal, "user")
        self.hotels[principal] = {
            "id": principal,
            "name": name,
            "location": "Ubud",
            "address": "Jl. Raya 1",
            "mapLink": "",
            "active": active,
            "subscriptionStatus": subscription,
            "paymentMethods": [],
            "contact": {"whatsapp": None, "email": None},
        }
        return self.hotels[principal]

    def add_room(self, hotel_id, room_type="Deluxe", price=100_000, promo=0, currency="IDR", pictures=None):
        room_id = next(self._ids)
        self.rooms[room_id] = {
            "id": room_id,
            "hotelId": hotel_id,
            "roomNumber": str(room_id),
            "roomType": room_type,
            "pricePerNight": price,
            "promoPercent": promo,
            "discountedPrice": None,
            "currency": currency,
            "pictures": list(pictures or []),
        }
        return self.rooms[room_id]

    def add_booking(self, user_id, room, status="pendingTransfer", total=200_000):
        booking_id = next(self._ids)
        self.bookings[booking_id] = {
            "id": booking_id,
            "status": status,
            "hotelId": room["hotelId"],
            "roomId": room["id"],
            "userId": user_id,
            "checkIn": 1_767_225_600 * 10**9,
            "checkOut": 1_767_398_400 * 10**9,
            "totalPrice": total,
            "guests": 2,
            "roomsCount": 1,
            "timestamp": booking_id,
            "paymentProof": None,
            "currency": "IDR",
        }
        return self.bookings[booking_id]

    def add_token(self, token, max_uses=1, usage_count=0, bound=None, active=True):
        self.tokens[token] = {
            "token": token,
            "issuedBy": ADMIN,
            "issuedAt": 0,
            "maxUses": max_uses,
            "usageCount": usage_count,
            "boundPrincipal": bound,
            "isActive": active,
        }
        return self.tokens[token]

    def _hotel_view(self, hotel):
        rooms = [r for r in self.rooms.values() if r["hotelId"] == hotel["id"]]
        return {**hotel, "rooms": rooms}

    # ---- identity ----

    def getCallerUserRole(self, caller):
        return self.roles.get(caller, "guest")

    def isCallerAdmin(self, caller):
        return caller in self.admins

    def getCallerUserProfile(self, caller):
        return self.profiles.get(caller)

    def saveCallerUserProfile(self, caller, profile):
        self.profiles[caller] = profile

    def makeMeAdmin(self, caller):
        self.admins.add(caller)
        self.roles[caller] = "admin"

    # ---- invite tokens ----

    def _usable(self, token, caller):
        t = self.tokens.get(token)
        if t is None or not t["isActive"]:
            return False
        if t["usageCount"] >= t["maxUses"]:
            return False
        return t["boundPrincipal"] is None or t["boundPrincipal"] == caller

    def validateInviteToken(self, caller, token):
        return self._usable(token, caller)

    def consumeInviteToken(self, caller, token):
        t = self.tokens.get(token)
        if t is not None and t["usageCount"] >= t["maxUses"]:
            raise BackendRejectedError("consumeInviteToken", "Invite token has reached its maximum uses")
        if not self._usable(token, caller):
            return False
        t["usageCount"] += 1
        self.roles[caller] = "user"
        if caller not in self.hotels:
            self.add_hotel(caller, name="New Hotel", active=False, subscription="unpaid")
        return True

    def createInviteToken(self, caller, max_uses, bound):
        token = f"{len(self.tokens) + 1}-invite-{next(self._ids)}"
        return self.add_token(token, max_uses=max_uses, bound=bound)

    def getInviteTokens(self, caller):
        return list(self.tokens.values())

    # ---- hotels ----

    def getHotels(self, caller):
        return [self._hotel_view(h) for h in self.hotels.values()]

    def getCallerHotelProfile(self, caller):
        hotel = self.hotels.get(caller)
        return self._hotel_view(hotel) if hotel else None

    def updateHotelProfile(self, caller, profile):
        hotel = self.hotels[caller]
        hotel.update(name=profile["name"], location=profile["location"], address=profile["address"],
                     mapLink=profile["mapLink"])
        hotel["contact"] = {"email": profile["email"], "whatsapp": profile["whatsapp"]}

    def setHotelActiveStatus(self, caller, hotel_id, active):
        self.hotels[hotel_id]["active"] = active

    def setHotelSubscriptionStatus(self, caller, hotel_id, status):
        self.hotels[hotel_id]["subscriptionStatus"] = status

    def activateHotelOwner(self, caller, principal):
        self.roles[principal] = "user"
        if principal not in self.hotels:
            self.add_hotel(principal, name="New Hotel", active=False, subscription="unpaid")
        return True

    def addPaymentMethod(self, caller, method):
        self.hotels[caller]["paymentMethods"].append(method)

    def removePaymentMethod(self, caller, name):
        methods = self.hotels[caller]["paymentMethods"]
        self.hotels[caller]["paymentMethods"] = [m for m in methods if m["name"] != name]

    # ---- rooms ----

    def getRooms(self, caller, hotel_id):
        return [r for r in self.rooms.values() if hotel_id is None or r["hotelId"] == hotel_id]

    def createRoom(self, caller, room):
        created = self.add_room(caller, room["roomType"], room["pricePerNight"], room["promoPercent"],
                                room["currency"], room["pictures"])
        created["roomNumber"] = room["roomNumber"]
        return created

    def updateRoom(self, caller, room_id, room):
        self.rooms[room_id].update(room)
        return self.rooms[room_id]

    # ---- bookings ----

    def getBookings(self, caller, filters):
        found = list(self.bookings.values())
        for key in ("hotelId", "userId", "status"):
            if filters and filters.get(key) is not None:
                found = [b for b in found if b[key] == filters[key]]
        return {"bookings": found, "totalCount": len(found)}

    def createBooking(self, caller, req):
        booking_id = next(self._ids)
        self.bookings[booking_id] = {
            "id": booking_id,
            "status": "pendingTransfer",
            "hotelId": req["hotelId"],
            "roomId": req["roomId"],
            "userId": caller,
            "checkIn": req["checkIn"],
            "checkOut": req["checkOut"],
            "totalPrice": req["totalPrice"],
            "guests": req["guests"],
            "roomsCount": req["roomsCount"],
            "timestamp": booking_id,
            "paymentProof": None,
            "currency": req["currency"],
        }
        return self.bookings[booking_id]

    def setPaymentProof(self, caller, booking_id, proof):
        self.bookings[booking_id]["paymentProof"] = proof

    def updateBookingStatus(self, caller, booking_id, status):
        self.bookings[booking_id]["status"] = status

    def recordStayCompletion(self, caller, booking_id):
        self.bookings[booking_id]["status"] = "checkedIn"

    # ---- admin maintenance ----

    def adminRemoveLegacyRoomPhotos(self, caller, hotel_id, room_id):
        self.rooms[room_id]["pictures"] = []

    def adminRemoveLegacyPaymentMethods(self, caller, hotel_id):
        self.hotels[hotel_id]["paymentMethods"] = []

    def adminPurgePrincipalData(self, caller, principal):
        self.hotels.pop(principal, None)
        self.rooms = {k: r for k, r in self.rooms.items() if r["hotelId"] != principal}
        self.bookings = {k: b for k, b in self.bookings.items()
                         if b["userId"] != principal and b["hotelId"] != principal}


@pytest.fixture
def canister():
    return FakeCanister()


@pytest.fixture
def app(canister):
    return create_app(transport=canister, query_cache=QueryCache(stale_seconds=0, retry=1))


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def login(client):
    def _login(principal):
        client.cookies.set(settings.SESSION_COOKIE_NAME, serializer.dumps({"principal": principal}))
        return client
    return _login
