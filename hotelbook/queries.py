"""Read-through cache in front of the backend client.

Keys are tuples whose first element is the logical resource name
(``"hotels"``, ``"callerUserRole"``...). Mutations invalidate resource names
listed in ``INVALIDATES`` and only when they succeed.
"""
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from .errors import BackendError
from .models import BookingFilter, BookingQueryResult, Hotel, InviteToken, Room, UserProfile, UserRole
from .rpc import BackendClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Resource names refreshed after each successful mutation
INVALIDATES: dict[str, tuple[str, ...]] = {
    "saveCallerUserProfile": ("currentUserProfile",),
    "makeMeAdmin": ("callerUserRole", "isCurrentUserAdmin"),
    "consumeInviteToken": (
        "callerUserRole",
        "isCurrentUserAdmin",
        "callerHotelProfile",
        "hotels",
    ),
    "createInviteToken": ("inviteTokens",),
    "updateHotelProfile": ("callerHotelProfile", "hotels"),
    "setHotelActiveStatus": ("hotels", "callerHotelProfile"),
    "setHotelSubscriptionStatus": ("hotels", "callerHotelProfile"),
    "activateHotelOwner": (
        "hotels",
        "callerHotelProfile",
        "callerUserRole",
        "isCurrentUserAdmin",
    ),
    "addPaymentMethod": ("callerHotelProfile", "hotels"),
    "removePaymentMethod": ("callerHotelProfile", "hotels"),
    "createRoom": ("callerHotelProfile", "hotels", "rooms"),
    "updateRoom": ("callerHotelProfile", "hotels", "rooms"),
    "createBooking": ("bookings",),
    "setPaymentProof": ("bookings",),
    "updateBookingStatus": ("bookings",),
    "recordStayCompletion": ("bookings",),
    "adminRemoveLegacyRoomPhotos": ("hotels", "rooms", "callerHotelProfile"),
    "adminRemoveLegacyPaymentMethods": ("hotels", "callerHotelProfile"),
    "adminPurgePrincipalData": ("hotels", "rooms", "bookings", "inviteTokens", "callerHotelProfile"),
}

ROLE_QUERIES = ("callerUserRole", "isCurrentUserAdmin")


@dataclass
class QueryResult(Generic[T]):
    data: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _Entry:
    value: Any
    fetched_at: float


class QueryCache:
    def __init__(self, stale_seconds: float = 5.0, retry: int = 1, clock: Callable[[], float] = time.monotonic):
        self.stale_seconds = stale_seconds
        self.retry = retry
        self.clock = clock
        self._entries: dict[tuple, _Entry] = {}
        self._locks: dict[tuple, threading.Lock] = {}
        self._generations: dict[str, int] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: tuple) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def peek(self, key: tuple) -> Any:
        entry = self._entries.get(key)
        return entry.value if entry else None

    def query(self, key: tuple, fetch: Callable[[], T], *, stale_seconds: float | None = None,
              retry: int | None = None) -> QueryResult[T]:
        stale = self.stale_seconds if stale_seconds is None else stale_seconds
        attempts = 1 + (self.retry if retry is None else retry)
        requested_at = self.clock()

        with self._lock_for(key):
            entry = self._entries.get(key)
            if entry is not None:
                # Another request fetched while we waited on the lock
                if entry.fetched_at > requested_at or self.clock() - entry.fetched_at < stale:
                    return QueryResult(data=entry.value)

            with self._guard:
                generation = self._generations.get(key[0], 0)

            last_error = None
            for attempt in range(attempts):
                try:
                    value = fetch()
                except BackendError as e:
                    last_error = e
                    logger.info("Query %s failed (attempt %d/%d): %s", key[0], attempt + 1, attempts, e)
                    continue
                with self._guard:
                    # Drop results that raced with an invalidation
                    if self._generations.get(key[0], 0) == generation:
                        self._entries[key] = _Entry(value, self.clock())
                return QueryResult(data=value)

        return QueryResult(data=entry.value if entry else None, error=last_error)

    def invalidate(self, *names: str) -> int:
        with self._guard:
            for name in names:
                self._generations[name] = self._generations.get(name, 0) + 1
            stale_keys = [k for k in self._entries if k[0] in names]
            for k in stale_keys:
                del self._entries[k]
        if stale_keys:
            logger.debug("Invalidated %d cache entries for %s", len(stale_keys), ", ".join(names))
        return len(stale_keys)

    def mutate(self, name: str, fn: Callable[[], T]) -> T:
        """Run a mutation once; invalidate its resources only if it succeeds."""
        result = fn()
        self.invalidate(*INVALIDATES.get(name, ()))
        return result

    def clear(self) -> None:
        with self._guard:
            for name in {k[0] for k in self._entries}:
                self._generations[name] = self._generations.get(name, 0) + 1
            self._entries.clear()


def _who(client: BackendClient) -> str:
    return client.caller or "anonymous"


def get_caller_user_role(client: BackendClient, cache: QueryCache) -> QueryResult[UserRole]:
    return cache.query(("callerUserRole", _who(client)), client.get_caller_user_role, stale_seconds=0)


def is_caller_admin(client: BackendClient, cache: QueryCache) -> QueryResult[bool]:
    return cache.query(("isCurrentUserAdmin", _who(client)), client.is_caller_admin, stale_seconds=0)


def get_caller_user_profile(client: BackendClient, cache: QueryCache) -> QueryResult[UserProfile]:
    return cache.query(("currentUserProfile", _who(client)), client.get_caller_user_profile, retry=0)


def get_caller_hotel_profile(client: BackendClient, cache: QueryCache) -> QueryResult[Hotel]:
    return cache.query(("callerHotelProfile", _who(client)), client.get_caller_hotel_profile, stale_seconds=0)


def get_hotels(client: BackendClient, cache: QueryCache) -> QueryResult[list[Hotel]]:
    return cache.query(("hotels", _who(client)), client.get_hotels)


def get_rooms(client: BackendClient, cache: QueryCache, hotel_id: str | None = None) -> QueryResult[list[Room]]:
    return cache.query(("rooms", hotel_id or "*"), lambda: client.get_rooms(hotel_id))


def get_bookings(client: BackendClient, cache: QueryCache,
                 filters: BookingFilter | None = None) -> QueryResult[BookingQueryResult]:
    scope = json.dumps(filters.to_wire(), sort_keys=True) if filters else "{}"
    return cache.query(("bookings", _who(client), scope), lambda: client.get_bookings(filters))


def get_invite_tokens(client: BackendClient, cache: QueryCache) -> QueryResult[list[InviteToken]]:
    return cache.query(("inviteTokens",), client.get_invite_tokens)
