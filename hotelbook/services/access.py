"""Role-gated access decisions.

The caller's role is a closed union: ``Admin``, ``HotelOwner(activated)`` or
``Guest``. Every function that inspects a ``CallerRole`` handles all three
variants and raises ``TypeError`` on anything else.
"""
from dataclasses import dataclass, field
from typing import Optional, Union

from ..models import UserRole
from ..models.user import ROLE_LABELS


@dataclass(frozen=True)
class Admin:
    pass


@dataclass(frozen=True)
class HotelOwner:
    activated: bool


@dataclass(frozen=True)
class Guest:
    pass


CallerRole = Union[Admin, HotelOwner, Guest]


def resolve_caller_role(role: UserRole, is_admin: bool, has_hotel_profile: bool) -> CallerRole:
    role = UserRole(role)
    if is_admin or role == UserRole.ADMIN:
        return Admin()
    if role == UserRole.USER:
        return HotelOwner(activated=has_hotel_profile)
    if role == UserRole.GUEST:
        return Guest()
    raise TypeError(f"unhandled role {role!r}")


def role_of(caller: CallerRole) -> UserRole:
    if isinstance(caller, Admin):
        return UserRole.ADMIN
    if isinstance(caller, HotelOwner):
        return UserRole.USER
    if isinstance(caller, Guest):
        return UserRole.GUEST
    raise TypeError(f"unhandled caller role {caller!r}")


def role_label(role: UserRole) -> str:
    return ROLE_LABELS[UserRole(role)]


def required_roles_text(required: tuple[UserRole, ...]) -> str:
    if not required:
        return "special access"
    return " or ".join(role_label(r) for r in required)


@dataclass(frozen=True)
class RoleLookup:
    """Outcome of the role/admin queries for an authenticated caller."""

    caller: Optional[CallerRole] = None
    error: Optional[str] = None


# ---- decisions ----

@dataclass(frozen=True)
class LoginRequired:
    pass


@dataclass(frozen=True)
class GuardFailed:
    message: str


@dataclass(frozen=True)
class Allowed:
    caller: CallerRole


@dataclass(frozen=True)
class Denied:
    caller: CallerRole
    required: tuple[UserRole, ...] = field(default_factory=tuple)

    @property
    def required_text(self) -> str:
        return required_roles_text(self.required)

    @property
    def admin_only(self) -> bool:
        return self.required == (UserRole.ADMIN,)


@dataclass(frozen=True)
class ActivationRequired:
    caller: CallerRole
    required: tuple[UserRole, ...] = field(default_factory=tuple)

    @property
    def required_text(self) -> str:
        return required_roles_text(self.required)


@dataclass(frozen=True)
class ProfileRequired:
    """Signed in with a role but no profile yet; booking pages ask for one first."""

    caller: CallerRole


AccessDecision = Union[LoginRequired, GuardFailed, Allowed, Denied, ActivationRequired, ProfileRequired]


def decide_access(authenticated: bool, lookup: RoleLookup | None, required_roles,
                  require_activation: bool = False) -> AccessDecision:
    required = tuple(UserRole(r) for r in required_roles)
    if not authenticated:
        return LoginRequired()
    if lookup is None or lookup.error is not None or lookup.caller is None:
        return GuardFailed(message=(lookup.error if lookup and lookup.error else "Unknown error occurred"))

    caller = lookup.caller
    if isinstance(caller, Admin):
        return Allowed(caller)
    if isinstance(caller, (HotelOwner, Guest)):
        if role_of(caller) not in required:
            return Denied(caller, required)
        if require_activation and isinstance(caller, HotelOwner) and not caller.activated:
            return ActivationRequired(caller, required)
        return Allowed(caller)
    raise TypeError(f"unhandled caller role {caller!r}")
