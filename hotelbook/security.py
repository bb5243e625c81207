import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request, Response
from itsdangerous import URLSafeSerializer, BadSignature

from .config import settings
from .errors import GateRejected, InputError
from .models import Hotel, UserProfile, UserRole
from .principal import Principal
from .queries import QueryCache, get_caller_hotel_profile, get_caller_user_profile, get_caller_user_role, is_caller_admin
from .rpc import BackendClient, http_transport
from .services.access import (
    Allowed,
    CallerRole,
    ProfileRequired,
    RoleLookup,
    decide_access,
    resolve_caller_role,
)

logger = logging.getLogger(__name__)

serializer = URLSafeSerializer(settings.SECRET_KEY, salt="hotelbook-identity")


def set_session(response: Response, principal: str):
    token = serializer.dumps({"principal": principal})
    is_production = getattr(settings, "ENVIRONMENT", "development") == "production"
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=is_production,
        path="/",
        max_age=settings.SESSION_MAX_AGE_DAYS * 24 * 60 * 60
    )


def clear_session(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")


def get_current_principal(request: Request) -> Optional[str]:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    try:
        data = serializer.loads(token)
        principal = Principal.from_text(data.get("principal"))
    except (BadSignature, InputError, AttributeError, TypeError):
        return None
    if principal.is_anonymous():
        return None
    return principal.to_text()


def get_cache(request: Request) -> QueryCache:
    return request.app.state.query_cache


def get_client(request: Request) -> BackendClient:
    """Backend client acting as the signed-in principal (anonymous if none)."""
    transport = getattr(request.app.state, "backend_transport", None) or http_transport()
    return BackendClient(transport, caller=get_current_principal(request))


@dataclass
class Caller:
    principal: str
    role: CallerRole
    user_role: UserRole
    is_admin: bool
    hotel: Optional[Hotel] = None
    profile: Optional[UserProfile] = None


def lookup_role(client: BackendClient, cache: QueryCache) -> tuple[RoleLookup, Optional[Hotel], Optional[UserRole], bool]:
    role_res = get_caller_user_role(client, cache)
    admin_res = is_caller_admin(client, cache)
    if not role_res.ok or not admin_res.ok:
        err = role_res.error or admin_res.error
        logger.warning("Permission check failed for %s: %s", client.caller, err)
        return RoleLookup(error=getattr(err, "message", None) or str(err)), None, None, False

    hotel = None
    # Only hotel-role callers have a hotel profile worth fetching
    if role_res.data == UserRole.USER:
        hotel = get_caller_hotel_profile(client, cache).data
    caller = resolve_caller_role(role_res.data, admin_res.data, hotel is not None)
    return RoleLookup(caller=caller), hotel, role_res.data, bool(admin_res.data)


def load_caller(client: BackendClient, cache: QueryCache) -> Optional[Caller]:
    """Best-effort caller for navigation and page chrome; None when anonymous or unknown."""
    if not client.caller:
        return None
    lookup, hotel, user_role, is_admin = lookup_role(client, cache)
    if lookup.caller is None:
        return None
    profile = get_caller_user_profile(client, cache).data
    return Caller(client.caller, lookup.caller, user_role, is_admin, hotel, profile)


def require_role(*roles: UserRole, require_activation: bool = False):
    """Dependency factory guarding a route by role; raises GateRejected otherwise."""

    def dependency(client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)) -> Caller:
        if not client.caller:
            raise GateRejected(decide_access(False, None, roles, require_activation))
        lookup, hotel, user_role, is_admin = lookup_role(client, cache)
        decision = decide_access(True, lookup, roles, require_activation)
        if not isinstance(decision, Allowed):
            raise GateRejected(decision)
        profile = get_caller_user_profile(client, cache).data
        return Caller(client.caller, decision.caller, user_role, is_admin, hotel, profile)

    return dependency


def require_login(client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)) -> Caller:
    """Any authenticated caller, whatever the role."""
    return require_role(UserRole.ADMIN, UserRole.USER, UserRole.GUEST)(client, cache)


def require_profile(caller: Caller = Depends(require_login)) -> Caller:
    """Signed-in caller who has saved a profile; booking pages need a name to show hotels."""
    if caller.profile is None:
        raise GateRejected(ProfileRequired(caller.role))
    return caller
