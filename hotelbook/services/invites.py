import logging
import re

from ..errors import BackendError, InputError, InviteTokenRejected
from ..models import InviteToken
from ..principal import parse_principal
from ..queries import QueryCache
from ..rpc import BackendClient

logger = logging.getLogger(__name__)

MAX_TOKEN_LENGTH = 128
_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_token_format(token: str | None) -> bool:
    """Format-only check used for inline feedback; says nothing about redeemability."""
    token = (token or "").strip()
    return 0 < len(token) <= MAX_TOKEN_LENGTH and bool(_TOKEN_RE.match(token))


def can_redeem(token: InviteToken, principal: str) -> bool:
    if not token.is_active or token.usage_count >= token.max_uses:
        return False
    return token.bound_principal is None or token.bound_principal == principal


def split_tokens(tokens: list[InviteToken]) -> tuple[list[InviteToken], list[InviteToken]]:
    """(active, used) tokens for the admin panel."""
    active = [t for t in tokens if t.is_active and t.usage_count < t.max_uses]
    used = [t for t in tokens if t not in active]
    return active, used


def consume_invite_token(client: BackendClient, cache: QueryCache, token: str) -> None:
    token = (token or "").strip()
    if not validate_token_format(token):
        raise InputError("Please enter a valid invite token")

    def _consume():
        try:
            accepted = client.consume_invite_token(token)
        except BackendError as e:
            raise InviteTokenRejected(e.message) from e
        if not accepted:
            raise InviteTokenRejected("Invalid or expired token")

    cache.mutate("consumeInviteToken", _consume)
    logger.info("Invite token redeemed by %s", client.caller)


def create_invite_token(client: BackendClient, cache: QueryCache, max_uses: int,
                        bound_principal: str | None) -> InviteToken:
    if max_uses < 1:
        raise InputError("Max uses must be at least 1")
    bound = parse_principal(bound_principal) if bound_principal and bound_principal.strip() else None
    return cache.mutate("createInviteToken", lambda: client.create_invite_token(max_uses, bound))
