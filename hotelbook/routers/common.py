from urllib.parse import urlparse

from fastapi import Request
from fastapi.responses import RedirectResponse

from ..errors import BackendError, InputError, InvalidTransitionError, InviteTokenRejected
from ..templating import flash

# Errors a form post turns into an error toast
USER_FACING_ERRORS = (BackendError, InputError, InvalidTransitionError, InviteTokenRejected)


def safe_next(next_url: str | None, fallback: str = "/") -> str:
    """Same-site path (and query) from ``next_url``; ``fallback`` otherwise."""
    if not next_url:
        return fallback
    parsed = urlparse(next_url)
    if parsed.scheme or parsed.netloc:
        return fallback
    path = parsed.path or ""
    if not path.startswith("/") or path.startswith("//"):
        return fallback
    return f"{path}?{parsed.query}" if parsed.query else path


def see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


def error_message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc)


def perform(request: Request, action, success: str | None = None, failure: str | None = None) -> bool:
    """Run a mutation for a form post and queue the matching toast."""
    try:
        action()
    except USER_FACING_ERRORS as e:
        msg = error_message(e)
        flash(request, f"{failure}: {msg}" if failure else msg, "error")
        return False
    if success:
        flash(request, success)
    return True
