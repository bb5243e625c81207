import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse

from ..config import settings
from ..errors import InputError
from ..limiter import limiter
from ..principal import Principal
from ..queries import ROLE_QUERIES, QueryCache
from ..security import clear_session, get_cache, set_session
from ..templating import flash, templates
from .common import safe_next, see_other

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request, next: str = "/"):
    return templates.TemplateResponse("auth/login.html", {"request": request, "next": safe_next(next)})


@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_AUTH)
def login(request: Request, principal: str = Form(...), next: str = Form("/"),
          cache: QueryCache = Depends(get_cache)):
    """Accept the principal returned by the identity provider and remember it."""
    try:
        p = Principal.from_text(principal)
        if p.is_anonymous():
            raise InputError("The anonymous identity cannot sign in")
    except InputError as e:
        return templates.TemplateResponse(
            "auth/login.html",
            {"request": request, "error": str(e), "next": safe_next(next), "principal": principal},
            status_code=400,
        )
    text = p.to_text()
    # roles may differ from whatever this browser cached before
    cache.invalidate(*ROLE_QUERIES, "callerHotelProfile", "currentUserProfile")
    logger.info("Signed in as %s", text)
    response = see_other(safe_next(next))
    set_session(response, text)
    flash(request, "Signed in")
    return response


@router.post("/logout")
def logout(request: Request):
    response = see_other("/")
    clear_session(response)
    request.session.clear()
    return response


@router.post("/recheck")
def recheck(request: Request, next: str = Form("/"), cache: QueryCache = Depends(get_cache)):
    """Retry a failed permission check by dropping the cached role answers."""
    cache.invalidate(*ROLE_QUERIES, "callerHotelProfile")
    return see_other(safe_next(next))
