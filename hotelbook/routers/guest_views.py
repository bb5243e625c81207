from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from ..queries import QueryCache
from ..rpc import BackendClient
from ..security import Caller, get_cache, get_client, require_profile
from ..services.booking_rules import is_terminal
from ..templating import templates
from .bookings_views import guest_bookings_context

router = APIRouter(prefix="/guest", tags=["guest"])


@router.get("", response_class=HTMLResponse)
def guest_account(request: Request, caller: Caller = Depends(require_profile),
                  client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    ctx = guest_bookings_context(client, cache, caller)
    upcoming = [b for b in ctx["bookings"] if not is_terminal(b.status)]
    return templates.TemplateResponse(
        "guest.html",
        {"request": request, "viewer": caller, "profile": caller.profile, "upcoming": upcoming, **ctx},
    )
