import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse

from ..models import UserProfile
from ..queries import ROLE_QUERIES, QueryCache
from ..rpc import BackendClient
from ..security import Caller, get_cache, get_client, lookup_role, require_login
from ..services.access import Admin, Guest, HotelOwner, role_label, role_of
from ..templating import templates
from .common import perform, safe_next, see_other

logger = logging.getLogger(__name__)

router = APIRouter(tags=["account"])


def _profile_errors(name: str, email: str) -> dict:
    errors = {}
    if not name.strip():
        errors["name"] = "Name is required"
    if email.strip() and "@" not in email:
        errors["email"] = "Enter a valid email address"
    return errors


@router.get("/account", response_class=HTMLResponse)
def account(request: Request, caller: Caller = Depends(require_login)):
    return templates.TemplateResponse(
        "account.html",
        {"request": request, "viewer": caller, "profile": caller.profile, "errors": {}, "next": "/account"},
    )


@router.post("/account/profile")
def account_save_profile(request: Request, name: str = Form(""), email: str = Form(""), phone: str = Form(""),
                         next: str = Form("/account"), caller: Caller = Depends(require_login),
                         client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    errors = _profile_errors(name, email)
    if errors:
        form = {"name": name, "email": email, "phone": phone}
        return templates.TemplateResponse(
            "account.html",
            {"request": request, "viewer": caller, "profile": form, "errors": errors, "next": safe_next(next, "/account")},
            status_code=400,
        )
    profile = UserProfile(name=name.strip(), email=email.strip() or None, phone=phone.strip() or None)
    if perform(request, lambda: cache.mutate("saveCallerUserProfile", lambda: client.save_caller_user_profile(profile)),
               success="Profile saved", failure="Could not save profile"):
        return see_other(safe_next(next, "/account"))
    return see_other("/account")


def _activation_text(role) -> str:
    if isinstance(role, Admin):
        return "Not required (admin)"
    if isinstance(role, HotelOwner):
        return "Activated" if role.activated else "Pending activation"
    if isinstance(role, Guest):
        return "Not applicable"
    raise TypeError(f"unhandled caller role {role!r}")


@router.get("/account-status", response_class=HTMLResponse)
def account_status(request: Request, client: BackendClient = Depends(get_client),
                   cache: QueryCache = Depends(get_cache)):
    ctx = {"request": request, "principal": client.caller}
    if client.caller:
        lookup, hotel, user_role, is_admin = lookup_role(client, cache)
        ctx.update(error=lookup.error, hotel=hotel, is_admin=is_admin)
        if lookup.caller is not None:
            ctx.update(
                role=lookup.caller,
                role_text=role_label(role_of(lookup.caller)),
                activation=_activation_text(lookup.caller),
                viewer=Caller(client.caller, lookup.caller, user_role, is_admin, hotel),
            )
    return templates.TemplateResponse("account_status.html", ctx)


@router.post("/account-status/make-admin")
def account_make_admin(request: Request, caller: Caller = Depends(require_login),
                       client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    if perform(request, lambda: cache.mutate("makeMeAdmin", client.make_me_admin),
               success="You are now an admin", failure="Could not grant admin"):
        logger.info("Admin role granted to %s", caller.principal)
    return see_other("/account-status")


@router.post("/account-status/refresh")
def account_refresh(request: Request, cache: QueryCache = Depends(get_cache)):
    cache.invalidate(*ROLE_QUERIES, "callerHotelProfile", "currentUserProfile")
    return see_other("/account-status")
