import logging

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import settings
from .errors import BackendError, GateRejected
from .limiter import limiter
from .queries import QueryCache
from .routers import auth_views, public_views, bookings_views, guest_views, account_views
from .routers import hotel_views, admin_views, ui_components
from .routers.common import safe_next
from .services.access import ActivationRequired, Denied, GuardFailed, LoginRequired, ProfileRequired
from .templating import TEMPLATES_DIR, flash, templates

# --- Logging configuration ---
_level = logging.DEBUG if getattr(settings, "DEBUG", False) else logging.INFO
logging.basicConfig(
    level=_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# Align uvicorn loggers with our level (useful under Docker Compose)
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_name).setLevel(_level)
logger = logging.getLogger("hotelbook.startup")


def _render_gate(request: Request, exc: GateRejected):
    decision = exc.decision
    ctx = {"request": request, "decision": decision, "next": request.url.path}
    if isinstance(decision, LoginRequired):
        return templates.TemplateResponse("auth/login.html", ctx, status_code=401)
    if isinstance(decision, GuardFailed):
        return templates.TemplateResponse("auth/guard_error.html", ctx, status_code=503)
    if isinstance(decision, ActivationRequired):
        ctx["needs_activation"] = True
        return templates.TemplateResponse("auth/access_denied.html", ctx, status_code=403)
    if isinstance(decision, Denied):
        ctx["needs_activation"] = False
        return templates.TemplateResponse("auth/access_denied.html", ctx, status_code=403)
    if isinstance(decision, ProfileRequired):
        return templates.TemplateResponse("auth/profile_required.html", ctx, status_code=200)
    raise TypeError(f"unhandled access decision {decision!r}")


def _backend_error(request: Request, exc: BackendError):
    """Last-resort handler: toast + redirect for form posts, error page for reads."""
    logger.warning("Unhandled backend error on %s %s: %s", request.method, request.url.path, exc)
    if request.method == "POST":
        flash(request, exc.message, "error")
        return RedirectResponse(url=safe_next(request.headers.get("referer"), "/"), status_code=303)
    return templates.TemplateResponse(
        "error.html", {"request": request, "message": exc.message}, status_code=502
    )


def create_app(transport=None, query_cache: QueryCache | None = None) -> FastAPI:
    """Build the app; ``transport`` replaces the HTTP transport to the backend."""
    logger.info("Starting %s (DEBUG=%s, backend=%s)", settings.APP_NAME, settings.DEBUG, settings.BACKEND_URL)

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        description=f"{settings.APP_NAME}: hotel browsing, booking and property management.",
    )

    # Session storage carries toast notifications between redirects
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        max_age=settings.SESSION_MAX_AGE_DAYS * 24 * 60 * 60 # days in seconds
    )

    app.state.backend_transport = transport
    app.state.query_cache = query_cache or QueryCache(
        stale_seconds=settings.QUERY_STALE_SECONDS, retry=settings.QUERY_RETRY
    )

    # Add the limiter to the app state
    app.state.limiter = limiter
    # Add the exception handler for rate limit exceeded errors
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(GateRejected, _render_gate)
    app.add_exception_handler(BackendError, _backend_error)

    app.include_router(public_views.router)
    app.include_router(auth_views.router)
    app.include_router(bookings_views.router)
    app.include_router(guest_views.router)
    app.include_router(account_views.router)
    app.include_router(hotel_views.router)
    app.include_router(admin_views.router)
    app.include_router(ui_components.router)

    app.mount("/static", StaticFiles(directory=str(TEMPLATES_DIR.parent / "static"), check_dir=False), name="static")

    @app.get("/healthz")
    @limiter.exempt
    def healthz():
        return {"status": "ok"}

    return app


app = create_app()
