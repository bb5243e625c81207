from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from .config import settings
from .principal import short_principal
from .services.access import role_label, role_of
from .services.booking_rules import status_label, status_variant
from .services.currency import format_money, get_currency_name, get_currency_symbol
from .services.pricing import format_promo_display
from .timeutil import ns_to_date, ns_to_datetime

TEMPLATES_DIR = Path(__file__).parent / "templates"


def flash(request: Request, message: str, level: str = "success") -> None:
    """Queue a toast notification shown on the next rendered page."""
    request.session.setdefault("toasts", []).append({"level": level, "message": message})


def pop_toasts(request: Request) -> list[dict]:
    if "session" not in request.scope:
        return []
    return request.session.pop("toasts", [])


def ns_date_filter(ns: int) -> str:
    return ns_to_date(int(ns)).isoformat() if ns else "-"


def ns_datetime_filter(ns: int) -> str:
    return ns_to_datetime(int(ns)).strftime("%Y-%m-%d %H:%M UTC") if ns else "-"


# Create a single, shared Jinja2Templates instance
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["money"] = format_money
templates.env.filters["currency_symbol"] = get_currency_symbol
templates.env.filters["currency_name"] = get_currency_name
templates.env.filters["ns_date"] = ns_date_filter
templates.env.filters["ns_datetime"] = ns_datetime_filter
templates.env.filters["booking_status_label"] = status_label
templates.env.filters["booking_status_variant"] = status_variant
templates.env.filters["promo"] = format_promo_display
templates.env.filters["short_principal"] = short_principal
templates.env.globals["pop_toasts"] = pop_toasts
templates.env.globals["caller_role_label"] = lambda role: role_label(role_of(role))
templates.env.globals["role_label"] = role_label
templates.env.globals["app_name"] = settings.APP_NAME
