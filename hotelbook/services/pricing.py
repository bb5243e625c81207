"""Integer-only room pricing: promo discounts and booking totals."""
from datetime import date

from ..errors import InputError


def validate_promo_percent(promo: int) -> bool:
    return 0 <= promo <= 100


def compute_discounted_price(base_price: int, promo_percent: int) -> int:
    """``base - base * promo / 100`` with floor division, never below 1."""
    if not validate_promo_percent(promo_percent):
        raise ValueError(f"promo percent must be between 0 and 100, got {promo_percent}")
    if promo_percent == 0:
        return base_price
    discount = (base_price * promo_percent) // 100
    discounted = base_price - discount
    return discounted if discounted > 0 else 1


def format_promo_display(promo_percent: int) -> str:
    return f"{promo_percent}% OFF" if promo_percent > 0 else "No promo"


def nights_between(check_in: date, check_out: date) -> int:
    nights = (check_out - check_in).days
    if nights < 1:
        raise InputError("Check-out must be after check-in")
    return nights


def compute_total_price(nightly_price: int, nights: int, rooms_count: int = 1) -> int:
    if nights < 1 or rooms_count < 1:
        raise InputError("A booking needs at least one night and one room")
    return nightly_price * nights * rooms_count
