from datetime import date, datetime, timezone

NS_PER_SECOND = 1_000_000_000
NS_PER_DAY = 86_400 * NS_PER_SECOND


def date_to_ns(d: date) -> int:
    """Midnight UTC of ``d`` as nanoseconds since the epoch."""
    dt = datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
    return int(dt.timestamp()) * NS_PER_SECOND


def ns_to_datetime(ns: int) -> datetime:
    return datetime.fromtimestamp(ns // NS_PER_SECOND, tz=timezone.utc)


def ns_to_date(ns: int) -> date:
    return ns_to_datetime(ns).date()


def now_ns() -> int:
    return int(datetime.now(tz=timezone.utc).timestamp() * NS_PER_SECOND)
