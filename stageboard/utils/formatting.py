"""Display formatting for amounts, durations and timestamps."""
import math
from datetime import datetime, timedelta
from typing import Optional

DAY = timedelta(days=1)


def format_eur(value: float) -> str:
    """Format an amount the German way, e.g. ``1.234,50 €``."""
    text = f"{value:,.2f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{text} €"


def format_usd(value: float) -> str:
    """Format a dollar amount with thousands separators, e.g. ``$1,250``."""
    if float(value).is_integer():
        return f"${int(value):,}"
    return f"${value:,.2f}"


def format_processing_time(ms: int) -> str:
    if ms < 1000:
        return f"{ms}ms"
    return f"{ms / 1000:.1f}s"


def format_relative(when: datetime, now: Optional[datetime] = None) -> str:
    """Short relative age: ``5m ago``, ``3h ago``, ``Yesterday``, ``4d ago`` or a date."""
    now = now or datetime.now()
    diff = now - when
    days = math.floor(diff / DAY)

    if days == 0:
        hours = math.floor(diff / timedelta(hours=1))
        if hours == 0:
            return f"{math.floor(diff / timedelta(minutes=1))}m ago"
        return f"{hours}h ago"
    if days == 1:
        return "Yesterday"
    if 1 < days < 7:
        return f"{days}d ago"
    return when.strftime("%b %d").replace(" 0", " ")


def format_datetime(when: Optional[datetime]) -> str:
    if when is None:
        return "-"
    return when.strftime("%d.%m. %H:%M")


def days_until(when: datetime, now: Optional[datetime] = None) -> int:
    """Whole days remaining until ``when``, rounded up."""
    now = now or datetime.now()
    return math.ceil((when - now) / DAY)


def start_of_day(when: datetime) -> datetime:
    return when.replace(hour=0, minute=0, second=0, microsecond=0)
