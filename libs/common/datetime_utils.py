"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from libs.common.config import get_settings

_ID_MONTHS_SHORT = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "Mei",
    "Jun",
    "Jul",
    "Agu",
    "Sep",
    "Okt",
    "Nov",
    "Des",
)


def utc_now() -> datetime:
    """Timezone-aware current UTC time; every stored timestamp uses it."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_id_date(value: datetime) -> str:
    """Format a timestamp the way the storefront shows dates, e.g. ``18 Okt 2026``."""
    local = as_utc(value).astimezone(ZoneInfo(get_settings().TIMEZONE))
    return f"{local.day} {_ID_MONTHS_SHORT[local.month - 1]} {local.year}"
