"""Helpers for the ISO 8601 strings exchanged with clients.

Stored datetimes are naive UTC (SQLite drops offsets and PostgreSQL
``timestamp without time zone`` does the same), so everything entering a
query is normalized to naive UTC first.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso(value: str) -> datetime:
    """Parse an ISO 8601 date or datetime into naive UTC.

    Raises ``ValueError`` when ``value`` is not ISO 8601.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # date-only values come back as midnight
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def get_iso_date(value: Optional[str]) -> Optional[datetime]:
    """Convert a query string time parameter into naive UTC.

    Empty values mean "no bound". A space is read as ``+`` because an
    unescaped offset such as ``+13:00`` arrives as `` 13:00``.
    """
    if value is None or not value.strip():
        return None
    return parse_iso(value.strip().replace(" ", "+"))


def try_parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parse_iso(value)
    except ValueError:
        return None


def utc_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a naive UTC datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


__all__ = ["utcnow", "parse_iso", "get_iso_date", "try_parse_iso", "utc_iso"]
