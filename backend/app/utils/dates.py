"""Datetime parsing shared by the campaign and reminder services.

All DateTime columns store naive UTC, so every inbound value is normalized
here before it reaches the ORM.
"""

from datetime import date, datetime, timezone
from typing import Any, Optional

from ..exceptions import ValidationError


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_datetime(value: Any, field: str) -> Optional[datetime]:
    """Parse a datetime, date or ISO-8601 string (trailing 'Z' allowed).

    WHAT: Accept what JSON clients send and what Python callers pass
    WHY: Frontends send `2026-10-19T12:00:00.000Z`; older Pythons reject the 'Z'

    Raises:
        ValidationError: Value is not a datetime and cannot be parsed as one.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            return to_naive_utc(datetime.fromisoformat(raw))
        except ValueError:
            pass
    raise ValidationError(f"{field} must be a valid ISO-8601 date")
