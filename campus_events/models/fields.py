"""Parsing of loosely-typed stored values into typed results.

Rows written by older clients may carry a missing or malformed seat count,
and timestamps may arrive naive (SQLite), as ISO strings, epoch seconds or
``{"seconds": ...}`` mappings. These helpers are applied once, where values
leave the store.
"""
import math
from datetime import datetime, timezone
from numbers import Real
from typing import Any, Mapping, Optional


def parse_seat_count(value: Any, default: int) -> int:
    """Return ``value`` as an int if it is a finite integral number, else ``default``."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if not isinstance(value, Real):
        return default
    value = float(value)
    if not math.isfinite(value) or value != int(value):
        return default
    return int(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Coerce a stored timestamp to an aware UTC datetime, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        return parse_timestamp(seconds) if isinstance(seconds, Real) else None
    if isinstance(value, Real):
        if not math.isfinite(float(value)):
            return None
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return parse_timestamp(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None
