"""Timestamp parsing and formatting with UTC enforcement.

Records carry their modification dates in whatever shape the data source
produces: ISO 8601 strings (with `Z` or an offset, or naive), epoch numbers in
seconds or milliseconds, or already-parsed datetimes. Everything is converted
to timezone-aware UTC so lastmod values compare and serialize consistently.

Conversion Heuristic (epoch numbers):
    Values < 1_000_000_000_000 treated as seconds
    Values >= 1_000_000_000_000 treated as milliseconds

Design Invariant:
    Naive datetimes never leave this module, and the package never reads a
    naive clock (a test scans the sources for it).
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

__all__ = ["epoch_ms_to_dt", "parse_timestamp", "format_lastmod"]


def epoch_ms_to_dt(ms: int | float) -> datetime:
    """Convert epoch timestamp (milliseconds or seconds) to timezone-aware UTC datetime."""
    if ms < 1_000_000_000_000:
        return datetime.fromtimestamp(ms, tz=timezone.utc)
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a record timestamp into an aware UTC datetime.

    Returns None for empty values. Raises ValueError for values that cannot be
    interpreted; callers decide whether that is fatal.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _ensure_utc(value)
    if isinstance(value, bool):
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    if isinstance(value, (int, float)):
        return epoch_ms_to_dt(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        return _ensure_utc(datetime.fromisoformat(text))
    raise ValueError(f"Unsupported timestamp value: {value!r}")


def format_lastmod(dt: datetime) -> str:
    """Format as ISO 8601 UTC with millisecond precision, e.g. 2024-01-02T03:04:05.000Z."""
    utc = _ensure_utc(dt)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")
