"""Utilities for working with whole-second UTC timestamps."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

UTC = timezone.utc


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def truncate_seconds(dt: Optional[datetime]) -> Optional[datetime]:
    """Return ``dt`` in UTC with the sub-second part dropped."""

    normalized = ensure_utc(dt)
    if normalized is None:
        return None
    return normalized.replace(microsecond=0)


def utc_now() -> datetime:
    """Current time in UTC with second resolution."""

    return datetime.now(UTC).replace(microsecond=0)


def to_epoch(dt: Optional[datetime]) -> Optional[int]:
    if dt is None:
        return None
    return int(ensure_utc(dt).timestamp())


def from_epoch(value: Optional[Union[int, float]]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), UTC)


__all__ = [
    "UTC",
    "ensure_utc",
    "from_epoch",
    "to_epoch",
    "truncate_seconds",
    "utc_now",
]
