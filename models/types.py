"""Shared field types for the value models."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BeforeValidator, PlainSerializer

from utils.datetime_utils import from_epoch, to_epoch, truncate_seconds


def _from_epoch_seconds(value: Any) -> Any:
    # Numbers are always seconds; pydantic's own parsing would read large ones as milliseconds.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    try:
        return from_epoch(value)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"timestamp {value} is out of range") from exc


# UTC, whole seconds in Python; integer epoch seconds once serialized.
Timestamp = Annotated[
    datetime,
    BeforeValidator(_from_epoch_seconds),
    AfterValidator(truncate_seconds),
    PlainSerializer(to_epoch, return_type=int),
]


__all__ = ["Timestamp"]
