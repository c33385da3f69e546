"""Composable value predicates.

Each filter is a small immutable pydantic model with a ``passes`` method and a
``kind`` tag, so a combination of filters can be stored or sent as JSON and
read back into the same predicate.
"""
from __future__ import annotations

from typing import Any, FrozenSet, Generic, Literal, Optional, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict


T = TypeVar("T")
F = TypeVar("F")


class Predicate(Protocol):
    def passes(self, value: Any) -> bool: ...


class _Filter(BaseModel):
    model_config = ConfigDict(frozen=True)


class ExactlyFilter(_Filter, Generic[T]):
    kind: Literal["exactly"] = "exactly"
    value: T

    def passes(self, value: T) -> bool:
        return value == self.value


class ContainsStringFilter(_Filter):
    kind: Literal["contains"] = "contains"
    pattern: str

    def passes(self, value: str) -> bool:
        return self.pattern in value


class SetFilter(_Filter, Generic[T]):
    kind: Literal["set"] = "set"
    members: FrozenSet[T]

    def passes(self, value: T) -> bool:
        return value in self.members


class RangeFilter(_Filter, Generic[T]):
    """Inclusive range; a missing bound leaves that side open."""

    kind: Literal["range"] = "range"
    lower: Optional[T] = None
    upper: Optional[T] = None

    def passes(self, value: T) -> bool:
        if self.lower is not None and value < self.lower:
            return False
        if self.upper is not None and value > self.upper:
            return False
        return True


class OnlySome(_Filter, Generic[F]):
    """Accepts present values whose content passes ``inner``."""

    kind: Literal["only_some"] = "only_some"
    inner: F

    def passes(self, value: Any) -> bool:
        return value is not None and self.inner.passes(value)


class OnlyNone(_Filter):
    kind: Literal["only_none"] = "only_none"

    def passes(self, value: Any) -> bool:
        return value is None


def none_or_passes(predicate: Optional[Predicate], value: Any) -> bool:
    """An absent predicate imposes no constraint."""

    return predicate is None or predicate.passes(value)


__all__ = [
    "ContainsStringFilter",
    "ExactlyFilter",
    "OnlyNone",
    "OnlySome",
    "Predicate",
    "RangeFilter",
    "SetFilter",
    "none_or_passes",
]
