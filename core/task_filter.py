from __future__ import annotations

from typing import Annotated, Iterator, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from core.filters import (
    ContainsStringFilter,
    ExactlyFilter,
    OnlyNone,
    OnlySome,
    Predicate,
    RangeFilter,
    SetFilter,
    none_or_passes,
)
from models.task import Task
from models.types import Timestamp


TagFilter = Annotated[
    Union[OnlySome[SetFilter[int]], OnlyNone],
    Field(discriminator="kind"),
]
OptionalTimeFilter = Annotated[
    Union[OnlySome[RangeFilter[Timestamp]], OnlyNone],
    Field(discriminator="kind"),
]


class TaskFilterOptions(BaseModel):
    """One optional predicate per filterable task field.

    A task passes when every present predicate passes for its field.
    """

    model_config = ConfigDict(frozen=True)

    id_filter: Optional[ExactlyFilter[int]] = None
    title_filter: Optional[ContainsStringFilter] = None
    tag_filter: Optional[TagFilter] = None
    body_filter: Optional[ContainsStringFilter] = None
    difficulty_filter: Optional[SetFilter[int]] = None
    create_time_filter: Optional[RangeFilter[Timestamp]] = None
    last_edit_time_filter: Optional[RangeFilter[Timestamp]] = None
    due_time_filter: Optional[OptionalTimeFilter] = None
    target_time_filter: Optional[OptionalTimeFilter] = None
    done_time_filter: Optional[OptionalTimeFilter] = None
    paused_filter: Optional[ExactlyFilter[bool]] = None

    def slots(self) -> Iterator[Tuple[str, Predicate]]:
        """Yield ``(task field, predicate)`` for every present slot."""

        for name in type(self).model_fields:
            predicate = getattr(self, name)
            if predicate is not None:
                yield name.removesuffix("_filter"), predicate

    def passes(self, task: Task) -> bool:
        return all(none_or_passes(predicate, getattr(task, field)) for field, predicate in self.slots())

    def __call__(self, task: Task) -> bool:
        return self.passes(task)

    @property
    def is_empty(self) -> bool:
        return next(self.slots(), None) is None


__all__ = ["OptionalTimeFilter", "TagFilter", "TaskFilterOptions"]
