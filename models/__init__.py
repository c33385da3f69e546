"""Value records and ORM tables exposed by the TaskKeeper store."""
from .color import HslColor
from .tag import EditableTagData, GeneratedTagData, Tag, TagRow, TaskTag
from .task import (
    EditableTaskData,
    FinishedTaskData,
    GeneratedTaskData,
    ModifiedTaskData,
    Task,
    TaskRow,
)

__all__ = [
    "EditableTagData",
    "EditableTaskData",
    "FinishedTaskData",
    "GeneratedTagData",
    "GeneratedTaskData",
    "HslColor",
    "ModifiedTaskData",
    "Tag",
    "TagRow",
    "Task",
    "TaskRow",
    "TaskTag",
]
