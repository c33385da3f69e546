# taskkeeper/models/task.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from models.types import Timestamp
from utils.datetime_utils import from_epoch, to_epoch


class EditableTaskData(SQLModel):
    """Fields of a task the caller supplies on create and update."""

    title: str
    tag: Optional[int] = None
    body: str = ""
    difficulty: int = Field(default=0, ge=-(2**31), le=2**31 - 1)
    due_time: Optional[Timestamp] = None
    target_time: Optional[Timestamp] = None
    paused: bool = False


class GeneratedTaskData(SQLModel):
    """Fields of a task assigned by the store on create."""

    id: int
    create_time: Timestamp
    last_edit_time: Timestamp
    done_time: Optional[Timestamp] = None


class ModifiedTaskData(SQLModel):
    last_edit_time: Timestamp


class FinishedTaskData(SQLModel):
    done_time: Optional[Timestamp] = None


class Task(EditableTaskData):
    id: int
    create_time: Timestamp
    last_edit_time: Timestamp
    done_time: Optional[Timestamp] = None

    @property
    def is_done(self) -> bool:
        return self.done_time is not None

    @classmethod
    def from_parts(cls, editable: EditableTaskData, generated: GeneratedTaskData) -> "Task":
        return cls(
            id=generated.id,
            title=editable.title,
            tag=editable.tag,
            body=editable.body,
            difficulty=editable.difficulty,
            create_time=generated.create_time,
            last_edit_time=generated.last_edit_time,
            due_time=editable.due_time,
            target_time=editable.target_time,
            done_time=generated.done_time,
            paused=editable.paused,
        )

    @property
    def editable(self) -> EditableTaskData:
        return EditableTaskData(
            title=self.title,
            tag=self.tag,
            body=self.body,
            difficulty=self.difficulty,
            due_time=self.due_time,
            target_time=self.target_time,
            paused=self.paused,
        )


class TaskRow(SQLModel, table=True):
    __tablename__ = "tasks"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    body: str
    difficulty: int
    create_time: int
    last_edit_time: int
    due_time: Optional[int] = None
    target_time: Optional[int] = None
    done_time: Optional[int] = None
    paused: bool

    @staticmethod
    def editable_columns(data: EditableTaskData) -> dict:
        """Column values for the editable part of a task (the tag lives in ``task_tags``)."""

        return {
            "title": data.title,
            "body": data.body,
            "difficulty": data.difficulty,
            "due_time": to_epoch(data.due_time),
            "target_time": to_epoch(data.target_time),
            "paused": data.paused,
        }

    @classmethod
    def create(cls, data: EditableTaskData, now: datetime) -> "TaskRow":
        stamp = to_epoch(now)
        return cls(create_time=stamp, last_edit_time=stamp, **cls.editable_columns(data))

    def to_task(self, tag_id: Optional[int]) -> Task:
        return Task(
            id=self.id,
            title=self.title,
            tag=tag_id,
            body=self.body,
            difficulty=self.difficulty,
            create_time=from_epoch(self.create_time),
            last_edit_time=from_epoch(self.last_edit_time),
            due_time=from_epoch(self.due_time),
            target_time=from_epoch(self.target_time),
            done_time=from_epoch(self.done_time),
            paused=self.paused,
        )


__all__ = [
    "EditableTaskData",
    "FinishedTaskData",
    "GeneratedTaskData",
    "ModifiedTaskData",
    "Task",
    "TaskRow",
]
