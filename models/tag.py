# taskkeeper/models/tag.py
from __future__ import annotations

from typing import Optional

from sqlmodel import Field, SQLModel

from models.color import HslColor
from models.types import Timestamp
from utils.datetime_utils import from_epoch


class EditableTagData(SQLModel):
    """Fields of a tag the caller supplies on create and update."""

    name: str
    color: HslColor
    active: bool


class GeneratedTagData(SQLModel):
    """Fields of a tag assigned by the store on create."""

    id: int
    create_time: Timestamp


class Tag(EditableTagData):
    id: int
    create_time: Timestamp

    @classmethod
    def from_parts(cls, editable: EditableTagData, generated: GeneratedTagData) -> "Tag":
        return cls(
            id=generated.id,
            name=editable.name,
            color=editable.color,
            active=editable.active,
            create_time=generated.create_time,
        )

    @property
    def editable(self) -> EditableTagData:
        return EditableTagData(name=self.name, color=self.color, active=self.active)


class TagRow(SQLModel, table=True):
    __tablename__ = "tags"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    color: int
    active: bool
    create_time: int

    def to_tag(self) -> Tag:
        return Tag(
            id=self.id,
            name=self.name,
            color=HslColor.from_int(self.color),
            active=self.active,
            create_time=from_epoch(self.create_time),
        )


class TaskTag(SQLModel, table=True):
    """Link between a task and its (at most one) tag."""

    __tablename__ = "task_tags"

    task_id: int = Field(primary_key=True)
    tag_id: int = Field(primary_key=True, index=True)


__all__ = ["EditableTagData", "GeneratedTagData", "Tag", "TagRow", "TaskTag"]
