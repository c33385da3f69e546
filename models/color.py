# taskkeeper/models/color.py
from __future__ import annotations

from sqlmodel import Field, SQLModel


class HslColor(SQLModel):
    """A color in the HSL space, stored in a single INTEGER column."""

    hue: int = Field(ge=0, le=0xFFFF)
    saturation: int = Field(ge=0, le=0xFF)
    lightness: int = Field(ge=0, le=0xFF)

    def to_int(self) -> int:
        return (self.hue << 16) | (self.saturation << 8) | self.lightness

    @classmethod
    def from_int(cls, value: int) -> "HslColor":
        return cls(
            hue=(value >> 16) & 0xFFFF,
            saturation=(value >> 8) & 0xFF,
            lightness=value & 0xFF,
        )


__all__ = ["HslColor"]
