"""Span and segment models — matches, resolved highlights, display output."""

from __future__ import annotations

from enum import Enum

from pydantic import Field, field_serializer, model_validator

from models.base import CamelModel, FrozenCamelModel


class HighlightType(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class MatchSpan(FrozenCamelModel):
    """A raw phrase match in the answer text. Raw spans may overlap."""

    start: int = Field(ge=0)
    end: int
    criterion_id: str
    group_id: str
    matched_text: str

    @model_validator(mode="after")
    def _check_range(self) -> "MatchSpan":
        if self.end <= self.start:
            raise ValueError(f"empty or inverted span [{self.start}, {self.end})")
        return self

    @property
    def length(self) -> int:
        return self.end - self.start


class DisplaySpan(FrozenCamelModel):
    """A resolved highlight; resolved lists never overlap."""

    start: int = Field(ge=0)
    end: int
    highlight_type: HighlightType = HighlightType.SUCCESS
    tooltip: str | None = None
    contributing_criteria: frozenset[str] = frozenset()

    @model_validator(mode="after")
    def _check_range(self) -> "DisplaySpan":
        if self.end <= self.start:
            raise ValueError(f"empty or inverted span [{self.start}, {self.end})")
        return self

    @field_serializer("contributing_criteria")
    def _serialize_criteria(self, value: frozenset[str]) -> list[str]:
        return sorted(value)


class DisplaySegment(CamelModel):
    """One piece of rendered answer text.

    Plain segments carry no ``highlight_type``; concatenating the ``text`` of
    all segments in order reproduces the answer exactly.
    """

    text: str
    highlight_type: HighlightType | None = None
    tooltip: str | None = None

    @property
    def is_highlighted(self) -> bool:
        return self.highlight_type is not None
