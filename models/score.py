"""Score models."""

from __future__ import annotations

from pydantic import Field, model_validator

from models.base import FrozenCamelModel


class GroupScore(FrozenCamelModel):
    group_id: str
    awarded: int = Field(ge=0)


class Score(FrozenCamelModel):
    """Bounded score: ``0 <= total <= max_marks``."""

    total: int = Field(ge=0)
    max_marks: int = Field(gt=0)
    per_group: tuple[GroupScore, ...] = ()

    @model_validator(mode="after")
    def _check_bounds(self) -> "Score":
        if self.total > self.max_marks:
            raise ValueError(f"total {self.total} exceeds max marks {self.max_marks}")
        return self
