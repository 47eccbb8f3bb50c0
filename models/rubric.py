"""Rubric models — the structured form of a free-text mark scheme.

A ``RubricModel`` is rebuilt wholesale whenever the rubric text changes and
is never mutated afterwards; the rubric cache hands the same instance to every
live-analysis pass that reads it.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from models.base import FrozenCamelModel


class RubricDialect(str, Enum):
    """Which mark-scheme layout the parser recognized."""

    LEVEL = "level"  # "Level 2 (3-4 marks)" / "Band 1 (1 mark)" headers
    ENUMERATED = "enumerated"  # "Award marks for: 1) ... (1 mark), 2) ..."
    FALLBACK = "fallback"  # plain prose split into sentences
    EMPTY = "empty"


class GroupKind(str, Enum):
    """Shape of a group; selects the scoring mode applied to it."""

    LEVEL = "level"
    POINT = "point"
    SENTENCE = "sentence"


class Criterion(FrozenCamelModel):
    """One atomic required point."""

    id: str
    text: str
    extra_info: str | None = None  # do-not-accept / allow / ignore notes
    spec_ref: str | None = None


class CriterionGroup(FrozenCamelModel):
    """A cluster of criteria sharing a mark value."""

    id: str
    label: str
    kind: GroupKind
    mark_value: int = Field(ge=0)
    criteria: tuple[Criterion, ...] = ()


class RubricModel(FrozenCamelModel):
    """Ordered list of criterion groups parsed from one rubric text."""

    dialect: RubricDialect = RubricDialect.EMPTY
    max_marks: int = Field(default=10, gt=0)
    groups: tuple[CriterionGroup, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.groups

    def iter_criteria(self):
        """Yield ``(group, criterion)`` pairs in rubric order."""
        for group in self.groups:
            for criterion in group.criteria:
                yield group, criterion

    def criteria_by_id(self) -> dict[str, Criterion]:
        return {criterion.id: criterion for _, criterion in self.iter_criteria()}
