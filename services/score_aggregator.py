"""Score aggregator — found criteria → bounded score.

Each group is scored by the mode matching its shape:

* ``point`` groups (one enumerated point each) award their full mark value
  when their criterion is found, otherwise nothing.
* ``level`` and ``sentence`` groups award ``mark_value * found / total``.

Contributions are summed, rounded half up and clamped to ``[0, max_marks]``.
This is a live heuristic; it is never reconciled with the oracle's score.
"""

from __future__ import annotations

import math
from collections.abc import Collection

from models.rubric import CriterionGroup, GroupKind, RubricModel
from models.score import GroupScore, Score


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def group_contribution(group: CriterionGroup, found: Collection[str]) -> float:
    """Unrounded marks earned by ``group`` given the found criterion ids."""
    if not group.criteria:
        return 0.0
    hits = sum(1 for criterion in group.criteria if criterion.id in found)
    if group.kind is GroupKind.POINT:
        return float(group.mark_value) if hits else 0.0
    return group.mark_value * hits / len(group.criteria)


def aggregate_score(
    model: RubricModel,
    found: Collection[str],
    max_marks: int | None = None,
) -> Score:
    """Score ``model`` against the set of found criterion ids.

    Args:
        model: Parsed rubric. An empty model always scores 0.
        found: Ids of criteria the matcher found in the answer.
        max_marks: Upper bound; defaults to the model's own ``max_marks``.
    """
    limit = max_marks if max_marks and max_marks > 0 else model.max_marks
    per_group = []
    total = 0.0
    for group in model.groups:
        contribution = group_contribution(group, found)
        total += contribution
        awarded = min(group.mark_value, max(0, round_half_up(contribution)))
        per_group.append(GroupScore(group_id=group.id, awarded=awarded))

    bounded = min(limit, max(0, round_half_up(total)))
    return Score(total=bounded, max_marks=limit, per_group=tuple(per_group))
