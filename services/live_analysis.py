"""Live analysis — one marking pass per answer edit.

``analyze_answer`` is a pure function of ``(rubric text, max marks, answer
text)``: the compiled rubric comes from the value-keyed cache, everything else
is rebuilt from scratch.  Callers discard a result if a newer edit has
arrived (last write wins), so no state is shared between passes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Collection
from typing import Any

from config.settings import get_settings
from models.highlight import DisplaySegment
from models.oracle import OracleResponse
from models.request import GroupCoverage, LiveAnalysis
from models.rubric import RubricModel
from models.score import Score
from services.answer_matcher import match_answer
from services.highlight_renderer import render_highlights, render_segments
from services.metrics import MetricsCollector, get_metrics_collector
from services.rubric_cache import RubricCache, get_rubric_cache
from services.score_aggregator import aggregate_score
from services.span_resolver import resolve_spans

logger = logging.getLogger(__name__)


def build_coverage(model: RubricModel, score: Score, found: Collection[str]) -> tuple[GroupCoverage, ...]:
    awarded = {entry.group_id: entry.awarded for entry in score.per_group}
    rows = []
    for group in model.groups:
        hits = sum(1 for criterion in group.criteria if criterion.id in found)
        rows.append(
            GroupCoverage(
                group_id=group.id,
                label=group.label,
                mark_value=group.mark_value,
                found=hits > 0,
                criteria_found=hits,
                criteria_total=len(group.criteria),
                awarded=awarded.get(group.id, 0),
                first_criterion=group.criteria[0].text if group.criteria else None,
            )
        )
    return tuple(rows)


def analyze_answer(
    rubric_text: str | None,
    answer_text: str | None,
    max_marks: Any = None,
    *,
    cache: RubricCache | None = None,
    metrics: MetricsCollector | None = None,
) -> LiveAnalysis:
    """Match ``answer_text`` against the rubric and score it.

    Blank rubric or blank answer degrade to score 0 with no highlights; the
    answer is still returned as plain segments so the display stays lossless.
    """
    if cache is None:
        cache = get_rubric_cache()
    if metrics is None:
        metrics = get_metrics_collector()
    answer = answer_text or ""
    started = time.perf_counter()

    compiled = cache.get(rubric_text, max_marks)
    model = compiled.model

    match_started = time.perf_counter()
    result = match_answer(answer, compiled.index)
    metrics.record("match", (time.perf_counter() - match_started) * 1000)

    spans = resolve_spans(result.spans, compiled.criteria)
    score = aggregate_score(model, result.found)
    segments = render_segments(answer, spans)

    elapsed_ms = (time.perf_counter() - started) * 1000
    metrics.record("analyze", elapsed_ms)
    budget = get_settings().live_analysis_budget_ms
    if elapsed_ms > budget:
        logger.warning(
            "Live analysis took %.1fms (budget %.0fms): %d criteria, %d chars",
            elapsed_ms, budget, len(compiled.criteria), len(answer),
        )

    return LiveAnalysis(
        score=score,
        spans=tuple(spans),
        segments=tuple(segments),
        coverage=build_coverage(model, score, result.found),
    )


def render_feedback(answer_text: str | None, feedback: OracleResponse) -> list[DisplaySegment]:
    """Render an oracle (or local fallback) response over the answer text."""
    return render_highlights(answer_text or "", feedback.highlights)
