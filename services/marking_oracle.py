"""Marking oracle edge — authoritative LLM marking with a local fallback.

The oracle itself is an external examiner model reached through LiteLLM.
This module owns only its boundary: building the prompt, turning the reply
into an ``OracleResponse``, and substituting a deterministic length-based
result whenever the call or its payload fails.  The oracle's score is never
reconciled with the live-analysis score.
"""

from __future__ import annotations

import json
import logging
import math
import re
import time
from typing import Any

import litellm
from pydantic import ValidationError

from config.llm_config import LLMConfig
from config.prompts.marking import MARKING_SYSTEM_PROMPT, MARKING_USER_TEMPLATE
from config.settings import get_settings
from errors.exceptions import OracleError, OracleResponseError
from models.highlight import HighlightType
from models.oracle import OracleAnalysis, OracleHighlight, OracleRequest, OracleResponse
from services.concurrency import rate_limited_llm_call
from services.metrics import MetricsCollector, get_metrics_collector
from services.score_aggregator import round_half_up

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_ANALYSIS_KEYS = ("strengths", "weaknesses", "improvements", "missingPoints")


# ── Fallback ─────────────────────────────────────────────────


def build_fallback_feedback(question_text: str, answer_text: str, max_marks: int) -> OracleResponse:
    """Coarse length-based result used when the oracle is unavailable.

    Up to 60% of the marks come from answer length (one mark per 50
    characters), up to 40% from answer length relative to question length.
    A single generic highlight comments on the length.
    """
    answer_length = len(answer_text)
    question_length = max(len(question_text), 1)

    length_score = min(max_marks * 0.6, answer_length // 50)
    content_score = min(
        max_marks * 0.4,
        math.floor(answer_length / question_length * max_marks * 0.4),
    )
    score = min(max_marks, round_half_up(length_score + content_score))

    if answer_length > 100:
        highlight = OracleHighlight(text="Good answer length", type=HighlightType.SUCCESS)
    elif answer_length > 50:
        highlight = OracleHighlight(
            text="Answer could be longer",
            type=HighlightType.WARNING,
            tooltip="Consider adding more detail to your answer",
        )
    else:
        highlight = OracleHighlight(
            text="Answer is too short",
            type=HighlightType.ERROR,
            tooltip="Your answer needs more detail and explanation",
        )

    return OracleResponse(score=max(0, score), max_score=max_marks, highlights=[highlight])


# ── Prompt & payload ─────────────────────────────────────────


def build_marking_messages(request: OracleRequest) -> list[dict]:
    return [
        {"role": "system", "content": MARKING_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": MARKING_USER_TEMPLATE.format(
                question=request.question_text or "Practice Question",
                answer=request.answer_text,
                rubric=request.rubric_text,
                max_marks=request.max_marks,
            ),
        },
    ]


def _strip_code_fence(text: str) -> str:
    return _CODE_FENCE.sub("", text.strip()).strip()


def _parse_highlights(raw: list, model: str) -> list[OracleHighlight]:
    highlights = []
    for item in raw:
        try:
            highlights.append(OracleHighlight.model_validate(item))
        except ValidationError:
            logger.debug("Dropping malformed highlight from %s: %r", model, item)
    return highlights


def _parse_analysis(data: dict) -> OracleAnalysis:
    analysis = data.get("analysis")
    merged: dict[str, Any] = dict(analysis) if isinstance(analysis, dict) else {}
    # Older replies put the lists at top level.
    for key in _ANALYSIS_KEYS:
        if key not in merged and isinstance(data.get(key), list):
            merged[key] = data[key]
    cleaned = {
        key: [str(v) for v in merged[key] if isinstance(v, (str, int, float))]
        for key in _ANALYSIS_KEYS
        if isinstance(merged.get(key), list)
    }
    return OracleAnalysis.model_validate(cleaned)


def parse_oracle_payload(text: str | None, max_marks: int, model: str = "oracle") -> OracleResponse:
    """Decode an oracle reply into an ``OracleResponse``.

    Accepts JSON optionally wrapped in a Markdown code fence.  ``score`` must
    be a number and ``highlights`` a list; malformed highlight entries are
    dropped.  The score is clamped into ``[0, max_marks]`` and ``maxScore``
    is forced to ``max_marks``.

    Raises:
        OracleResponseError: If the reply is empty, not JSON, or misses the
            required fields.
    """
    if not text or not text.strip():
        raise OracleResponseError(model, "empty response")

    cleaned = _strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise OracleResponseError(model, f"invalid JSON: {exc.msg}", cleaned) from exc

    if not isinstance(data, dict):
        raise OracleResponseError(model, "expected a JSON object", cleaned)
    score = data.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not math.isfinite(score):
        raise OracleResponseError(model, "missing numeric score", cleaned)
    if not isinstance(data.get("highlights"), list):
        raise OracleResponseError(model, "missing highlights list", cleaned)

    feedback = data.get("detailedFeedback") or data.get("feedback") or ""
    return OracleResponse(
        score=max(0, min(max_marks, round_half_up(score))),
        max_score=max_marks,
        highlights=_parse_highlights(data["highlights"], model),
        analysis=_parse_analysis(data),
        detailed_feedback=feedback if isinstance(feedback, str) else json.dumps(feedback),
    )


# ── Oracle call ──────────────────────────────────────────────


async def call_oracle(request: OracleRequest, config: LLMConfig) -> OracleResponse:
    """One oracle round trip.

    Raises:
        OracleError: Transport or provider failure, or an empty reply.
        OracleResponseError: The reply could not be parsed.
    """
    model = config.model or "unknown"
    try:
        response = await rate_limited_llm_call(
            litellm.acompletion,
            model=config.model,
            messages=build_marking_messages(request),
            **config.to_litellm_kwargs(),
        )
    except Exception as exc:  # LiteLLM raises provider-specific exception types
        raise OracleError(model, f"{type(exc).__name__}: {exc}") from exc

    if not response.choices:
        raise OracleError(model, "no choices in response")
    content = response.choices[0].message.content
    return parse_oracle_payload(content, request.max_marks, model)


async def mark_answer(
    request: OracleRequest,
    config: LLMConfig | None = None,
    metrics: MetricsCollector | None = None,
) -> tuple[OracleResponse, str]:
    """Mark with the oracle, falling back to the local result on any failure.

    Returns:
        ``(response, source)`` where ``source`` is ``"oracle"`` or ``"fallback"``.
    """
    llm_config = get_settings().get_marking_llm_config()
    if config:
        llm_config = llm_config.merge(config)
    if metrics is None:
        metrics = get_metrics_collector()

    started = time.perf_counter()
    try:
        result = await call_oracle(request, llm_config)
    except OracleError as exc:
        metrics.record("oracle", (time.perf_counter() - started) * 1000, outcome="fallback")
        logger.warning("Using local fallback marking: %s", exc)
        fallback = build_fallback_feedback(
            request.question_text, request.answer_text, request.max_marks
        )
        return fallback, "fallback"

    metrics.record("oracle", (time.perf_counter() - started) * 1000)
    logger.info(
        "Oracle marked answer: score=%d/%d highlights=%d",
        result.score, result.max_score, len(result.highlights),
    )
    return result, "oracle"
