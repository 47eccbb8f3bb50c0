"""Live marking endpoints — rubric parsing, per-edit analysis, feedback rendering.

All three are synchronous, pure computations and are declared as plain
``def`` handlers so FastAPI runs them in its threadpool.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from models.request import (
    FeedbackRenderRequest,
    FeedbackRenderResponse,
    LiveAnalysisRequest,
    LiveAnalysisResponse,
    RubricParseRequest,
)
from models.rubric import RubricModel
from services.live_analysis import analyze_answer, render_feedback
from services.rubric_cache import get_rubric_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


@router.post("/rubric/parse", response_model=RubricModel)
def parse_rubric_text(req: RubricParseRequest) -> RubricModel:
    """Parse a mark scheme into groups and criteria (served from the rubric cache)."""
    return get_rubric_cache().get(req.rubric_text, req.max_marks).model


@router.post(
    "/live-analysis",
    response_model=LiveAnalysisResponse,
    response_model_exclude_none=True,
)
def live_analysis(req: LiveAnalysisRequest) -> LiveAnalysisResponse:
    """Score and highlight the current answer text against the rubric.

    Called on every answer edit; the client keeps only the reply for its
    latest edit.
    """
    analysis = analyze_answer(req.rubric_text, req.answer_text, req.max_marks)
    return LiveAnalysisResponse.from_analysis(analysis)


@router.post(
    "/feedback/render",
    response_model=FeedbackRenderResponse,
    response_model_exclude_none=True,
)
def render_oracle_feedback(req: FeedbackRenderRequest) -> FeedbackRenderResponse:
    """Lay an oracle (or fallback) response's highlights over the answer text."""
    segments = render_feedback(req.answer_text, req.feedback)
    logger.debug(
        "Rendered %d oracle highlights into %d segments",
        len(req.feedback.highlights), len(segments),
    )
    return FeedbackRenderResponse(
        score=req.feedback.score,
        max_score=req.feedback.max_score,
        display_segments=segments,
    )
