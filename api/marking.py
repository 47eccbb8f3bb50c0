"""Oracle marking endpoint — strict LLM marking with local fallback."""

from __future__ import annotations

from fastapi import APIRouter

from models.oracle import OracleRequest
from models.request import MarkRequest, MarkResponse
from services.live_analysis import render_feedback
from services.marking_oracle import mark_answer
from services.rubric_parser import parse_max_marks

router = APIRouter(prefix="/api", tags=["marking"])


@router.post("/mark", response_model=MarkResponse, response_model_exclude_none=True)
async def mark(req: MarkRequest) -> MarkResponse:
    """Mark the answer with the oracle and render its highlights.

    Never fails because of the oracle: transport or payload problems yield
    the local fallback result with ``source="fallback"``.
    """
    oracle_request = OracleRequest(
        question_text=req.question_text,
        rubric_text=req.rubric_text,
        answer_text=req.answer_text,
        max_marks=parse_max_marks(req.max_marks),
    )
    result, source = await mark_answer(oracle_request)
    return MarkResponse(
        score=result.score,
        max_score=result.max_score,
        display_segments=render_feedback(req.answer_text, result),
        analysis=result.analysis,
        detailed_feedback=result.detailed_feedback,
        source=source,
    )
