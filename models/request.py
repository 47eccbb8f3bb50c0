"""API request / response models."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from models.base import CamelModel, FrozenCamelModel
from models.highlight import DisplaySegment, DisplaySpan
from models.oracle import OracleAnalysis, OracleResponse
from models.score import Score


class GroupCoverage(FrozenCamelModel):
    """Per-group coverage row (the "Mark Scheme Coverage" panel)."""

    group_id: str
    label: str
    mark_value: int
    found: bool
    criteria_found: int
    criteria_total: int
    awarded: int
    first_criterion: str | None = None


class LiveAnalysis(FrozenCamelModel):
    """Result of one live-analysis pass; rebuilt on every answer edit."""

    score: Score
    spans: tuple[DisplaySpan, ...] = ()
    segments: tuple[DisplaySegment, ...] = ()
    coverage: tuple[GroupCoverage, ...] = ()


class RubricParseRequest(CamelModel):
    """POST /api/rubric/parse — request body."""

    rubric_text: str = ""
    max_marks: int | str | None = None


class LiveAnalysisRequest(CamelModel):
    """POST /api/live-analysis — request body."""

    rubric_text: str = ""
    answer_text: str = ""
    max_marks: int | str | None = None


class LiveAnalysisResponse(CamelModel):
    """POST /api/live-analysis — response body."""

    score: int
    max_score: int
    display_segments: list[DisplaySegment] = Field(default_factory=list)
    coverage: list[GroupCoverage] = Field(default_factory=list)
    spans: list[DisplaySpan] = Field(default_factory=list)

    @classmethod
    def from_analysis(cls, analysis: LiveAnalysis) -> LiveAnalysisResponse:
        return cls(
            score=analysis.score.total,
            max_score=analysis.score.max_marks,
            display_segments=list(analysis.segments),
            coverage=list(analysis.coverage),
            spans=list(analysis.spans),
        )


class FeedbackRenderRequest(CamelModel):
    """POST /api/feedback/render — render an oracle response over the answer."""

    answer_text: str = ""
    feedback: OracleResponse


class FeedbackRenderResponse(CamelModel):
    score: int
    max_score: int
    display_segments: list[DisplaySegment] = Field(default_factory=list)


class MarkRequest(CamelModel):
    """POST /api/mark — request body."""

    question_text: str = ""
    rubric_text: str = ""
    answer_text: str = Field(min_length=1)
    max_marks: int | str | None = None


class MarkResponse(CamelModel):
    """POST /api/mark — response body."""

    score: int
    max_score: int
    display_segments: list[DisplaySegment] = Field(default_factory=list)
    analysis: OracleAnalysis = Field(default_factory=OracleAnalysis)
    detailed_feedback: str = ""
    source: Literal["oracle", "fallback"] = "oracle"
