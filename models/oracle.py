"""Marking oracle boundary models.

The oracle is the external LLM-backed examiner. These models pin down the
request we send and the response shape we accept; the local fallback used
when the oracle is unavailable produces the same ``OracleResponse`` shape.
"""

from __future__ import annotations

from pydantic import Field

from models.base import CamelModel
from models.highlight import HighlightType


class OracleRequest(CamelModel):
    question_text: str = ""
    rubric_text: str = ""
    answer_text: str
    max_marks: int = Field(default=10, gt=0)


class OracleHighlight(CamelModel):
    """Free-text highlight: the oracle quotes answer text, not offsets."""

    text: str
    type: HighlightType
    tooltip: str | None = None


class OracleAnalysis(CamelModel):
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    missing_points: list[str] = Field(default_factory=list)


class OracleResponse(CamelModel):
    score: int = Field(ge=0)
    max_score: int = Field(gt=0)
    highlights: list[OracleHighlight] = Field(default_factory=list)
    analysis: OracleAnalysis = Field(default_factory=OracleAnalysis)
    detailed_feedback: str = ""
