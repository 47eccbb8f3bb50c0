"""Tests for the Pydantic models — camelCase serialization, invariants."""

import pytest
from pydantic import ValidationError

from models.highlight import DisplaySegment, DisplaySpan, HighlightType, MatchSpan
from models.oracle import OracleResponse
from models.request import LiveAnalysis, LiveAnalysisResponse, MarkRequest
from models.rubric import Criterion, CriterionGroup, GroupKind, RubricDialect, RubricModel
from models.score import GroupScore, Score


def _sample_model() -> RubricModel:
    return RubricModel(
        dialect=RubricDialect.ENUMERATED,
        max_marks=2,
        groups=(
            CriterionGroup(
                id="g1",
                label="Point 1",
                kind=GroupKind.POINT,
                mark_value=1,
                criteria=(Criterion(id="g1.c1", text="mitochondria", spec_ref="4.1"),),
            ),
            CriterionGroup(id="g2", label="Point 2", kind=GroupKind.POINT, mark_value=1),
        ),
    )


def test_rubric_serializes_camel_case():
    data = _sample_model().model_dump(by_alias=True)
    assert data["maxMarks"] == 2
    group = data["groups"][0]
    assert group["markValue"] == 1
    assert group["kind"] == "point"
    assert group["criteria"][0]["specRef"] == "4.1"
    assert group["criteria"][0]["extraInfo"] is None


def test_rubric_roundtrip_from_camel_json():
    model = _sample_model()
    restored = RubricModel.model_validate_json(model.model_dump_json(by_alias=True))
    assert restored == model


def test_rubric_helpers():
    model = _sample_model()
    assert not model.is_empty
    assert [c.id for _, c in model.iter_criteria()] == ["g1.c1"]
    assert set(model.criteria_by_id()) == {"g1.c1"}
    assert RubricModel().is_empty


def test_rubric_is_immutable():
    model = _sample_model()
    with pytest.raises(ValidationError):
        model.max_marks = 5


def test_group_mark_value_cannot_be_negative():
    with pytest.raises(ValidationError):
        CriterionGroup(id="g1", label="x", kind=GroupKind.LEVEL, mark_value=-1)


# ── Spans ─────────────────────────────────────────────────────


def test_match_span_rejects_empty_range():
    with pytest.raises(ValidationError):
        MatchSpan(start=4, end=4, criterion_id="g1.c1", group_id="g1", matched_text="")
    assert MatchSpan(
        start=0, end=3, criterion_id="g1.c1", group_id="g1", matched_text="ATP"
    ).length == 3


def test_display_span_serializes_sorted_criteria():
    span = DisplaySpan(start=0, end=9, contributing_criteria=frozenset({"g2.c1", "g1.c1"}))
    data = span.model_dump(by_alias=True)
    assert data["contributingCriteria"] == ["g1.c1", "g2.c1"]
    assert data["highlightType"] == HighlightType.SUCCESS


def test_display_segment_plain_by_default():
    segment = DisplaySegment(text="plain")
    assert not segment.is_highlighted
    assert segment.model_dump(by_alias=True, exclude_none=True) == {"text": "plain"}


# ── Scores ────────────────────────────────────────────────────


def test_score_bounds():
    Score(total=6, max_marks=6, per_group=(GroupScore(group_id="g1", awarded=6),))
    with pytest.raises(ValidationError):
        Score(total=7, max_marks=6)
    with pytest.raises(ValidationError):
        Score(total=-1, max_marks=6)
    with pytest.raises(ValidationError):
        Score(total=0, max_marks=0)


def test_live_analysis_response_from_analysis():
    analysis = LiveAnalysis(
        score=Score(total=1, max_marks=2),
        spans=(DisplaySpan(start=0, end=3),),
        segments=(DisplaySegment(text="ATP", highlight_type=HighlightType.SUCCESS),),
    )
    resp = LiveAnalysisResponse.from_analysis(analysis)
    data = resp.model_dump(by_alias=True, exclude_none=True)

    assert data["score"] == 1
    assert data["maxScore"] == 2
    assert data["displaySegments"] == [{"text": "ATP", "highlightType": HighlightType.SUCCESS}]
    assert data["coverage"] == []


# ── Oracle / requests ─────────────────────────────────────────


def test_oracle_response_accepts_camel_case():
    resp = OracleResponse.model_validate(
        {
            "score": 2,
            "maxScore": 4,
            "highlights": [{"text": "ATP", "type": "warning", "tooltip": "Say where"}],
            "analysis": {"missingPoints": ["mitochondria"]},
            "detailedFeedback": "Add the organelle.",
        }
    )
    assert resp.highlights[0].type == HighlightType.WARNING
    assert resp.analysis.missing_points == ["mitochondria"]
    assert resp.analysis.strengths == []


def test_mark_request_accepts_snake_and_camel():
    a = MarkRequest(answer_text="x", max_marks="6")
    b = MarkRequest.model_validate({"answerText": "x", "maxMarks": "6"})
    assert a == b
    with pytest.raises(ValidationError):
        MarkRequest(answer_text="")
