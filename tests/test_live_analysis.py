"""End-to-end tests for services.live_analysis (parse → match → resolve → score → render)."""

from models.highlight import HighlightType
from models.oracle import OracleHighlight, OracleResponse
from services.live_analysis import analyze_answer, render_feedback
from tests.conftest import AWARD_RUBRIC, LEVEL_RUBRIC, MIXED_RUBRIC, PROSE_RUBRIC


def _covered(answer, analysis):
    return [answer[s.start:s.end] for s in analysis.spans]


def test_level_rubric_example(rubric_cache, metrics_collector):
    answer = "Diffusion happens along a concentration gradient"
    analysis = analyze_answer(
        LEVEL_RUBRIC, answer, 6, cache=rubric_cache, metrics=metrics_collector
    )

    assert analysis.score.total == 6
    assert _covered(answer, analysis) == ["Diffusion", "concentration gradient"]
    assert analysis.spans[0].contributing_criteria == {"g1.c1", "g2.c1"}
    assert "".join(s.text for s in analysis.segments) == answer
    assert [row.found for row in analysis.coverage] == [True, True]


def test_empty_rubric_scores_zero(rubric_cache, metrics_collector):
    answer = "Anything at all about cells"
    analysis = analyze_answer("", answer, 6, cache=rubric_cache, metrics=metrics_collector)

    assert analysis.score.total == 0
    assert analysis.spans == ()
    assert analysis.coverage == ()
    assert [s.text for s in analysis.segments] == [answer]


def test_award_rubric_example(rubric_cache, metrics_collector):
    answer = "The mitochondria produce ATP"
    analysis = analyze_answer(AWARD_RUBRIC, answer, 2, cache=rubric_cache, metrics=metrics_collector)

    assert analysis.score.total == 2
    assert [(s.start, s.end) for s in analysis.spans] == [(4, 16), (25, 28)]
    assert analysis.spans[1].tooltip == "Matches: correct use of the word ATP"


def test_blank_answer(rubric_cache, metrics_collector):
    analysis = analyze_answer(LEVEL_RUBRIC, "", 6, cache=rubric_cache, metrics=metrics_collector)
    assert analysis.score.total == 0
    assert analysis.segments == ()
    assert [row.found for row in analysis.coverage] == [False, False]


def test_partial_prose_match(rubric_cache, metrics_collector):
    answer = "Plants use light energy from the sun to make food."
    analysis = analyze_answer(PROSE_RUBRIC, answer, 10, cache=rubric_cache, metrics=metrics_collector)

    assert analysis.score.total == 5
    first, second = analysis.coverage
    assert first.found and first.awarded == 5
    assert not second.found and second.awarded == 0
    assert second.first_criterion == "It produces glucose and oxygen as products"


def test_score_bounded_by_invalid_max_marks(rubric_cache, metrics_collector):
    answer = "Diffusion happens along a concentration gradient"
    analysis = analyze_answer(LEVEL_RUBRIC, answer, "abc", cache=rubric_cache, metrics=metrics_collector)
    assert analysis.score.max_marks == 10
    assert analysis.score.total == 7


def test_rubric_is_compiled_once(rubric_cache, metrics_collector):
    for answer in ["Diffusion", "Diffusion happens", "Diffusion happens along"]:
        analyze_answer(LEVEL_RUBRIC, answer, 6, cache=rubric_cache, metrics=metrics_collector)

    assert rubric_cache.misses == 1
    assert rubric_cache.hits == 2
    stages = metrics_collector.snapshot()["stages"]
    assert stages["parse"]["count"] == 1
    assert stages["match"]["count"] == 3
    assert stages["analyze"]["count"] == 3


def test_repeat_analysis_is_deterministic(rubric_cache, metrics_collector):
    answer = "diffusion and diffusion down a concentration gradient"
    first = analyze_answer(LEVEL_RUBRIC, answer, 6, cache=rubric_cache, metrics=metrics_collector)
    second = analyze_answer(LEVEL_RUBRIC, answer, 6, cache=rubric_cache, metrics=metrics_collector)
    assert first == second


def test_render_feedback_keeps_longest_highlight():
    answer = "It has no nucleus so it can squeeze through capillaries"
    feedback = OracleResponse(
        score=3,
        max_score=4,
        highlights=[
            OracleHighlight(text="no nucleus", type=HighlightType.SUCCESS),
            OracleHighlight(text="no nucleus so it can squeeze", type=HighlightType.SUCCESS),
        ],
    )
    segments = render_feedback(answer, feedback)

    highlighted = [s.text for s in segments if s.is_highlighted]
    assert highlighted == ["no nucleus so it can squeeze"]
    assert "".join(s.text for s in segments) == answer


def test_mixed_rubric_end_to_end(rubric_cache, metrics_collector):
    answer = "Diffusion supplies glucose that is turned into ATP"
    analysis = analyze_answer(MIXED_RUBRIC, answer, 10, cache=rubric_cache, metrics=metrics_collector)

    assert analysis.score.total == 3
    assert _covered(answer, analysis) == ["Diffusion", "ATP"]
    assert [(row.label, row.found) for row in analysis.coverage] == [
        ("Level 1", True),
        ("Point 1", True),
        ("Point 2", False),
    ]
