"""Tests for services.highlight_renderer — lossless segmentation."""

from models.highlight import DisplaySpan, HighlightType
from models.oracle import OracleHighlight
from services.highlight_renderer import render_highlights, render_segments

ANSWER = "Diffusion happens along a concentration gradient"


def _joined(segments):
    return "".join(s.text for s in segments)


def test_plain_and_highlighted_segments_alternate():
    spans = [
        DisplaySpan(start=0, end=9, tooltip="Matches: mentions diffusion"),
        DisplaySpan(start=26, end=48),
    ]
    segments = render_segments(ANSWER, spans)

    assert [s.text for s in segments] == [
        "Diffusion",
        " happens along a ",
        "concentration gradient",
    ]
    assert [s.is_highlighted for s in segments] == [True, False, True]
    assert segments[0].tooltip == "Matches: mentions diffusion"
    assert segments[1].highlight_type is None
    assert _joined(segments) == ANSWER


def test_no_spans_is_one_plain_segment():
    segments = render_segments(ANSWER, [])
    assert len(segments) == 1
    assert not segments[0].is_highlighted
    assert _joined(segments) == ANSWER


def test_empty_answer_has_no_segments():
    assert render_segments("", [DisplaySpan(start=0, end=3)]) == []


def test_spans_are_clipped_and_overlaps_trimmed():
    spans = [
        DisplaySpan(start=40, end=500, highlight_type=HighlightType.WARNING),
        DisplaySpan(start=0, end=12),
        DisplaySpan(start=5, end=20, highlight_type=HighlightType.ERROR),
        DisplaySpan(start=900, end=901),
    ]
    segments = render_segments(ANSWER, spans)

    assert _joined(segments) == ANSWER
    assert [s.text for s in segments if s.is_highlighted] == [
        ANSWER[0:12],
        ANSWER[12:20],
        ANSWER[40:],
    ]


def test_unsorted_input_is_rendered_in_text_order():
    spans = [DisplaySpan(start=26, end=48), DisplaySpan(start=0, end=9)]
    segments = render_segments(ANSWER, spans)
    assert segments[0].text == "Diffusion"
    assert _joined(segments) == ANSWER


def test_render_oracle_highlights():
    answer = "It has no nucleus so it can squeeze through capillaries"
    highlights = [
        OracleHighlight(text="no nucleus", type=HighlightType.SUCCESS),
        OracleHighlight(text="no nucleus so it can squeeze", type=HighlightType.SUCCESS),
        OracleHighlight(text="Good answer length", type=HighlightType.SUCCESS),
    ]
    segments = render_highlights(answer, highlights)

    assert [s.text for s in segments] == [
        "It has ",
        "no nucleus so it can squeeze",
        " through capillaries",
    ]
    assert _joined(segments) == answer
