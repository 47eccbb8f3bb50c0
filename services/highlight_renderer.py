"""Highlight renderer — display spans + answer text → ordered text segments.

Joining the ``text`` of the returned segments always gives back the answer
exactly.  Spans reaching past the end of the answer are clipped, and a span
starting inside an already-rendered span is trimmed to the part after it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from models.highlight import DisplaySegment, DisplaySpan
from models.oracle import OracleHighlight
from services.span_resolver import merge_highlights


def render_segments(answer: str, spans: Iterable[DisplaySpan]) -> list[DisplaySegment]:
    segments: list[DisplaySegment] = []
    cursor = 0
    size = len(answer)

    for span in sorted(spans, key=lambda s: (s.start, s.end)):
        start = max(span.start, cursor)
        end = min(span.end, size)
        if start >= end:
            continue
        if start > cursor:
            segments.append(DisplaySegment(text=answer[cursor:start]))
        segments.append(
            DisplaySegment(
                text=answer[start:end],
                highlight_type=span.highlight_type,
                tooltip=span.tooltip,
            )
        )
        cursor = end

    if cursor < size:
        segments.append(DisplaySegment(text=answer[cursor:]))
    return segments


def render_highlights(answer: str, highlights: Sequence[OracleHighlight]) -> list[DisplaySegment]:
    """Render oracle (or fallback) highlights, which quote text instead of offsets."""
    return render_segments(answer, merge_highlights(answer, highlights))
