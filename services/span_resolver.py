"""Span resolver — collapse raw spans into a non-overlapping highlight list.

Two entry points share the same output type (``DisplaySpan`` sorted by
``start``, pairwise disjoint):

* :func:`resolve_spans` for rubric matches: greedy, longest span first, the
  first accepted span wins and every later span intersecting it is dropped.
  This is deliberately not an optimal interval packing.
* :func:`merge_highlights` for oracle highlights, which quote answer text
  instead of giving offsets: each quote is searched for literally and
  overlapping hits are merged into one span carrying every distinct tooltip.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from models.highlight import DisplaySpan, HighlightType, MatchSpan
from models.oracle import OracleHighlight
from models.rubric import Criterion
from services.answer_matcher import find_occurrences
from services.phrase_indexer import fold_case

TOOLTIP_PREFIX = "Matches: "


# ── Rubric matches ───────────────────────────────────────────


def _precedence(span: MatchSpan) -> tuple[int, int, str]:
    return (-span.length, span.start, span.criterion_id)


def _match_tooltip(criterion_ids: list[str], criteria: Mapping[str, Criterion] | None) -> str | None:
    if not criteria:
        return None
    texts = [criteria[cid].text for cid in criterion_ids if cid in criteria]
    if not texts:
        return None
    return TOOLTIP_PREFIX + "; ".join(dict.fromkeys(texts))


def resolve_spans(
    spans: Iterable[MatchSpan],
    criteria: Mapping[str, Criterion] | None = None,
) -> list[DisplaySpan]:
    """Greedy longest-first resolution of raw match spans.

    Ties on length go to the earlier span, then to the lower criterion id, so
    the result is deterministic for any input order.  A span with exactly the
    same range as an accepted one is merged into it (its criterion is added to
    ``contributing_criteria``) instead of being dropped.

    Args:
        spans: Raw spans from the answer matcher; may overlap or repeat.
        criteria: Optional ``criterion_id -> Criterion`` lookup used to build
            ``"Matches: ..."`` tooltips.
    """
    starts: list[int] = []
    accepted: list[tuple[int, int]] = []
    contributors: dict[tuple[int, int], list[str]] = {}

    for span in sorted(spans, key=_precedence):
        key = (span.start, span.end)
        if key in contributors:
            if span.criterion_id not in contributors[key]:
                contributors[key].append(span.criterion_id)
            continue
        pos = bisect.bisect_right(starts, span.start)
        if pos > 0 and accepted[pos - 1][1] > span.start:
            continue
        if pos < len(accepted) and accepted[pos][0] < span.end:
            continue
        starts.insert(pos, span.start)
        accepted.insert(pos, key)
        contributors[key] = [span.criterion_id]

    return [
        DisplaySpan(
            start=start,
            end=end,
            highlight_type=HighlightType.SUCCESS,
            tooltip=_match_tooltip(contributors[(start, end)], criteria),
            contributing_criteria=frozenset(contributors[(start, end)]),
        )
        for start, end in accepted
    ]


# ── Oracle highlights ────────────────────────────────────────


@dataclass
class HighlightHit:
    """One literal occurrence of an oracle highlight in the answer."""

    start: int
    end: int
    highlight: OracleHighlight
    order: int  # position of the highlight in the oracle's list

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass
class _Cluster:
    start: int
    end: int
    primary: HighlightHit
    tooltips: list[str] = field(default_factory=list)

    def absorb(self, hit: HighlightHit) -> None:
        self.end = max(self.end, hit.end)
        tooltip = hit.highlight.tooltip
        if tooltip and tooltip not in self.tooltips:
            self.tooltips.append(tooltip)

    def to_span(self) -> DisplaySpan:
        primary_tip = self.primary.highlight.tooltip
        ordered = ([primary_tip] if primary_tip else []) + [
            tip for tip in self.tooltips if tip != primary_tip
        ]
        return DisplaySpan(
            start=self.start,
            end=self.end,
            highlight_type=self.primary.highlight.type,
            tooltip="\n".join(ordered) or None,
        )


def locate_highlights(answer: str, highlights: Sequence[OracleHighlight]) -> list[HighlightHit]:
    """Case-insensitive literal search of every highlight quote in ``answer``.

    Quotes are matched after trimming surrounding whitespace; quotes that are
    blank or absent from the answer produce no hits.
    """
    folded = fold_case(answer)
    hits: list[HighlightHit] = []
    for order, highlight in enumerate(highlights):
        needle = fold_case(highlight.text.strip())
        for start, end in find_occurrences(folded, needle):
            hits.append(HighlightHit(start=start, end=end, highlight=highlight, order=order))
    return hits


def merge_highlights(answer: str, highlights: Sequence[OracleHighlight]) -> list[DisplaySpan]:
    """Resolve oracle highlights into disjoint display spans.

    Hits are swept by start position (longest first on equal starts, then
    by list order); any hit overlapping the current cluster extends it.  The
    first hit of a cluster is its primary and decides the highlight type;
    every distinct tooltip in the cluster is kept (primary first).  A quote
    contained in a longer quote starting at the same place therefore
    disappears into the longer one.
    """
    hits = locate_highlights(answer, highlights)
    hits.sort(key=lambda h: (h.start, -h.length, h.order))

    clusters: list[_Cluster] = []
    for hit in hits:
        if clusters and hit.start < clusters[-1].end:
            clusters[-1].absorb(hit)
            continue
        cluster = _Cluster(start=hit.start, end=hit.end, primary=hit)
        if hit.highlight.tooltip:
            cluster.tooltips.append(hit.highlight.tooltip)
        clusters.append(cluster)

    return [cluster.to_span() for cluster in clusters]
