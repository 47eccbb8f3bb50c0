"""Answer matcher — find rubric phrases in the learner's answer.

Runs on every answer edit against the cached phrase index, so it does a
single case fold of the answer and then plain ``str.find`` scans: one
sequential pass per phrase collecting every disjoint occurrence.
"""

from __future__ import annotations

from dataclasses import dataclass

from models.highlight import MatchSpan
from services.phrase_indexer import PhraseIndex, fold_case


@dataclass(frozen=True)
class MatchResult:
    """Raw spans (may overlap) plus the ids of criteria found in the answer."""

    spans: tuple[MatchSpan, ...] = ()
    found: frozenset[str] = frozenset()


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _on_word_boundary(text: str, start: int, end: int) -> bool:
    before = start == 0 or not _is_word_char(text[start - 1])
    after = end == len(text) or not _is_word_char(text[end])
    return before and after


def find_occurrences(
    haystack: str,
    needle: str,
    whole_word: bool = False,
) -> list[tuple[int, int]]:
    """All disjoint ``[start, end)`` occurrences of ``needle``, left to right.

    Both strings are expected to be case-folded already.  An empty needle
    has no occurrences.
    """
    if not needle:
        return []
    occurrences: list[tuple[int, int]] = []
    size = len(needle)
    pos = 0
    while True:
        index = haystack.find(needle, pos)
        if index == -1:
            break
        end = index + size
        if whole_word and not _on_word_boundary(haystack, index, end):
            pos = index + 1
            continue
        occurrences.append((index, end))
        pos = end
    return occurrences


def match_answer(answer: str, index: PhraseIndex) -> MatchResult:
    """Scan ``answer`` for every phrase in ``index``.

    A criterion counts as found as soon as one of its phrases occurs; the
    remaining phrases are still scanned so their spans can be highlighted.
    """
    if not answer or not answer.strip() or not len(index):
        return MatchResult()

    folded = fold_case(answer)
    spans: list[MatchSpan] = []
    found: set[str] = set()

    for entry in index:
        for phrase in entry.phrases:
            for start, end in find_occurrences(folded, phrase.text, phrase.whole_word):
                spans.append(
                    MatchSpan(
                        start=start,
                        end=end,
                        criterion_id=entry.criterion_id,
                        group_id=entry.group_id,
                        matched_text=answer[start:end],
                    )
                )
                found.add(entry.criterion_id)

    return MatchResult(spans=tuple(spans), found=frozenset(found))
