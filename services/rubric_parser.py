"""Rubric parser — free-text mark scheme → structured ``RubricModel``.

Recognized layouts, tried in priority order:

1. **Level / band** — ``Level 3 (7-10 marks): ...`` headers, each followed by
   bullet or numbered criteria lines.  A ranged header is worth the rounded-up
   midpoint of its range.  Enumerated ``(N marks)`` items found among the
   levels become their own point groups, so one model can mix both kinds.
2. **Enumerated points** — ``Award marks for: 1) ... (1 mark), 2) ... (2 marks)``
   inline, or one ``1. ... (1 mark)`` item per line.  Every item is its own
   single-criterion group worth exactly its stated marks.
3. **Fallback** — anything else is split into sentences and ``max_marks`` is
   shared out between them.

Independently of the layout, an ``Important Notes:`` section annotates the
most recent group (it never creates groups), ``AO / Spec Ref:`` lines tag
criteria, and structural headings such as ``Total: 6 marks`` are skipped.

Parsing is total: any string, including an empty one, yields a model.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

from config.settings import get_settings
from models.rubric import (
    Criterion,
    CriterionGroup,
    GroupKind,
    RubricDialect,
    RubricModel,
)

logger = logging.getLogger(__name__)

# ── Patterns ─────────────────────────────────────────────────

_LEVEL_HEADER = re.compile(
    r"(?P<kind>Level|Band)\s*(?P<num>\d+)\s*"
    r"\(\s*(?P<low>\d+)(?:\s*(?:[-–—]|to)?\s*(?P<high>\d+))?\s*marks?\s*\)",
    re.IGNORECASE,
)
_AWARD_HEADER = re.compile(r"award\s+marks?\s+for\s*:", re.IGNORECASE)
_INLINE_ITEM = re.compile(
    r"(?:^|(?<=[\s,;:]))(?P<num>\d+)\)\s*(?P<text>.+?)\s*\(\s*(?P<marks>\d+)\s*marks?\s*\)",
    re.IGNORECASE | re.DOTALL,
)
_LINE_ITEM = re.compile(
    r"^(?:\(?(?P<num>\d+)[.)]|[•\-\*–])\s*(?P<text>.+?)\s*"
    r"\(\s*(?P<marks>\d+)\s*marks?\s*\)\s*[,;.]?\s*$",
    re.IGNORECASE,
)
_NOTES_HEADER = re.compile(r"important\s+notes?\s*:", re.IGNORECASE)
_SPEC_REF = re.compile(r"^AO\s*/\s*Spec\s*Ref\s*:\s*(?P<ref>.*)$", re.IGNORECASE)
_STRUCTURAL = re.compile(
    r"^(?:mark\s+scheme|acceptable\s+answers|additional\s+acceptable\s+points)\s*:?\s*$"
    r"|^total\s*:",
    re.IGNORECASE,
)
_BULLET = re.compile(
    r"^(?:\s*(?:[•◦▪●\-\*–—·]+|\(?\d+(?:\.\d+)*[.)]|\(?[a-z][.)](?=\s)))+\s*",
    re.IGNORECASE,
)
_SENTENCE_END = re.compile(r"[.!?]+")
_LEADING_INT = re.compile(r"^\s*\+?(\d+)")

_MIN_CRITERION_CHARS = 5
_MIN_SENTENCE_CHARS = 10


# ── Max marks ────────────────────────────────────────────────


def parse_max_marks(value: Any, default: int | None = None) -> int:
    """Coerce a user-supplied max-marks value to a positive integer.

    Accepts ints and numeric strings (``"6"``, ``"6 marks"``).  Missing,
    non-numeric or non-positive input falls back to ``default`` (the
    configured default, normally 10).
    """
    fallback = default if default is not None else get_settings().default_max_marks
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, float) and not math.isfinite(value):
        return fallback
    if isinstance(value, (int, float)):
        number = int(value)
    else:
        match = _LEADING_INT.match(str(value))
        if not match:
            return fallback
        number = int(match.group(1))
    return number if number > 0 else fallback


# ── Drafts (mutable while parsing, frozen on output) ─────────


@dataclass
class _CriterionDraft:
    text: str
    spec_ref: str | None = None


@dataclass
class _GroupDraft:
    label: str
    kind: GroupKind
    mark_value: int
    criteria: list[_CriterionDraft] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


class _Builder:
    """Accumulates groups plus the notes/spec-ref state shared by all layouts."""

    def __init__(self) -> None:
        self.groups: list[_GroupDraft] = []
        self.spec_ref: str | None = None
        self.in_notes = False

    def open_group(self, label: str, kind: GroupKind, mark_value: int) -> _GroupDraft:
        group = _GroupDraft(label=label, kind=kind, mark_value=max(0, mark_value))
        self.groups.append(group)
        self.in_notes = False
        return group

    def add_criterion(self, group: _GroupDraft, text: str) -> None:
        group.criteria.append(_CriterionDraft(text=text, spec_ref=self.spec_ref))

    def add_note(self, note: str) -> None:
        note = note.strip()
        if note and self.groups:
            self.groups[-1].notes.append(_clean_bullet(note) or note)

    def set_spec_ref(self, ref: str) -> None:
        ref = ref.strip()
        if not ref:
            return
        self.spec_ref = ref
        for group in self.groups:
            for criterion in group.criteria:
                if criterion.spec_ref is None:
                    criterion.spec_ref = ref

    def handle_annotation(self, line: str) -> bool:
        """Consume notes headers, note lines, spec refs and structural headings.

        Returns True when the line was consumed and must not be read as
        rubric content.
        """
        notes = _NOTES_HEADER.search(line)
        if notes:
            self.in_notes = True
            self.add_note(line[notes.end():])
            return True
        spec = _SPEC_REF.match(line)
        if spec:
            self.set_spec_ref(spec.group("ref"))
            return True
        if _STRUCTURAL.match(line):
            return True
        if self.in_notes:
            self.add_note(line)
            return True
        return False

    def build(self, dialect: RubricDialect, max_marks: int) -> RubricModel:
        groups = []
        for g_index, draft in enumerate(self.groups, start=1):
            group_id = f"g{g_index}"
            extra_info = "\n".join(draft.notes) or None
            criteria = tuple(
                Criterion(
                    id=f"{group_id}.c{c_index}",
                    text=criterion.text,
                    extra_info=extra_info,
                    spec_ref=criterion.spec_ref,
                )
                for c_index, criterion in enumerate(draft.criteria, start=1)
            )
            groups.append(
                CriterionGroup(
                    id=group_id,
                    label=draft.label,
                    kind=draft.kind,
                    mark_value=draft.mark_value,
                    criteria=criteria,
                )
            )
        if not groups:
            dialect = RubricDialect.EMPTY
        return RubricModel(dialect=dialect, max_marks=max_marks, groups=tuple(groups))


def _clean_bullet(text: str) -> str:
    return _BULLET.sub("", text, count=1).strip()


def _content_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


# ── Dialects ─────────────────────────────────────────────────


def _level_mark_value(match: re.Match) -> int:
    low = int(match.group("low"))
    high = match.group("high")
    if high is None:
        return low
    return math.ceil((low + int(high)) / 2)


def _parse_levels(lines: list[str], max_marks: int) -> RubricModel:
    builder = _Builder()
    current: _GroupDraft | None = None

    for line in lines:
        header = _LEVEL_HEADER.search(line)
        if header:
            label = f"{header.group('kind').title()} {header.group('num')}"
            current = builder.open_group(label, GroupKind.LEVEL, _level_mark_value(header))
            trailing = line[header.end():].lstrip(" \t:;-–—")
            trailing = _clean_bullet(trailing)
            if len(trailing) > _MIN_CRITERION_CHARS:
                builder.add_criterion(current, trailing)
            continue
        award = _AWARD_HEADER.search(line)
        if award:
            builder.in_notes = False
            for item in _INLINE_ITEM.finditer(line[award.end():]):
                _add_point(builder, item.group("num"), item.group("text"), item.group("marks"))
            continue
        if builder.handle_annotation(line):
            continue
        item = _LINE_ITEM.match(line)
        if item:
            # A "(N marks)" item inside a level scheme is scored as its own point.
            _add_point(builder, item.group("num"), item.group("text"), item.group("marks"))
            continue
        if current is None:
            continue
        cleaned = _clean_bullet(line)
        if len(cleaned) > _MIN_CRITERION_CHARS:
            builder.add_criterion(current, cleaned)

    return builder.build(RubricDialect.LEVEL, max_marks)


def _add_point(builder: _Builder, number: str | None, text: str, marks: str) -> None:
    text = _clean_bullet(text.strip(" \t,;")) or text.strip()
    if not text:
        return
    label = f"Point {number}" if number else f"Point {len(builder.groups) + 1}"
    group = builder.open_group(label, GroupKind.POINT, int(marks))
    builder.add_criterion(group, text)


def _parse_enumerated(lines: list[str], max_marks: int) -> RubricModel:
    builder = _Builder()

    for line in lines:
        award = _AWARD_HEADER.search(line)
        if award:
            builder.in_notes = False
            for item in _INLINE_ITEM.finditer(line[award.end():]):
                _add_point(builder, item.group("num"), item.group("text"), item.group("marks"))
            continue
        if builder.handle_annotation(line):
            continue
        item = _LINE_ITEM.match(line)
        if item:
            _add_point(builder, item.group("num"), item.group("text"), item.group("marks"))
            continue
        # Continuation lines of an inline "Award marks for:" list.
        for inline in _INLINE_ITEM.finditer(line):
            _add_point(builder, inline.group("num"), inline.group("text"), inline.group("marks"))

    return builder.build(RubricDialect.ENUMERATED, max_marks)


def _parse_sentences(lines: list[str], max_marks: int) -> RubricModel:
    builder = _Builder()
    content: list[str] = []
    note_lines: list[str] = []

    # Sentence groups only exist once the whole text is split, so annotations
    # are collected first and applied afterwards.
    for line in lines:
        notes = _NOTES_HEADER.search(line)
        if notes:
            builder.in_notes = True
            note_lines.append(line[notes.end():])
            continue
        spec = _SPEC_REF.match(line)
        if spec:
            builder.spec_ref = spec.group("ref").strip() or builder.spec_ref
            continue
        if _STRUCTURAL.match(line):
            continue
        if builder.in_notes:
            note_lines.append(line)
        else:
            content.append(line)

    sentences = [
        s.strip() for s in _SENTENCE_END.split("\n".join(content))
        if len(s.strip()) > _MIN_SENTENCE_CHARS
    ]
    if sentences:
        marks_each = max(1, max_marks // len(sentences))
        for index, sentence in enumerate(sentences, start=1):
            cleaned = _clean_bullet(" ".join(sentence.split()))
            if not cleaned:
                continue
            group = builder.open_group(f"Point {index}", GroupKind.SENTENCE, marks_each)
            builder.add_criterion(group, cleaned)
        for note in note_lines:
            builder.add_note(note)

    return builder.build(RubricDialect.FALLBACK, max_marks)


def detect_dialect(text: str) -> RubricDialect:
    """Return the layout ``parse_rubric`` will use for ``text``."""
    lines = _content_lines(text)
    if not lines:
        return RubricDialect.EMPTY
    if any(_LEVEL_HEADER.search(line) for line in lines):
        return RubricDialect.LEVEL
    if any(_AWARD_HEADER.search(line) or _LINE_ITEM.match(line) for line in lines):
        return RubricDialect.ENUMERATED
    return RubricDialect.FALLBACK


def parse_rubric(text: str | None, max_marks: Any = None) -> RubricModel:
    """Parse rubric text into a ``RubricModel``.

    Args:
        text: Raw mark scheme text. ``None`` and blank text yield an empty model.
        max_marks: Question total; only the fallback layout uses it to share
            marks between sentences.  Normalized with :func:`parse_max_marks`.

    Returns:
        An immutable ``RubricModel``. Equal inputs give equal models.
    """
    marks = parse_max_marks(max_marks)
    text = text or ""
    dialect = detect_dialect(text)
    lines = _content_lines(text)

    if dialect is RubricDialect.LEVEL:
        model = _parse_levels(lines, marks)
    elif dialect is RubricDialect.ENUMERATED:
        model = _parse_enumerated(lines, marks)
        if model.is_empty:
            # "Award marks for:" with no well-formed items
            model = _parse_sentences(lines, marks)
    elif dialect is RubricDialect.FALLBACK:
        model = _parse_sentences(lines, marks)
    else:
        model = RubricModel(dialect=RubricDialect.EMPTY, max_marks=marks)

    logger.debug(
        "Parsed rubric: dialect=%s groups=%d criteria=%d",
        model.dialect.value,
        len(model.groups),
        sum(len(g.criteria) for g in model.groups),
    )
    return model
