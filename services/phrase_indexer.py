"""Phrase indexer — candidate phrases for every rubric criterion.

Two kinds of phrase are generated per criterion:

* **n-grams**: every 3-5 word window of the lower-cased criterion text whose
  joined length exceeds 8 characters.  These tolerate partial phrasing while
  ignoring fragments too short to mean anything.
* **key terms**: runs of consecutive content words ("concentration
  gradient", "ATP") left after dropping stop words and marking-instruction
  words ("mentions", "correct use of the word").  Short criteria such as
  "mentions diffusion" have no usable n-gram, so key terms are what make them
  matchable.  Key terms only match on word boundaries, and a one-word term
  must be longer than 8 characters unless it is the criterion's only run.

The index is built once per rubric and cached with it.
"""

from __future__ import annotations

import string
from dataclasses import dataclass

from models.rubric import RubricModel

NGRAM_MIN_WORDS = 3
NGRAM_MAX_WORDS = 5
NGRAM_MIN_CHARS = 9  # phrases must be longer than 8 characters
KEY_TERM_MIN_CHARS = 3
# A one-word key term must be as long as an n-gram unless it is the
# criterion's only content run ("ATP", "diffusion").
KEY_TERM_SOLO_MIN_CHARS = NGRAM_MIN_CHARS

_EDGE_PUNCTUATION = string.punctuation + "“”‘’«»…–—•"
_RUN_BREAKERS = tuple(",;:.!?)/")

STOP_WORDS = frozenset(
    """
    a an and are as at be been but by can could do does for from has have he her
    his how if in into is it its may might more most must no nor not of on or
    other our out over should so some such than that the their them then there
    these they this those through to too under up very was we were what when
    where which while who why will with within without would you your
    """.split()
)

# Words examiners use to phrase a criterion rather than name its content.
INSTRUCTION_WORDS = frozenset(
    """
    accept accepted allow any answer answers appropriate award awarded clear
    clearly correct correctly credit describe described describes description
    e.g eg example examples explain explained explains explanation give gives
    i.e ie idea ideas identifies identify include includes including mark marks
    mention mentioned mentions name named names point points reference
    references refer refers relevant state stated states statement suitable
    term terms use used uses using valid word words
    """.split()
)


@dataclass(frozen=True)
class Phrase:
    """A lower-cased search phrase.  ``whole_word`` phrases need word boundaries."""

    text: str
    whole_word: bool = False


@dataclass(frozen=True)
class CriterionPhrases:
    criterion_id: str
    group_id: str
    phrases: tuple[Phrase, ...]


@dataclass(frozen=True)
class PhraseIndex:
    """Per-criterion phrases, in rubric order."""

    entries: tuple[CriterionPhrases, ...] = ()

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def phrase_count(self) -> int:
        return sum(len(entry.phrases) for entry in self.entries)


def fold_case(text: str) -> str:
    """Lower-case ``text`` without changing its length.

    A few characters (e.g. ``"İ"``) lower-case to more than one code point;
    those are kept as-is so offsets in the folded text stay valid offsets
    into the original.
    """
    lowered = text.lower()
    if len(lowered) == len(text):
        return lowered
    return "".join(ch if len(ch.lower()) != 1 else ch.lower() for ch in text)


def generate_phrases(text: str) -> tuple[str, ...]:
    """3-5 word windows over the lower-cased whitespace tokens of ``text``."""
    words = fold_case(text).split()
    phrases: dict[str, None] = {}
    for i in range(len(words) - NGRAM_MIN_WORDS + 1):
        for size in range(NGRAM_MIN_WORDS, min(NGRAM_MAX_WORDS, len(words) - i) + 1):
            phrase = " ".join(words[i:i + size])
            if len(phrase) >= NGRAM_MIN_CHARS:
                phrases.setdefault(phrase)
    return tuple(phrases)


def extract_key_terms(text: str) -> tuple[str, ...]:
    """Runs of consecutive content words in ``text``, lower-cased."""
    terms: dict[str, None] = {}
    run: list[str] = []

    def flush() -> None:
        term = " ".join(run)
        if len(term) >= KEY_TERM_MIN_CHARS:
            terms.setdefault(term)
        run.clear()

    for raw in fold_case(text).split():
        word = raw.strip(_EDGE_PUNCTUATION)
        if not word or word in STOP_WORDS or word in INSTRUCTION_WORDS:
            flush()
            continue
        if raw.startswith("(") and run:
            flush()
        run.append(word)
        if raw.endswith(_RUN_BREAKERS):
            flush()
    flush()
    return tuple(terms)


def _is_meaningful(term: str) -> bool:
    return " " in term or len(term) >= KEY_TERM_SOLO_MIN_CHARS


def criterion_phrases(text: str) -> tuple[Phrase, ...]:
    """All search phrases for one criterion, n-grams first, without duplicates.

    Key terms must span two or more words or be at least
    ``KEY_TERM_SOLO_MIN_CHARS`` long, so a stray short word such as "process"
    cannot satisfy a whole criterion.  A criterion with a single content run
    ("correct use of the word ATP") keeps it regardless.
    """
    phrases = [Phrase(p) for p in generate_phrases(text)]
    seen = {p.text for p in phrases}
    terms = extract_key_terms(text)
    if len(terms) > 1:
        terms = tuple(term for term in terms if _is_meaningful(term))
    for term in terms:
        if term not in seen:
            seen.add(term)
            phrases.append(Phrase(term, whole_word=True))
    return tuple(phrases)


def build_phrase_index(model: RubricModel) -> PhraseIndex:
    return PhraseIndex(
        entries=tuple(
            CriterionPhrases(
                criterion_id=criterion.id,
                group_id=group.id,
                phrases=criterion_phrases(criterion.text),
            )
            for group, criterion in model.iter_criteria()
        )
    )
