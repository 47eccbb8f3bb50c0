"""Compiled-rubric cache, memoized by value.

A rubric is parsed and indexed once per distinct ``(rubric text, max marks)``
pair; every answer edit afterwards reuses the compiled result.  Entries are
keyed by a SHA-256 digest of the inputs rather than by object identity, and
the compiled values are immutable, so request handlers can share them freely.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Mapping

from config.settings import get_settings
from models.rubric import Criterion, RubricModel
from services.metrics import MetricsCollector, get_metrics_collector
from services.phrase_indexer import PhraseIndex, build_phrase_index
from services.rubric_parser import parse_max_marks, parse_rubric

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledRubric:
    key: str
    model: RubricModel
    index: PhraseIndex
    criteria: Mapping[str, Criterion]


def rubric_key(text: str, max_marks: int) -> str:
    digest = hashlib.sha256()
    digest.update(str(max_marks).encode())
    digest.update(b"\x00")
    digest.update(text.encode("utf-8", "surrogatepass"))
    return digest.hexdigest()


def compile_rubric(text: str, max_marks: Any = None) -> CompiledRubric:
    """Parse and index ``text`` without touching any cache."""
    marks = parse_max_marks(max_marks)
    model = parse_rubric(text, marks)
    return CompiledRubric(
        key=rubric_key(text, marks),
        model=model,
        index=build_phrase_index(model),
        criteria=MappingProxyType(model.criteria_by_id()),
    )


class RubricCache:
    """Bounded LRU of compiled rubrics."""

    def __init__(self, max_size: int = 64, metrics: MetricsCollector | None = None) -> None:
        self._max_size = max(1, max_size)
        self._entries: OrderedDict[str, CompiledRubric] = OrderedDict()
        self._lock = threading.Lock()
        self._metrics = metrics or get_metrics_collector()
        self.hits = 0
        self.misses = 0

    def get(self, text: str | None, max_marks: Any = None) -> CompiledRubric:
        text = text or ""
        marks = parse_max_marks(max_marks)
        key = rubric_key(text, marks)

        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                self.hits += 1
                return cached
            self.misses += 1

        started = time.perf_counter()
        compiled = compile_rubric(text, marks)
        self._metrics.record("parse", (time.perf_counter() - started) * 1000)
        logger.debug(
            "Compiled rubric %s: %d groups, %d phrases",
            key[:12], len(compiled.model.groups), compiled.index.phrase_count,
        )

        with self._lock:
            # Another thread may have compiled the same rubric meanwhile.
            existing = self._entries.setdefault(key, compiled)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)
        return existing

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict:
        with self._lock:
            return {
                "size": len(self._entries),
                "maxSize": self._max_size,
                "hits": self.hits,
                "misses": self.misses,
            }


@lru_cache
def get_rubric_cache() -> RubricCache:
    """Process-wide rubric cache sized from settings."""
    return RubricCache(max_size=get_settings().rubric_cache_size)
