"""Tests for services.rubric_cache — value-keyed memoization of compiled rubrics."""

import pytest

from services.rubric_cache import RubricCache, compile_rubric, rubric_key
from tests.conftest import AWARD_RUBRIC, LEVEL_RUBRIC


def test_same_text_returns_same_instance(rubric_cache):
    first = rubric_cache.get(LEVEL_RUBRIC, 6)
    # an equal but distinct string object still hits
    second = rubric_cache.get("".join(list(LEVEL_RUBRIC)), "6")

    assert first is second
    assert rubric_cache.hits == 1
    assert rubric_cache.misses == 1


def test_changed_text_or_marks_recompiles(rubric_cache):
    a = rubric_cache.get(LEVEL_RUBRIC, 6)
    b = rubric_cache.get(LEVEL_RUBRIC + " ", 6)
    c = rubric_cache.get(LEVEL_RUBRIC, 8)

    assert a is not b
    assert a is not c
    assert c.model.max_marks == 8
    assert len(rubric_cache) == 3


def test_lru_eviction(metrics_collector):
    cache = RubricCache(max_size=2, metrics=metrics_collector)
    cache.get("Level 1 (1 mark): one", 1)
    cache.get("Level 1 (1 mark): two", 1)
    cache.get("Level 1 (1 mark): one", 1)  # refresh "one"
    cache.get("Level 1 (1 mark): three", 1)  # evicts "two"

    assert len(cache) == 2
    cache.get("Level 1 (1 mark): one", 1)
    assert cache.hits == 2
    cache.get("Level 1 (1 mark): two", 1)
    assert cache.misses == 4


def test_none_and_empty_text_share_an_entry(rubric_cache):
    assert rubric_cache.get(None) is rubric_cache.get("")
    assert rubric_cache.get(None).model.is_empty


def test_clear_and_stats(rubric_cache):
    rubric_cache.get(AWARD_RUBRIC, 2)
    rubric_cache.get(AWARD_RUBRIC, 2)
    assert rubric_cache.stats() == {"size": 1, "maxSize": 8, "hits": 1, "misses": 1}

    rubric_cache.clear()
    assert rubric_cache.stats() == {"size": 0, "maxSize": 8, "hits": 0, "misses": 0}


def test_compiled_rubric_is_read_only():
    compiled = compile_rubric(AWARD_RUBRIC, 2)

    assert set(compiled.criteria) == {"g1.c1", "g2.c1"}
    with pytest.raises(TypeError):
        compiled.criteria["g3.c1"] = compiled.criteria["g1.c1"]
    assert len(compiled.index) == 2


def test_rubric_key_depends_on_both_inputs():
    assert rubric_key("abc", 6) == rubric_key("abc", 6)
    assert rubric_key("abc", 6) != rubric_key("abc", 7)
    assert rubric_key("abc", 6) != rubric_key("abd", 6)
