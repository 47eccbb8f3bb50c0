"""Shared pytest fixtures and sample mark schemes.

Provides:
- ``metrics_collector``: Fresh MetricsCollector per test
- ``rubric_cache``: Fresh RubricCache per test (reporting into ``metrics_collector``)
- sample rubric texts used across the parser, matcher and API tests
"""

from __future__ import annotations

import pytest

from services.metrics import MetricsCollector
from services.rubric_cache import RubricCache

LEVEL_RUBRIC = (
    "Level 1 (1-3 marks): mentions diffusion\n"
    "Level 2 (4-6 marks): mentions diffusion and concentration gradient"
)

AWARD_RUBRIC = (
    "Award marks for: 1) correct use of the word mitochondria (1 mark), "
    "2) correct use of the word ATP (1 mark)"
)

STRUCTURED_RUBRIC = """\
Mark Scheme:
Question 10.1 - Describe the process of photosynthesis. [6 marks]

Acceptable Answers:
1. light energy absorbed by chlorophyll (1 mark)
2. carbon dioxide + water → glucose + oxygen (1 mark)
3. occurs in chloroplasts (1 mark)

Additional Acceptable Points:
- Calvin cycle (1 mark)

AO / Spec Ref: AO1, AO2, 4.4.1.1

Important Notes:
- do not accept "sunlight" instead of "light energy"
- ignore references to temperature

Total: 6 marks maximum
"""

PROSE_RUBRIC = (
    "Photosynthesis uses light energy from the sun. "
    "It produces glucose and oxygen as products! Short."
)


@pytest.fixture
def metrics_collector() -> MetricsCollector:
    """Fresh metrics collector — isolated per test."""
    return MetricsCollector()


@pytest.fixture
def rubric_cache(metrics_collector) -> RubricCache:
    """Fresh rubric cache — isolated per test."""
    return RubricCache(max_size=8, metrics=metrics_collector)

MIXED_RUBRIC = (
    "Level 1 (1-2 marks): mentions diffusion\n"
    "Award marks for: 1) correct use of the word ATP (1 mark)\n"
    "2. names the mitochondria (1 mark)"
)
