"""In-memory latency metrics for the marking pipeline.

Live analysis reruns on every keystroke, so each stage (``parse``,
``match``, ``analyze``, ``oracle``) records its latency here; the
``/api/metrics`` endpoint and the latency tests read the percentiles back.
"""

from __future__ import annotations

import math
import threading
from collections import defaultdict, deque

_WINDOW = 1000  # most recent samples kept per stage


def _percentile(values: list[float], p: float) -> float:
    if not values:
        return 0.0
    if len(values) == 1:
        return values[0]
    ordered = sorted(values)
    pos = (len(ordered) - 1) * p
    lo = math.floor(pos)
    hi = math.ceil(pos)
    if lo == hi:
        return ordered[lo]
    frac = pos - lo
    return ordered[lo] * (1 - frac) + ordered[hi] * frac


class MetricsCollector:
    """Thread-safe per-stage latency and outcome counters."""

    def __init__(self, window: int = _WINDOW) -> None:
        self._lock = threading.RLock()
        self._latencies: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=window))
        self._outcomes: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))

    def record(self, stage: str, latency_ms: float, outcome: str = "ok") -> None:
        with self._lock:
            self._latencies[stage].append(float(latency_ms))
            self._outcomes[stage][outcome] += 1

    def snapshot(self) -> dict:
        with self._lock:
            stages = {}
            for stage, samples in self._latencies.items():
                values = list(samples)
                stages[stage] = {
                    "count": sum(self._outcomes[stage].values()),
                    "latency_p50_ms": round(_percentile(values, 0.5), 3),
                    "latency_p95_ms": round(_percentile(values, 0.95), 3),
                    "latency_max_ms": round(max(values), 3) if values else 0.0,
                    "outcomes": dict(self._outcomes[stage]),
                }
            return {"stages": stages}

    def reset(self) -> None:
        with self._lock:
            self._latencies.clear()
            self._outcomes.clear()


_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    return _metrics_collector
