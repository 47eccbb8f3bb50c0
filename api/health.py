"""Health and metrics endpoints."""

from fastapi import APIRouter

from services.metrics import get_metrics_collector
from services.rubric_cache import get_rubric_cache

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health():
    """Liveness check plus rubric cache occupancy."""
    return {"status": "healthy", "rubricCache": get_rubric_cache().stats()}


@router.get("/metrics")
async def metrics():
    """Per-stage latency percentiles (parse, match, analyze, oracle)."""
    return get_metrics_collector().snapshot()
