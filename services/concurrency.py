"""Concurrency controls for marking-oracle calls.

Live analysis is cheap and synchronous; only the oracle endpoint makes
outbound LLM requests.  Those are capped per worker with an
``asyncio.Semaphore``, and the ASGI middleware below turns requests away
with 503 instead of queuing them when the worker is saturated.

The middleware is pure ASGI (not BaseHTTPMiddleware).
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Coroutine

from starlette.types import ASGIApp, Receive, Scope, Send

from config.settings import get_settings
from models.errors import ErrorCode, error_body

logger = logging.getLogger(__name__)

_llm_semaphore: asyncio.Semaphore | None = None


def _get_semaphore() -> asyncio.Semaphore:
    """Lazy-init so the semaphore binds to the running event loop."""
    global _llm_semaphore
    if _llm_semaphore is None:
        limit = get_settings().max_concurrent_marking
        _llm_semaphore = asyncio.Semaphore(limit)
        logger.info("Marking oracle semaphore initialized (max=%d)", limit)
    return _llm_semaphore


async def rate_limited_llm_call(
    func: Callable[..., Coroutine[Any, Any, Any]],
    *args: Any,
    **kwargs: Any,
) -> Any:
    """Execute an async LLM function under the per-worker concurrency cap.

    Usage::

        result = await rate_limited_llm_call(litellm.acompletion, model=..., messages=...)
    """
    async with _get_semaphore():
        return await func(*args, **kwargs)


# Paths that call the marking oracle.
ORACLE_PATHS = frozenset({"/api/mark"})


class ConcurrencyLimitMiddleware:
    """Reject oracle requests with 503 + Retry-After when the worker is full.

    Live-analysis, parse and render endpoints pass straight through.
    """

    def __init__(self, app: ASGIApp, paths: frozenset[str] = ORACLE_PATHS) -> None:
        self.app = app
        self.paths = paths

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") not in self.paths:
            await self.app(scope, receive, send)
            return

        sem = _get_semaphore()
        if sem.locked():
            logger.warning("Oracle concurrency limit reached for %s, returning 503", scope["path"])
            body = json.dumps(
                error_body(ErrorCode.SERVICE_BUSY, "Marking service busy, please retry.")
            ).encode()
            await send({
                "type": "http.response.start",
                "status": 503,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"retry-after", b"5"),
                ],
            })
            await send({"type": "http.response.body", "body": body})
            return

        await self.app(scope, receive, send)
