"""Structured error codes returned in API error bodies.

Error responses look like::

    {"detail": "<human readable>", "code": "<ERROR_CODE>"}
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_REQUEST = "INVALID_REQUEST"
    SERVICE_BUSY = "SERVICE_BUSY"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_body(code: ErrorCode, detail: str) -> dict:
    return {"detail": detail, "code": code.value}
