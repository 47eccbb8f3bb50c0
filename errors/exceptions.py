"""Domain-specific exceptions for the marking service.

The live-analysis engine is total and raises nothing for bad input; these
exceptions belong to the oracle edge, where ``mark_answer`` catches them and
substitutes the deterministic local fallback.
"""

from __future__ import annotations


class MarkingError(Exception):
    """Base class for marking failures."""


class OracleError(MarkingError):
    """The marking oracle could not be reached or returned nothing."""

    def __init__(self, model: str, message: str) -> None:
        self.model = model
        super().__init__(f"Marking oracle '{model}' failed: {message}")


class OracleResponseError(OracleError):
    """The oracle replied, but the payload is not a usable marking result.

    Carries the raw payload (truncated) so the fallback log line shows what
    the model actually sent.
    """

    def __init__(self, model: str, message: str, payload: str = "") -> None:
        self.payload = payload[:500]
        super().__init__(model, message)
