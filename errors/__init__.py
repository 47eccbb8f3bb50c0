"""Custom exception hierarchy for the marking service."""

from errors.exceptions import MarkingError, OracleError, OracleResponseError

__all__ = ["MarkingError", "OracleError", "OracleResponseError"]
