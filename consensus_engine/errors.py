"""
Error taxonomy for the aggregation engine.

Only InvalidLevel is ever raised to callers. Every other failure is recorded
as data (an error-tagged ProviderResponse, a `none` verdict, an empty evidence
list) so the caller always receives a well-formed result.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Named error kinds surfaced by the engine."""
    INVALID_LEVEL = "invalid_level"
    PROVIDER_TIMEOUT = "provider_timeout"
    PROVIDER_FAILURE = "provider_failure"
    PROVIDER_CANCELLED = "provider_cancelled"
    INSUFFICIENT_RESPONSES = "insufficient_responses"
    SEARCH_UNAVAILABLE = "search_unavailable"
    CONTEXT_UNAVAILABLE = "context_unavailable"


class EngineError(Exception):
    """Base class for engine errors that carry an ErrorKind tag."""

    kind: ErrorKind = ErrorKind.PROVIDER_FAILURE

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class InvalidLevel(EngineError, ValueError):
    """Raised when a context level is not one of minimal, standard or deep."""

    kind = ErrorKind.INVALID_LEVEL

    def __init__(self, level: Any):
        self.level = level
        super().__init__(
            f"Invalid context level: {level!r}. Must be: minimal, standard, or deep"
        )


class ExecutionResult(Dict[str, Any]):
    """
    Tagged result handed to transport-level callers.

    Keys: success, error_kind, message, result. A boundary collaborator maps
    error_kind to its own status codes.
    """
    pass
