"""Application-level exception types.

Domain errors raised by services and adapters. The global exception
handlers map each subclass to an HTTP status.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    body_type: str
    error_type: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when the client request body is invalid."""


class ConfigurationAppError(AppError):
    """Raised when the server is missing required configuration."""


class UpstreamAppError(AppError):
    """Raised when the upstream API cannot be reached or returns garbage."""
