"""Exceptions raised by the call graph core."""

from __future__ import annotations

from typing import Any


class CallGraphError(Exception):
    """Base class for call graph errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class FormatError(CallGraphError):
    """Raised when a document is malformed or incomplete.

    This covers:
    - A required key that is missing
    - A value of the wrong type
    - A nested identifier that cannot be parsed
    """

    pass


class InvariantViolation(CallGraphError):
    """Raised when an edge references a method id the class hierarchy lacks."""

    pass


class AnalysisError(CallGraphError):
    """Raised when a producer cannot generate a call graph."""

    pass


class ArtifactNotFoundError(AnalysisError):
    """Raised when the artifact for a coordinate is not available locally."""

    pass


class InvalidConfigError(CallGraphError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str) -> None:
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason
