"""
Typed errors raised by ingestion and analysis.

Callers branch on ``AnalysisError.kind``; transport codes are derived from the
kind only where a result leaves the process (CLI exit codes, response
payloads).
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure categories surfaced to callers."""

    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    AUTH_REQUIRED = "auth_required"
    VALIDATION = "validation"
    EMPTY_RESULT = "empty_result"
    UNKNOWN = "unknown"


_HTTP_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.AUTH_REQUIRED: 401,
    ErrorKind.VALIDATION: 400,
    ErrorKind.EMPTY_RESULT: 404,
    ErrorKind.UNKNOWN: 500,
}

_TITLES = {
    ErrorKind.NOT_FOUND: "Not found",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded",
    ErrorKind.AUTH_REQUIRED: "GitHub connection required",
    ErrorKind.VALIDATION: "Invalid request",
    ErrorKind.EMPTY_RESULT: "No commits to analyze",
    ErrorKind.UNKNOWN: "Analysis failed",
}


class AnalysisError(Exception):
    """An analysis failure carrying an explicit error kind."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}

    @property
    def http_status(self) -> int:
        """HTTP status equivalent of this error."""
        return _HTTP_STATUS[self.kind]

    @property
    def title(self) -> str:
        return _TITLES[self.kind]

    def to_payload(self) -> dict[str, Any]:
        """Render the error as a response body."""
        payload: dict[str, Any] = {"error": self.title, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload

    def __repr__(self) -> str:
        return f"AnalysisError({self.kind.value!r}, {self.message!r})"
