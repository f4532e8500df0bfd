"""Custom exception hierarchy for shov-cli.

All exceptions that cross layer boundaries must inherit from
:class:`ShovError`.  Raw third-party exceptions (e.g. from httpx) must
NEVER propagate beyond the infrastructure layer: they must be caught
and re-raised as a typed subclass defined here.

Hierarchy
---------
ShovError
├── ConfigurationError
├── InputValidationError
├── TransportError
├── StreamError
├── OperationFailedError
└── ApiError
    ├── RateLimitError
    ├── AuthenticationError
    ├── QuotaExceededError
    ├── AlreadyClaimedError
    ├── ResourceNotFoundError
    └── RequestValidationError
"""

from __future__ import annotations

from typing import Any


class ShovError(Exception):
    """Base exception for all shov-cli errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON error envelope used in ``--json`` mode."""
        envelope: dict[str, Any] = {"success": False, "error": str(self)}
        if self.hint:
            envelope["hint"] = self.hint
        return envelope


# --- Local problems (no request was sent) ----------------------------------

class ConfigurationError(ShovError):
    """Raised when no usable project/API-key pair can be resolved."""


class InputValidationError(ShovError):
    """Raised when command arguments are malformed (bad JSON, size caps)."""


# --- Transport -------------------------------------------------------------

class TransportError(ShovError):
    """Raised when the API cannot be reached or returns an unreadable body."""


class StreamError(ShovError):
    """Raised when the real-time event stream fails."""


# --- Business-level failure inside a 2xx response --------------------------

class OperationFailedError(ShovError):
    """Raised when the server answers 2xx but reports ``success: false``."""


# --- Classified HTTP errors ------------------------------------------------

class ApiError(ShovError):
    """Raised for any non-2xx API response.

    Subclasses narrow the category; this base carries the raw context.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int,
        reason: str | None = None,
        payload: dict[str, Any] | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status: int = status
        self.reason: str | None = reason
        self.payload: dict[str, Any] = payload or {}

    def to_dict(self) -> dict[str, Any]:
        envelope = super().to_dict()
        envelope["status"] = self.status
        if self.reason:
            envelope["reason"] = self.reason
        return envelope


class RateLimitError(ApiError):
    """HTTP 429: the caller decides whether to try again later."""

    def __init__(self, message: str, *, retry_after: int | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retry_after: int | None = retry_after


class AuthenticationError(ApiError):
    """HTTP 401: missing or invalid API key."""


class QuotaExceededError(ApiError):
    """HTTP 403: the project's plan limit has been reached."""


class AlreadyClaimedError(ApiError):
    """HTTP 403: the project is already owned by an account."""


class ResourceNotFoundError(ApiError):
    """HTTP 404: project, key, item or file does not exist."""


class RequestValidationError(ApiError):
    """HTTP 400: the server rejected the request payload."""
