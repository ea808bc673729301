"""
Retry exceptions.

Only the failure of the last attempt ever reaches the caller. Budget
exhaustion and cancellation have no dedicated types: both surface as that
last failure. Diagnostic key/values collected while retrying (request and
response dumps) travel on the exception itself via ``with_fields``.
"""

from typing import Any, TypeVar

import httpx

E = TypeVar("E", bound=BaseException)


class RetryError(Exception):
    """
    Base exception for failures synthesized by the retry layer.

    Attributes:
        fields: Diagnostic key/values attached while retrying
    """

    def __init__(self, message: str, fields: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.fields: dict[str, Any] = dict(fields or {})


class ServerResponseError(RetryError):
    """
    Raised when the server answered with a retryable status (5xx or 408).

    Synthesized by the default evaluator; the response itself has already
    been drained and closed by the time this reaches the caller.
    """

    def __init__(
        self,
        message: str = "server response error",
        status_code: int | None = None,
        fields: dict[str, Any] | None = None,
    ):
        super().__init__(message, fields)
        self.status_code = status_code


class AttemptTimeout(httpx.TimeoutException):
    """Raised when a single attempt overruns its per-attempt deadline."""


def error_fields(error: BaseException | None) -> dict[str, Any]:
    """
    Copy the diagnostic fields carried by ``error``.

    A ``fields`` attribute that is not a dict is ignored, as are keys that
    cannot be passed as log keywords (non-strings and ``event``).
    """
    fields = getattr(error, "fields", None)
    if not isinstance(fields, dict):
        return {}
    return {key: value for key, value in fields.items() if isinstance(key, str) and key != "event"}


def with_fields(error: E, **fields: Any) -> E:
    """
    Attach diagnostic fields to an exception and return the same object.

    Works for any exception type, including the transport's own errors.
    Later values win over earlier ones for the same key.
    """
    existing = getattr(error, "fields", None)
    merged = dict(existing) if isinstance(existing, dict) else {}
    merged.update(fields)
    error.fields = merged  # type: ignore[attr-defined]
    return error
