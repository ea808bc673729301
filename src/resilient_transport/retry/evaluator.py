"""
Outcome evaluation for retry attempts.

An evaluator looks at the outcome of one attempt (transport error, request,
response) and decides whether another attempt should follow, and which
error, if any, describes the outcome. Evaluators must be side-effect free:
the same inputs always give the same decision.
"""

from typing import NamedTuple, Optional, Protocol

import httpx

from resilient_transport.retry.exceptions import ServerResponseError


class RetryDecision(NamedTuple):
    """Decision derived from a single attempt."""

    should_retry: bool
    error: Optional[BaseException] = None


class Evaluator(Protocol):
    """
    Protocol for retry-decision functions.

    Plain functions qualify. Returning a bare ``(bool, error)`` tuple is
    accepted as well, since RetryDecision is a tuple.
    """

    def __call__(
        self,
        error: Optional[BaseException],
        request: httpx.Request,
        response: Optional[httpx.Response],
    ) -> RetryDecision:
        ...


def default_evaluator(
    error: Optional[BaseException],
    request: httpx.Request,
    response: Optional[httpx.Response],
) -> RetryDecision:
    """
    Default policy.

    - transport error: retry and keep that error
    - status >= 500 or 408 (Request Timeout): retry with ServerResponseError
    - anything else: final, no error
    """
    if error is not None:
        return RetryDecision(True, error)

    if response is not None and (
        response.status_code >= 500
        or response.status_code == httpx.codes.REQUEST_TIMEOUT
    ):
        return RetryDecision(
            True, ServerResponseError(status_code=response.status_code)
        )

    return RetryDecision(False, None)


def retry_on_status(*status_codes: int) -> Evaluator:
    """
    Build an evaluator that retries transport errors and the given statuses only.

    Example:
        >>> evaluator = retry_on_status(429, 502, 503, 504)
    """
    retryable = frozenset(status_codes)

    def evaluator(
        error: Optional[BaseException],
        request: httpx.Request,
        response: Optional[httpx.Response],
    ) -> RetryDecision:
        if error is not None:
            return RetryDecision(True, error)
        if response is not None and response.status_code in retryable:
            return RetryDecision(
                True,
                ServerResponseError(
                    f"retryable status {response.status_code}",
                    status_code=response.status_code,
                ),
            )
        return RetryDecision(False, None)

    return evaluator
