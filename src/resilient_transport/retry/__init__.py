"""
Retry layer for outbound HTTP requests.

Wraps any httpx async transport with an exponential-backoff retry policy:

1. **Backoff**: intervals grow x1.5 from 50 ms up to a cap, with additive
   jitter, until the elapsed-time budget is spent
2. **Evaluator**: decides per attempt whether the outcome is final
3. **RetryTransport**: drives attempts, per-attempt deadlines, body replay,
   cancellation and diagnostics

Main Components:
    - RetryTransport: Transport decorator running the retry loop
    - RetryConfig: Validated configuration for one RetryTransport
    - ExponentialBackoff / BackoffState / next_backoff: Interval generator
    - default_evaluator / RetryDecision: Outcome classification
    - RequestBodySnapshot: Replayable request body

Usage:
    >>> from resilient_transport.retry import RetryTransport
    >>> transport = RetryTransport(httpx.AsyncHTTPTransport(), backoff_timeout=30.0)
"""

from resilient_transport.retry.backoff import (
    DEFAULT_MAX_ELAPSED_TIME,
    DEFAULT_MAX_INTERVAL,
    DEFAULT_RANDOMIZATION_FACTOR,
    BackoffState,
    ExponentialBackoff,
    next_backoff,
)
from resilient_transport.retry.body import RequestBodySnapshot
from resilient_transport.retry.evaluator import (
    Evaluator,
    RetryDecision,
    default_evaluator,
    retry_on_status,
)
from resilient_transport.retry.exceptions import (
    AttemptTimeout,
    RetryError,
    ServerResponseError,
    error_fields,
    with_fields,
)
from resilient_transport.retry.transport import (
    CANCEL_EXTENSION,
    DEADLINE_EXTENSION,
    RetryConfig,
    RetryTransport,
    with_cancel,
    with_deadline,
)

__all__ = [
    "DEFAULT_MAX_ELAPSED_TIME",
    "DEFAULT_MAX_INTERVAL",
    "DEFAULT_RANDOMIZATION_FACTOR",
    "BackoffState",
    "ExponentialBackoff",
    "next_backoff",
    "RequestBodySnapshot",
    "Evaluator",
    "RetryDecision",
    "default_evaluator",
    "retry_on_status",
    "AttemptTimeout",
    "RetryError",
    "ServerResponseError",
    "error_fields",
    "with_fields",
    "CANCEL_EXTENSION",
    "DEADLINE_EXTENSION",
    "RetryConfig",
    "RetryTransport",
    "with_cancel",
    "with_deadline",
]
