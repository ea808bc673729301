"""
Resilient outbound HTTP for client libraries.

Wraps an httpx transport with an exponential-backoff retry policy so call
sites survive flaky servers and networks without their own retry loops:
- Backoff with elapsed-time budget and additive jitter
- Pluggable outcome evaluation (transport errors, 5xx and 408 by default)
- Per-attempt deadlines, cooperative cancellation and body replay
- Structured diagnostics via structlog, Prometheus counters

Architecture: RetryTransport (httpx.AsyncBaseTransport decorator) + backoff + evaluator
"""

from resilient_transport.client import create_client
from resilient_transport.retry import (
    RetryConfig,
    RetryTransport,
    ServerResponseError,
    default_evaluator,
)

__version__ = "0.1.0"

__all__ = [
    "create_client",
    "RetryConfig",
    "RetryTransport",
    "ServerResponseError",
    "default_evaluator",
]
