"""Monitoring and metrics instrumentation for retrying transports."""

from resilient_transport.monitoring.metrics import (
    retry_attempts_total,
    retry_sequences_total,
    retry_wait_seconds,
)

__all__ = [
    "retry_attempts_total",
    "retry_sequences_total",
    "retry_wait_seconds",
]
