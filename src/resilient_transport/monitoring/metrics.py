"""Prometheus metrics for retrying transports.

Exposed through whatever registry the host application serves.
Alert rules worth configuring:
- retry_attempts_total{outcome="retryable"} (flaky upstream)
- retry_sequences_total{result="budget_exhausted"} (upstream down longer than the budget)
"""

from prometheus_client import Counter, Histogram

# === Attempt Metrics ===

retry_attempts_total = Counter(
    "retry_attempts_total",
    "Total request attempts by evaluated outcome",
    ["outcome"],
)
"""
Attempts counter by evaluated outcome.

Labels:
- outcome: success (final, no error), retryable (evaluator asked for another
  attempt), final_error (evaluator stopped with an error)
"""

# === Sequence Metrics ===

retry_sequences_total = Counter(
    "retry_sequences_total",
    "Total retry sequences by how they ended",
    ["result"],
)
"""
Retry sequences counter by terminal result.

Labels:
- result: completed (evaluator returned a final outcome), budget_exhausted,
  canceled (cancellation signal or deadline during a wait), body_error
  (request body could not be buffered)

Alert thresholds:
- WARN: budget_exhausted rate > 1% of sequences
"""

retry_wait_seconds = Histogram(
    "retry_wait_seconds",
    "Backoff waits completed between attempts",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)
"""
Backoff wait histogram.

Only waits that ran to completion are observed; waits cut short by
cancellation are not.
"""
