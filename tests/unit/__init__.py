"""
Unit tests for resilient_transport.

Test individual components in isolation:
- Backoff generator (growth, clamping, jitter bounds, budget expiry)
- Evaluators (default policy, status-based policy)
- Request body snapshots and diagnostic dumps
- Retry transport (escape paths, deadlines, cancellation, diagnostics)
- Settings
"""
