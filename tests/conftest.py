"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import pytest

from resilient_transport.config import Settings
from resilient_transport.retry.transport import RetryConfig


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with a short retry budget.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.RETRY_BACKOFF_TIMEOUT = 0.5
    """
    return Settings(
        # === Application ===
        APP_NAME="resilient-transport (Test)",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Retry & Backoff ===
        RETRY_BACKOFF_TIMEOUT=2.0,
        RETRY_MAX_INTERVAL=0.1,
        RETRY_RANDOMIZATION_FACTOR=0.0,
        RETRY_REQUEST_TIMEOUT=None,

        # === Diagnostics ===
        RETRY_LOG_REQUEST=False,
        RETRY_LOG_RESPONSE=False,

        # === Monitoring ===
        METRICS_ENABLED=False,  # Keep the global registry untouched unless a test needs it
    )


@pytest.fixture
def fast_config(test_settings: Settings) -> RetryConfig:
    """RetryConfig with deterministic, short waits (50 ms, 75 ms, then 100 ms)."""
    return RetryConfig.from_settings(test_settings)


@pytest.fixture
def base_url() -> str:
    return "http://upstream.test"
