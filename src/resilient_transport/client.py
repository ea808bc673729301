"""
httpx client factory with retries built in.

Puts a RetryTransport in front of the given transport (a plain
``httpx.AsyncHTTPTransport`` by default) and hands back an ``AsyncClient``
using it. Everything sent through that client is retried.
"""

from typing import Any, Optional

import httpx
import structlog

from resilient_transport.config import Settings
from resilient_transport.retry.transport import RetryConfig, RetryTransport

logger = structlog.get_logger(__name__)


def create_client(
    base_url: str = "",
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    config: Optional[RetryConfig] = None,
    settings: Optional[Settings] = None,
    **client_kwargs: Any,
) -> httpx.AsyncClient:
    """
    Create an AsyncClient whose requests are retried.

    Args:
        base_url: Base URL for the client
        transport: Transport doing the actual I/O (default: AsyncHTTPTransport)
        config: Retry configuration; takes precedence over ``settings``
        settings: Environment settings used to build a config when none is given
        **client_kwargs: Passed to ``httpx.AsyncClient`` (headers, timeout, ...)

    Returns:
        Configured AsyncClient; close it with ``aclose()`` or ``async with``
    """
    if config is None:
        config = RetryConfig.from_settings(settings) if settings is not None else RetryConfig()

    retrying = RetryTransport(transport or httpx.AsyncHTTPTransport(), config)

    logger.info(
        "Created retrying HTTP client",
        base_url=base_url,
        backoff_timeout=config.backoff_timeout,
        request_timeout=config.request_timeout,
    )
    return httpx.AsyncClient(base_url=base_url, transport=retrying, **client_kwargs)
