"""Unit test fixtures (stub transports, streams and loggers).

Provides in-memory stand-ins for the wrapped transport so the retry loop can
be exercised without sockets.
"""

import asyncio
from typing import Any, Iterable
from unittest.mock import MagicMock

import httpx
import pytest


class TrackingStream(httpx.AsyncByteStream):
    """Single-use async body stream that remembers whether it was closed."""

    def __init__(self, data: bytes):
        self.data = data
        self.closed = False

    async def __aiter__(self):
        yield self.data

    async def aclose(self) -> None:
        self.closed = True


class StallingStream(httpx.AsyncByteStream):
    """Response body that sends a first chunk and then hangs."""

    def __init__(self, first: bytes = b"partial", stall: float = 30.0):
        self.first = first
        self.stall = stall
        self.closed = False

    async def __aiter__(self):
        yield self.first
        await asyncio.sleep(self.stall)
        yield b"never"

    async def aclose(self) -> None:
        self.closed = True


class ScriptedTransport(httpx.AsyncBaseTransport):
    """
    Transport replaying a script of outcomes, one per attempt.

    Each outcome is a status code, an httpx.Response, an exception to raise,
    or a float meaning "sleep this long, then answer 200". The last outcome
    repeats once the script runs out.
    """

    def __init__(self, outcomes: Iterable[Any]):
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []
        self.bodies: list[bytes] = []
        self.responses: list[httpx.Response] = []
        self.closed = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.bodies.append(await request.aread())

        index = min(len(self.requests), len(self.outcomes)) - 1
        outcome = self.outcomes[index]

        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, float):
            await asyncio.sleep(outcome)
            outcome = 200
        if isinstance(outcome, int):
            outcome = httpx.Response(
                outcome,
                stream=TrackingStream(f"status {outcome}".encode()),
                request=request,
            )
        self.responses.append(outcome)
        return outcome

    @property
    def attempts(self) -> int:
        return len(self.requests)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def scripted_transport():
    """Factory fixture to create a ScriptedTransport.

    Usage:
        def test_something(scripted_transport):
            transport = scripted_transport(503, 503, 200)
    """
    def _create(*outcomes: Any) -> ScriptedTransport:
        return ScriptedTransport(outcomes)

    return _create


@pytest.fixture
def tracking_stream():
    """Factory fixture to create a TrackingStream over the given bytes."""
    def _create(data: bytes = b"payload") -> TrackingStream:
        return TrackingStream(data)

    return _create


@pytest.fixture
def stalled_response():
    """Factory fixture to create a response whose body hangs after one chunk.

    Usage:
        def test_something(stalled_response):
            response = stalled_response(503)
            response.stream.closed  # True once the retry layer closed it
    """
    def _create(status_code: int = 503) -> httpx.Response:
        return httpx.Response(status_code, stream=StallingStream())

    return _create


@pytest.fixture
def mock_logger() -> MagicMock:
    """Mock structlog-style logger (debug/warning/error with keyword fields)."""
    mock = MagicMock()
    mock.debug = MagicMock()
    mock.warning = MagicMock()
    mock.error = MagicMock()
    return mock
