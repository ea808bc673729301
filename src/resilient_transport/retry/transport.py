"""
Retrying httpx transport.

RetryTransport decorates any other ``httpx.AsyncBaseTransport`` and replays
each request until the evaluator accepts the outcome, the backoff budget is
spent, or the caller cancels.

Sequence per request:
    1. Buffer the request body once (replayed on every attempt)
    2. Send the attempt through the wrapped transport, under a per-attempt
       deadline when one applies
    3. Ask the evaluator whether the outcome is final
    4. Drain (bounded by the attempt deadline and cancellation) and close a
       rejected response, optionally dumping it
    5. Wait for the next backoff interval, unless cancellation or the
       request deadline comes first

Cancellation and deadlines travel in request extensions so they survive
``httpx.AsyncClient``:

    >>> cancel = asyncio.Event()
    >>> response = await client.get(url, extensions={CANCEL_EXTENSION: cancel})

Usage:
    transport = RetryTransport(httpx.AsyncHTTPTransport(), backoff_timeout=30.0)
    async with httpx.AsyncClient(transport=transport) as client:
        response = await client.post(url, content=b"payload")
"""

import asyncio
from typing import Any, Callable, Optional

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field

from resilient_transport.config import Settings
from resilient_transport.monitoring.metrics import (
    retry_attempts_total,
    retry_sequences_total,
    retry_wait_seconds,
)
from resilient_transport.retry.backoff import (
    DEFAULT_MAX_ELAPSED_TIME,
    DEFAULT_MAX_INTERVAL,
    DEFAULT_RANDOMIZATION_FACTOR,
    ExponentialBackoff,
)
from resilient_transport.retry.body import RequestBodySnapshot
from resilient_transport.retry.dump import dump_request, dump_response
from resilient_transport.retry.evaluator import default_evaluator
from resilient_transport.retry.exceptions import (
    AttemptTimeout,
    RetryError,
    error_fields,
    with_fields,
)

logger = structlog.get_logger(__name__)

CANCEL_EXTENSION = "retry.cancel"
DEADLINE_EXTENSION = "retry.deadline"

# Longest a rejected response body may take to drain
DRAIN_TIMEOUT = 1.0


class RetryConfig(BaseModel):
    """
    Validated retry configuration for one RetryTransport.

    Setting ``logger`` enables per-retry diagnostics; it accepts any
    structlog-style logger (``debug``/``warning``/``error`` with keyword
    fields).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    backoff_timeout: float = Field(default=DEFAULT_MAX_ELAPSED_TIME, ge=0.0, description="Total retry budget in seconds")
    max_interval: float = Field(default=DEFAULT_MAX_INTERVAL, gt=0.0, description="Cap for a single backoff interval")
    randomization_factor: float = Field(default=DEFAULT_RANDOMIZATION_FACTOR, ge=0.0, le=1.0, description="Additive jitter factor")
    request_timeout: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Per-attempt deadline, applied only when the request has no deadline of its own",
    )
    evaluator: Callable[..., Any] = Field(default=default_evaluator, description="Retry decision function")
    logger: Optional[Any] = Field(default=None, description="Diagnostic sink; enables logging when set")
    log_request: bool = Field(default=False, description="Attach request dumps to retried errors")
    log_response: bool = Field(default=False, description="Attach response dumps to retried errors")
    metrics_enabled: bool = Field(default=True, description="Record Prometheus metrics")

    @property
    def logging_enabled(self) -> bool:
        return self.logger is not None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "RetryConfig":
        """Build a config from environment settings, with explicit overrides on top."""
        values: dict[str, Any] = {
            "backoff_timeout": settings.RETRY_BACKOFF_TIMEOUT,
            "max_interval": settings.RETRY_MAX_INTERVAL,
            "randomization_factor": settings.RETRY_RANDOMIZATION_FACTOR,
            "request_timeout": settings.RETRY_REQUEST_TIMEOUT,
            "log_request": settings.RETRY_LOG_REQUEST,
            "log_response": settings.RETRY_LOG_RESPONSE,
            "metrics_enabled": settings.METRICS_ENABLED,
        }
        values.update(overrides)
        return cls(**values)


def with_cancel(request: httpx.Request, event: asyncio.Event) -> httpx.Request:
    """Attach a cancellation signal to a request. The event is only observed, never set."""
    request.extensions[CANCEL_EXTENSION] = event
    return request


def with_deadline(request: httpx.Request, seconds: float) -> httpx.Request:
    """Give a request an absolute deadline ``seconds`` from now (event loop time)."""
    request.extensions[DEADLINE_EXTENSION] = asyncio.get_running_loop().time() + seconds
    return request


class RetryTransport(httpx.AsyncBaseTransport):
    """
    Transport decorator adding exponential-backoff retries.

    Every call to ``handle_async_request`` is one independent retry sequence
    with its own backoff state; the decorator adds no locking, so concurrent
    use is as safe as the wrapped transport makes it.

    Attributes:
        transport: Wrapped transport performing the actual I/O
        config: Retry configuration
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        config: Optional[RetryConfig] = None,
        **overrides: Any,
    ):
        """
        Initialize retry transport.

        Args:
            transport: Transport to send each attempt through
            config: Retry configuration (defaults to RetryConfig())
            **overrides: RetryConfig fields overriding ``config``
        """
        if config is None:
            config = RetryConfig(**overrides)
        elif overrides:
            config = RetryConfig(**{**dict(config), **overrides})

        self.transport = transport
        self.config = config

        logger.debug(
            "RetryTransport initialized",
            transport=type(transport).__name__,
            backoff_timeout=config.backoff_timeout,
            max_interval=config.max_interval,
            request_timeout=config.request_timeout,
            logging_enabled=config.logging_enabled,
        )

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """
        Send ``request`` with retries.

        Returns:
            The first response the evaluator accepts as final

        Raises:
            The error of the last attempt when the evaluator rejects it as
            final, the budget runs out, or cancellation fires during a wait.
            Errors raised while buffering the body propagate unmodified.
        """
        cancel: Optional[asyncio.Event] = request.extensions.get(CANCEL_EXTENSION)
        deadline: Optional[float] = request.extensions.get(DEADLINE_EXTENSION)

        try:
            body = await RequestBodySnapshot.capture(request)
        except Exception:
            self._record_sequence("body_error")
            raise

        # A request deadline wins over the configured per-attempt timeout
        reset_timeout = self.config.request_timeout is not None and deadline is None

        return await self._retry(request, body, cancel, deadline, reset_timeout)

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def _retry(
        self,
        request: httpx.Request,
        body: Optional[RequestBodySnapshot],
        cancel: Optional[asyncio.Event],
        deadline: Optional[float],
        reset_timeout: bool,
    ) -> httpx.Response:
        config = self.config
        sink = config.logger
        retry_count = 0
        backoff = ExponentialBackoff(
            max_elapsed_time=config.backoff_timeout,
            max_interval=config.max_interval,
            randomization_factor=config.randomization_factor,
        )

        while True:
            attempt = request
            if body is not None:
                attempt = body.attach(request)
                if sink is not None:
                    sink.debug(
                        "Replaying buffered request body",
                        method=request.method,
                        url=str(request.url),
                        body_size=len(body),
                    )

            attempt_deadline = deadline
            if reset_timeout:
                attempt_deadline = asyncio.get_running_loop().time() + config.request_timeout

            response, error = await self._send(attempt, attempt_deadline)
            should_retry, error = config.evaluator(error, attempt, response)

            if not should_retry:
                self._record_attempt("final_error" if error is not None else "success")
                self._record_sequence("completed")
                if error is not None:
                    if response is not None:
                        await response.aclose()
                    raise error
                if response is None:
                    raise RetryError("evaluator accepted an attempt that produced no response")
                return response

            self._record_attempt("retryable")

            if response is not None:
                error = await self._discard(attempt, body, response, error, cancel, attempt_deadline)

            has_next, wait = backoff.next_backoff()
            if not has_next:
                self._record_sequence("budget_exhausted")
                if sink is not None:
                    sink.warning(
                        "Retry budget exhausted",
                        retries=retry_count,
                        backoff_timeout=config.backoff_timeout,
                        error=str(error) if error is not None else None,
                    )
                raise error if error is not None else RetryError("retry budget exhausted")

            if not await self._wait(wait, cancel, deadline):
                self._record_sequence("canceled")
                if sink is not None:
                    sink.warning(
                        "Retry sequence canceled",
                        retries=retry_count,
                        error=str(error) if error is not None else None,
                    )
                raise error if error is not None else RetryError("retry sequence canceled")

            retry_count += 1
            if config.metrics_enabled:
                retry_wait_seconds.observe(wait)
            if sink is not None:
                log_fields = error_fields(error)
                log_fields["retry_count"] = retry_count
                log_fields["error"] = str(error) if error is not None else None
                sink.warning(f"error during request, retry # {retry_count}", **log_fields)

    async def _send(
        self,
        request: httpx.Request,
        deadline: Optional[float],
    ) -> tuple[Optional[httpx.Response], Optional[BaseException]]:
        """Run one attempt, turning any raised error into a returned one."""
        # Scoped to this attempt only; leaving the block disarms it
        scope = asyncio.timeout_at(deadline)
        try:
            async with scope:
                response = await self.transport.handle_async_request(request)
        except TimeoutError as exc:
            if scope.expired():
                return None, AttemptTimeout("attempt deadline exceeded", request=request)
            return None, exc
        except Exception as exc:
            return None, exc
        return response, None

    async def _discard(
        self,
        request: httpx.Request,
        body: Optional[RequestBodySnapshot],
        response: httpx.Response,
        error: Optional[BaseException],
        cancel: Optional[asyncio.Event],
        deadline: Optional[float],
    ) -> Optional[BaseException]:
        """Drain and close a rejected response, attaching dumps to ``error`` if enabled."""
        config = self.config
        try:
            try:
                drained = await self._drain(response, cancel, deadline)
            except (httpx.HTTPError, httpx.StreamError) as exc:
                drained = False
                logger.debug("Failed to drain rejected response", status_code=response.status_code, error=str(exc))
            else:
                if not drained:
                    logger.debug("Abandoned draining rejected response", status_code=response.status_code)

            if error is not None and (config.log_request or config.log_response):
                fields: dict[str, str] = {}
                if config.log_request:
                    fields["request"] = dump_request(request, body.data if body is not None else None)
                if config.log_response and drained:
                    fields["response"] = dump_response(response)
                error = with_fields(error, **fields)
        finally:
            await response.aclose()
        return error

    async def _drain(
        self,
        response: httpx.Response,
        cancel: Optional[asyncio.Event],
        deadline: Optional[float],
    ) -> bool:
        """
        Read a rejected response body, giving up on cancellation or at the
        attempt deadline (DRAIN_TIMEOUT at the latest).

        Returns:
            True if the whole body was read
        """
        loop = asyncio.get_running_loop()
        limit = loop.time() + DRAIN_TIMEOUT
        if deadline is not None:
            limit = min(limit, deadline)

        reader = asyncio.ensure_future(response.aread())
        watchers = {reader}
        if cancel is not None:
            watchers.add(asyncio.ensure_future(cancel.wait()))
        try:
            done, _ = await asyncio.wait(
                watchers,
                timeout=max(limit - loop.time(), 0.0),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            pending = [task for task in watchers if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        if reader not in done:
            return False
        reader.result()
        return True

    async def _wait(
        self,
        delay: float,
        cancel: Optional[asyncio.Event],
        deadline: Optional[float],
    ) -> bool:
        """
        Wait out a backoff interval.

        Returns:
            True if the full interval elapsed, False if cancellation fired
            or the request deadline passed first
        """
        loop = asyncio.get_running_loop()
        wake_at = loop.time() + delay
        cut_short = deadline is not None and deadline <= wake_at
        if cut_short:
            wake_at = deadline

        if cancel is None:
            await asyncio.sleep(max(wake_at - loop.time(), 0.0))
            return not cut_short

        try:
            async with asyncio.timeout_at(wake_at):
                await cancel.wait()
        except TimeoutError:
            return not cut_short
        return False

    def _record_attempt(self, outcome: str) -> None:
        if self.config.metrics_enabled:
            retry_attempts_total.labels(outcome=outcome).inc()

    def _record_sequence(self, result: str) -> None:
        if self.config.metrics_enabled:
            retry_sequences_total.labels(result=result).inc()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"transport={type(self.transport).__name__}, "
            f"backoff_timeout={self.config.backoff_timeout}s)"
        )
