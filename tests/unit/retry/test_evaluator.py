"""
Unit tests for retry evaluators.
"""

import httpx
import pytest

from resilient_transport.retry.evaluator import (
    RetryDecision,
    default_evaluator,
    retry_on_status,
)
from resilient_transport.retry.exceptions import ServerResponseError


@pytest.fixture
def request_() -> httpx.Request:
    return httpx.Request("GET", "http://upstream.test/items")


def make_response(status_code: int, request: httpx.Request) -> httpx.Response:
    return httpx.Response(status_code, request=request)


# ============================================================================
# default_evaluator
# ============================================================================


def test_default_evaluator_retries_transport_error(request_):
    """Test a transport error is retried and propagated as-is."""
    error = httpx.ConnectError("connection refused", request=request_)

    decision = default_evaluator(error, request_, None)

    assert decision == RetryDecision(True, error)
    assert decision.error is error


def test_default_evaluator_prefers_error_over_response(request_):
    """Test an error wins even if a successful response is present."""
    error = httpx.ReadError("reset", request=request_)

    should_retry, effective = default_evaluator(error, request_, make_response(200, request_))

    assert should_retry is True
    assert effective is error


@pytest.mark.parametrize("status_code", [500, 502, 503, 504, 599, 408])
def test_default_evaluator_retries_server_errors_and_request_timeout(request_, status_code):
    should_retry, error = default_evaluator(None, request_, make_response(status_code, request_))

    assert should_retry is True
    assert isinstance(error, ServerResponseError)
    assert str(error) == "server response error"
    assert error.status_code == status_code


@pytest.mark.parametrize("status_code", [200, 201, 204, 301, 400, 404, 429, 499])
def test_default_evaluator_accepts_other_statuses(request_, status_code):
    decision = default_evaluator(None, request_, make_response(status_code, request_))

    assert decision == (False, None)


def test_default_evaluator_is_idempotent(request_):
    """Test repeated calls with the same inputs give the same decision."""
    response = make_response(503, request_)

    decisions = [default_evaluator(None, request_, response) for _ in range(3)]

    assert {d.should_retry for d in decisions} == {True}
    assert {type(d.error) for d in decisions} == {ServerResponseError}
    assert {str(d.error) for d in decisions} == {"server response error"}


def test_retry_decision_defaults_to_no_error():
    decision = RetryDecision(False)

    assert decision.should_retry is False
    assert decision.error is None


# ============================================================================
# retry_on_status
# ============================================================================


def test_retry_on_status_retries_listed_codes_only(request_):
    evaluator = retry_on_status(429, 503)

    retry_429, error_429 = evaluator(None, request_, make_response(429, request_))
    retry_500, error_500 = evaluator(None, request_, make_response(500, request_))

    assert retry_429 is True
    assert isinstance(error_429, ServerResponseError)
    assert error_429.status_code == 429
    assert (retry_500, error_500) == (False, None)


def test_retry_on_status_still_retries_transport_errors(request_):
    evaluator = retry_on_status(503)
    error = httpx.ConnectTimeout("timed out", request=request_)

    assert evaluator(error, request_, None) == (True, error)
