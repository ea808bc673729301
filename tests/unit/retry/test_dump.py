"""
Unit tests for request/response diagnostic dumps.
"""

import httpx

from resilient_transport.retry.dump import dump_request, dump_response


def test_dump_request_renders_start_line_headers_and_body():
    request = httpx.Request(
        "POST",
        "http://upstream.test/items?dry_run=1",
        headers={"X-Trace": "t-1"},
        content=b'{"id": 1}',
    )

    text = dump_request(request, b'{"id": 1}')

    head, _, body = text.partition("\r\n\r\n")
    lines = head.split("\r\n")
    assert lines[0] == "POST /items?dry_run=1 HTTP/1.1"
    assert "host: upstream.test" in lines
    assert "x-trace: t-1" in lines
    assert body == '{"id": 1}'


def test_dump_request_without_body():
    request = httpx.Request("GET", "http://upstream.test/")

    text = dump_request(request)

    assert text.startswith("GET / HTTP/1.1\r\n")
    assert text.endswith("\r\n\r\n")


def test_dump_response_renders_status_and_body():
    response = httpx.Response(503, headers={"Retry-After": "1"}, content=b"busy")

    text = dump_response(response)

    head, _, body = text.partition("\r\n\r\n")
    lines = head.split("\r\n")
    assert lines[0] == "HTTP/1.1 503 Service Unavailable"
    assert "retry-after: 1" in lines
    assert body == "busy"


def test_dump_response_replaces_undecodable_bytes():
    response = httpx.Response(500, content=b"\xff\xfeboom")

    assert dump_response(response).endswith("��boom")
