"""Textual HTTP/1.1 dumps of requests and responses for retry diagnostics."""

from typing import Optional

import httpx


def _render(start_line: str, headers: httpx.Headers, body: bytes) -> str:
    lines = [start_line]
    lines.extend(f"{name}: {value}" for name, value in headers.multi_items())
    return "\r\n".join(lines) + "\r\n\r\n" + body.decode("utf-8", errors="replace")


def dump_request(request: httpx.Request, body: Optional[bytes] = None) -> str:
    """Render a request as it would go over the wire, with its buffered body."""
    target = request.url.raw_path.decode("ascii", errors="replace")
    return _render(f"{request.method} {target} HTTP/1.1", request.headers, body or b"")


def dump_response(response: httpx.Response) -> str:
    """Render a response; its body must already be read."""
    version = response.http_version or "HTTP/1.1"
    start_line = f"{version} {response.status_code} {response.reason_phrase}".rstrip()
    return _render(start_line, response.headers, response.content)
