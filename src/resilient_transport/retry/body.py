"""
Replayable request bodies.

httpx request streams can only be consumed once. Before the first attempt
the body is read into an immutable buffer; every attempt then gets its own
fresh stream over that buffer.
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx


@dataclass(frozen=True)
class RequestBodySnapshot:
    """Immutable copy of a request body."""

    data: bytes

    @classmethod
    async def capture(cls, request: httpx.Request) -> Optional["RequestBodySnapshot"]:
        """
        Read the request body fully, once, and close the original stream.

        Returns:
            Snapshot of the body, or None when the request carries no body

        Raises:
            Whatever reading the stream raises, unmodified
        """
        stream = request.stream
        try:
            data = await request.aread()
        finally:
            if isinstance(stream, httpx.AsyncByteStream):
                await stream.aclose()

        if not data:
            return None
        return cls(data)

    def open(self) -> httpx.ByteStream:
        """Return a new, independently consumable stream over the body."""
        return httpx.ByteStream(self.data)

    def attach(
        self,
        request: httpx.Request,
        extensions: Optional[dict[str, Any]] = None,
    ) -> httpx.Request:
        """Build a copy of ``request`` carrying a fresh body stream."""
        return httpx.Request(
            method=request.method,
            url=request.url,
            headers=request.headers,
            stream=self.open(),
            extensions=request.extensions if extensions is None else extensions,
        )

    def __len__(self) -> int:
        return len(self.data)
