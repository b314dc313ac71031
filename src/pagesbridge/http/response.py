"""HTTP responses produced by the proxy.

``Response`` carries a complete body (error pages). ``StreamingResponse``
relays an upstream body chunk by chunk with the upstream's raw headers.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

from pagesbridge.errors import HTTPError


@dataclass(frozen=True, slots=True)
class Response:
    """A complete HTTP response. Immutable after creation."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/plain; charset=utf-8"

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, bytes):
            return self.body
        return self.body.encode("utf-8")

    @classmethod
    def from_error(cls, error: HTTPError) -> Response:
        """Plain-text response for an ``HTTPError``."""
        return cls(body=error.detail or str(error.status), status=error.status)


@dataclass(frozen=True, slots=True)
class StreamingResponse:
    """A response whose body is relayed from an async byte iterator.

    Headers are raw byte pairs and are sent as-is; no content type is
    added.
    """

    chunks: AsyncIterator[bytes]
    status: int = 200
    headers: tuple[tuple[bytes, bytes], ...] = ()
