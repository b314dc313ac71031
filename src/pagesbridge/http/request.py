"""Immutable HTTP request.

Frozen metadata with a streamed body. The request is honest about
what it is: received data that doesn't change.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Any

from pagesbridge._internal.asgi import Receive
from pagesbridge.http.headers import header_value

# Methods that only carry a body when the client announces one
_BODYLESS_METHODS = frozenset({"GET", "HEAD"})


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request as seen by the proxy.

    Metadata (method, path, headers) is frozen at creation.
    The body is streamed from ASGI ``receive`` on demand, once.
    """

    method: str
    path: str
    raw_path: bytes
    query_string: bytes
    headers: tuple[tuple[bytes, bytes], ...]

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    # -- Computed properties --

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive)."""
        return header_value(self.headers, name)

    @property
    def has_body(self) -> bool:
        """True if the body should be streamed upstream.

        Content-Length and Transfer-Encoding decide when present. Without
        them (HTTP/2 frames the body itself), every method except GET and
        HEAD may carry one.
        """
        length = self.header("content-length")
        if length is not None:
            return length.strip() not in ("", "0")
        if self.header("transfer-encoding") is not None:
            return True
        return self.method.upper() not in _BODYLESS_METHODS

    @property
    def url(self) -> str:
        """Original request target: raw path plus query string.

        Uses ``raw_path`` when the server provides it so percent-encoding
        reaches the upstream untouched.
        """
        path = self.raw_path.split(b"?", 1)[0].decode("latin-1") if self.raw_path else self.path
        if self.query_string:
            return f"{path}?{self.query_string.decode('latin-1')}"
        return path

    # -- Async body access --

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        return cls(
            method=scope["method"],
            path=scope["path"],
            raw_path=scope.get("raw_path") or b"",
            query_string=scope.get("query_string", b""),
            headers=tuple(scope.get("headers", ())),
            _receive=receive,
        )
