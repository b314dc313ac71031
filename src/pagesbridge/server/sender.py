"""ASGI response sending — translates proxy responses to ASGI messages.

Handles both complete-body responses (errors) and relayed upstream
bodies streamed chunk by chunk.
"""

import logging

from pagesbridge._internal.asgi import Send
from pagesbridge.http.response import Response, StreamingResponse

logger = logging.getLogger("pagesbridge.proxy")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send) -> None:
    """Translate a Response into ASGI send() calls."""
    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]

    body = response.body_bytes if _body_allowed(response.status) else b""

    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )


async def send_streaming_response(response: StreamingResponse, send: Send) -> None:
    """Relay a streaming response.

    Sends headers immediately, then each chunk as an ASGI body message
    with ``more_body=True``. Closes with an empty body. A mid-stream
    upstream error is logged and the body is cut short; the status line
    has already gone out.
    """
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": list(response.headers),
        }
    )

    try:
        async for chunk in response.chunks:
            if chunk:
                await send(
                    {
                        "type": "http.response.body",
                        "body": chunk,
                        "more_body": True,
                    }
                )
    except Exception:
        logger.exception("Upstream response ended unexpectedly")

    # Close the stream
    await send(
        {
            "type": "http.response.body",
            "body": b"",
            "more_body": False,
        }
    )
