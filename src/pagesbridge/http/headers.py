"""Header handling for forwarded requests and responses.

Works on raw ``(name, value)`` byte pairs as found in the ASGI scope and
in ``httpx.Headers.raw``. Names are compared lower-cased.
"""

from collections.abc import Iterable

# RFC 9110 §7.6.1: meaningful for a single connection only
HOP_BY_HOP_HEADERS = frozenset({
    b"connection",
    b"keep-alive",
    b"proxy-authenticate",
    b"proxy-authorization",
    b"te",
    b"trailer",
    b"transfer-encoding",
    b"upgrade",
})


def header_value(raw: Iterable[tuple[bytes, bytes]], name: str) -> str | None:
    """Return the first value for *name*, or ``None`` if missing."""
    key = name.lower().encode("latin-1")
    for header, value in raw:
        if header.lower() == key:
            return value.decode("latin-1")
    return None


def forwardable(
    raw: Iterable[tuple[bytes, bytes]],
    *,
    drop: Iterable[bytes] = (),
) -> list[tuple[bytes, bytes]]:
    """Strip hop-by-hop headers (and anything named in *drop*).

    Headers listed in a ``Connection`` header are hop-by-hop too.
    Order and repeated headers (e.g. ``Set-Cookie``) are preserved.
    """
    pairs = [(name.lower(), value) for name, value in raw]
    listed = {
        token.strip().lower()
        for name, value in pairs
        if name == b"connection"
        for token in value.split(b",")
    }
    excluded = HOP_BY_HOP_HEADERS | listed | {name.lower() for name in drop}
    return [(name, value) for name, value in pairs if name not in excluded]
