"""Mount patterns — prefix matching for installed function routes.

A mount behaves like an Express ``app.use(path, ...)`` mount: it matches
the request path and anything below it, at segment boundaries and
case-insensitively. ``:name`` matches exactly one non-empty segment,
``*`` matches whatever remains (including nothing).
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import unquote

from pagesbridge.routing.route import PathSegment

# Per-segment precedence: a static segment beats a parameter beats a wildcard
_RANK = {"static": 2, "param": 1, "wildcard": 0}


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/"            -> []
        "/users"       -> [PathSegment("users")]
        "/users/:id"   -> [PathSegment("users"), PathSegment(":id", kind="param", param_name="id")]
        "/files/*"     -> [PathSegment("files"), PathSegment("*", kind="wildcard")]
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part == "*":
            segments.append(PathSegment(value=part, kind="wildcard"))
        elif part.startswith(":") and len(part) > 1:
            segments.append(PathSegment(value=part, kind="param", param_name=part[1:]))
        else:
            segments.append(PathSegment(value=part))
    return segments


@dataclass(frozen=True, slots=True)
class MountPattern:
    """A compiled mount path.

    Usage::

        pattern = MountPattern.compile("/users/:id")
        pattern.match("/users/42/avatar")  # {"id": "42"}
        pattern.match("/users")            # None
    """

    path: str
    segments: tuple[PathSegment, ...]

    @classmethod
    def compile(cls, path: str) -> MountPattern:
        return cls(path=path, segments=tuple(parse_path(path)))

    @property
    def specificity(self) -> tuple[int, tuple[int, ...]]:
        """Sort key: deeper mounts first, then static > param > wildcard."""
        return len(self.segments), tuple(_RANK[seg.kind] for seg in self.segments)

    def match(self, request_path: str) -> dict[str, str] | None:
        """Match a request path against this mount.

        Returns captured parameters (the wildcard remainder under ``"*"``)
        or ``None`` when the path is outside the mount.
        """
        parts = [p for p in request_path.split("/") if p]
        params: dict[str, str] = {}
        for index, seg in enumerate(self.segments):
            if seg.kind == "wildcard":
                params["*"] = unquote("/".join(parts[index:]))
                return params
            if index >= len(parts):
                return None
            part = parts[index]
            if seg.kind == "param":
                params[seg.param_name or ""] = unquote(part)
            elif unquote(part).lower() != seg.value.lower():
                return None
        return params
