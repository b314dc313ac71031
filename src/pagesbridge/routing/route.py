"""FunctionRoute, PathSegment, and InstalledRoute frozen dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pagesbridge.routing.pattern import MountPattern


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:    ``/users``  (kind="static")
    Param:     ``/:id``    (kind="param", param_name="id")
    Wildcard:  ``/*``      (kind="wildcard")
    """

    value: str
    kind: str = "static"
    param_name: str | None = None


@dataclass(frozen=True, slots=True)
class FunctionRoute:
    """A synthesized route for one functions file.

    ``match_all`` (an ``onRequest`` export) overrides ``methods``.
    """

    route_path: str
    methods: frozenset[str]
    match_all: bool = False
    source: str = ""

    def allows(self, method: str) -> bool:
        """True if requests with *method* are handled by this route."""
        return self.match_all or method.upper() in self.methods

    @property
    def method_label(self) -> str:
        """Human-readable method list, e.g. ``"DELETE, GET"`` or ``"*"``."""
        if self.match_all:
            return "*"
        return ", ".join(sorted(self.methods))


@dataclass(frozen=True, slots=True)
class InstalledRoute:
    """A route mounted on the proxy, bound to the wrangler address."""

    route: FunctionRoute
    target: str
    pattern: MountPattern
    order: int
