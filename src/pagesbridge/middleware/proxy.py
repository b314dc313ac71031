"""Functions proxy middleware.

Forwards requests for installed function routes to the wrangler dev
server and falls through to the wrapped ASGI app for everything else.

A route only claims a request when its mount matches the path *and* it
allows the method; otherwise the request continues to the host app as
if the route did not exist. When several mounts claim a request the
most specific one wins (see ``MountPattern.specificity``); equally
specific mounts resolve in installation order.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeAlias

import httpx

from pagesbridge._internal.asgi import ASGIApp, Receive, Scope, Send
from pagesbridge.errors import ProxyForwardingFailure
from pagesbridge.http.headers import forwardable
from pagesbridge.http.request import Request
from pagesbridge.http.response import Response, StreamingResponse
from pagesbridge.routing.pattern import MountPattern
from pagesbridge.routing.route import FunctionRoute, InstalledRoute
from pagesbridge.server.sender import send_response, send_streaming_response

logger = logging.getLogger("pagesbridge.proxy")

LifecycleHook: TypeAlias = Callable[[], Awaitable[None]]


async def not_found_app(scope: Scope, receive: Receive, send: Send) -> None:
    """Fallback host: answers lifespan events and 404s every request."""
    if scope["type"] == "lifespan":
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return
    elif scope["type"] == "http":
        await send_response(Response("Not Found", status=404), send)


class FunctionsProxy:
    """ASGI middleware that mounts function routes in front of a host app.

    Usage::

        proxy = FunctionsProxy(app)
        proxy.install(FunctionRoute("/users/:id", frozenset({"GET"})), "http://127.0.0.1:8788")

    Lifecycle hooks registered with ``on_startup`` / ``on_shutdown`` run
    when the host receives the matching ASGI lifespan events.
    """

    __slots__ = (
        "_client",
        "_installed",
        "_shutdown_hooks",
        "_startup_hooks",
        "_timeout",
        "_transport",
        "app",
        "verbose",
    )

    def __init__(
        self,
        app: ASGIApp | None = None,
        *,
        forward_timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        verbose: bool = True,
    ) -> None:
        self.app: ASGIApp = app or not_found_app
        self.verbose = verbose
        self._timeout = forward_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._installed: list[InstalledRoute] = []
        self._startup_hooks: list[LifecycleHook] = []
        self._shutdown_hooks: list[LifecycleHook] = []

    # -- Route table --

    @property
    def routes(self) -> list[InstalledRoute]:
        """Installed routes in installation order."""
        return list(self._installed)

    def install(self, route: FunctionRoute, target: str) -> InstalledRoute:
        """Mount *route*, forwarding matching requests to *target*.

        Append-only: routes are never removed.
        """
        installed = InstalledRoute(
            route=route,
            target=target.rstrip("/"),
            pattern=MountPattern.compile(route.route_path),
            order=len(self._installed),
        )
        self._installed.append(installed)
        if self.verbose:
            logger.info("Proxying Cloudflare function at %s", route.route_path)
        return installed

    def resolve(self, method: str, path: str) -> InstalledRoute | None:
        """Find the route that claims a request, or ``None`` to fall through."""
        candidates = [
            installed
            for installed in self._installed
            if installed.route.allows(method) and installed.pattern.match(path) is not None
        ]
        return max(
            candidates,
            key=lambda installed: (installed.pattern.specificity, -installed.order),
            default=None,
        )

    # -- Lifecycle --

    def on_startup(self, hook: LifecycleHook) -> None:
        """Run *hook* when the host receives ``lifespan.startup``."""
        self._startup_hooks.append(hook)

    def on_shutdown(self, hook: LifecycleHook) -> None:
        """Run *hook* when the host receives ``lifespan.shutdown``."""
        self._shutdown_hooks.append(hook)

    async def aclose(self) -> None:
        """Close the upstream HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request.from_asgi(scope, receive)
        installed = self.resolve(request.method, request.path)
        if installed is None:
            await self.app(scope, receive, send)
            return

        await self.forward(request, installed, send)

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run lifecycle hooks as the host app consumes lifespan events."""

        async def receive_with_hooks() -> dict:
            message = await receive()
            if message["type"] == "lifespan.startup":
                for hook in self._startup_hooks:
                    await hook()
            elif message["type"] == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await hook()
                await self.aclose()
            return message

        await self.app(scope, receive_with_hooks, send)

    # -- Forwarding --

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=False,
            )
        return self._client

    async def forward(self, request: Request, installed: InstalledRoute, send: Send) -> None:
        """Relay *request* to the route's target and stream the answer back.

        The original path and query string, method, headers (minus
        hop-by-hop and ``Host``), and body are preserved. Failing to reach
        the target answers 502 without raising.
        """
        client = self._get_client()
        upstream = client.build_request(
            request.method,
            installed.target + request.url,
            headers=forwardable(request.headers, drop=(b"host",)),
            content=request.stream() if request.has_body else None,
        )

        try:
            response = await client.send(upstream, stream=True)
        except httpx.HTTPError as exc:
            failure = ProxyForwardingFailure(f"Could not reach {installed.target}: {exc}")
            logger.error(
                "%s %s -> %s failed: %s",
                request.method,
                request.url,
                installed.route.route_path,
                exc,
            )
            await send_response(Response.from_error(failure), send)
            return

        try:
            await send_streaming_response(
                StreamingResponse(
                    chunks=response.aiter_raw(),
                    status=response.status_code,
                    headers=tuple(forwardable(response.headers.raw)),
                ),
                send,
            )
        finally:
            await response.aclose()
