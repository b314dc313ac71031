"""pagesbridge exception hierarchy.

Shared across the wrangler supervisor, discovery, and the proxy so every
module raises and catches the same types.
"""

from dataclasses import dataclass
from pathlib import Path


class BridgeError(Exception):
    """Base for all pagesbridge-specific errors."""


class ConfigurationError(BridgeError):
    """Raised when plugin options or bridge configuration are invalid.

    Typically raised by ``PluginOptions.from_mapping()`` before anything
    is spawned.
    """


# -- Emulator startup --------------------------------------------------------


class StartupError(BridgeError):
    """Base for failures while bringing up the wrangler process.

    Always fatal: the dev server exits instead of running degraded.
    """


class StartupTimeout(StartupError):
    """No readiness signal arrived within the start-up window."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            f"Timed out waiting for Wrangler Pages dev server to start ({timeout:g}s)."
        )


class MalformedReadinessSignal(StartupError):
    """The first IPC message was not a ``{ip, port}`` object."""

    def __init__(self, message: bytes | str, reason: str) -> None:
        self.message = message
        self.reason = reason
        super().__init__(f"Malformed readiness signal from wrangler ({reason}): {message!r}")


class EmulatorExited(StartupError):
    """The wrangler process closed its IPC channel before announcing an address."""

    def __init__(self, returncode: int | None) -> None:
        self.returncode = returncode
        super().__init__(f"Wrangler exited before it was ready (exit code {returncode}).")


class EmulatorNotFound(StartupError):
    """The wrangler executable could not be spawned."""


# -- Discovery ---------------------------------------------------------------


class DiscoveryParseFailure(BridgeError):
    """A functions source file could not be parsed into a syntax tree."""

    def __init__(self, path: str | Path, line: int, column: int) -> None:
        self.path = Path(path)
        self.line = line
        self.column = column
        super().__init__(f"Syntax error in {self.path} at line {line}, column {column}.")


# -- HTTP --------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HTTPError(BridgeError):
    """An error that maps directly to an HTTP status code.

    Raised while forwarding. The proxy catches these and answers the
    original requester with the matching status.
    """

    status: int
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class ProxyForwardingFailure(HTTPError):
    """502 — the wrangler process could not be reached mid-request."""

    def __init__(self, detail: str = "Bad Gateway") -> None:
        super().__init__(status=502, detail=detail)
