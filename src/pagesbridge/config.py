"""Bridge configuration.

BridgeConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    """Where functions live and how wrangler is launched. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = BridgeConfig(functions_dir="api", start_timeout=30.0)
    """

    # Functions root scanned for handler files
    functions_dir: str | Path = "functions"
    extensions: tuple[str, ...] = (".js", ".ts")

    # Emulator
    wrangler_command: tuple[str, ...] = ("wrangler",)
    static_dir: str = "static"  # Positional directory passed to `pages dev`
    start_timeout: float = 10.0  # Seconds to wait for the readiness signal
    shutdown_grace: float = 5.0  # Seconds between SIGTERM and SIGKILL on aclose()

    # Proxy
    forward_timeout: float | None = None  # None = wait as long as the handler runs
