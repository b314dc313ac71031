"""Wrangler process supervision.

Spawns ``wrangler pages dev`` with a Node-style IPC channel, waits for
the one-time readiness signal carrying the bound address, and makes sure
the process does not outlive the host.

The IPC channel follows Node's ``stdio: [..., 'ipc']`` convention: the
child end of a Unix socket pair is inherited and announced through
``NODE_CHANNEL_FD``; messages are newline-delimited JSON.
"""

from __future__ import annotations

import asyncio
import atexit
import contextlib
import json
import logging
import os
import shlex
import signal
import socket
from collections.abc import Iterable
from dataclasses import dataclass

from pagesbridge.config import BridgeConfig
from pagesbridge.errors import (
    EmulatorExited,
    EmulatorNotFound,
    MalformedReadinessSignal,
    StartupTimeout,
)
from pagesbridge.options import OptionValue
from pagesbridge.wrangler.args import wrangler_args

logger = logging.getLogger("pagesbridge.wrangler")


@dataclass(frozen=True, slots=True)
class ReadinessSignal:
    """The ``{ip, port}`` message wrangler sends once it is listening."""

    ip: str
    port: int

    @property
    def address(self) -> str:
        """Base URL of the wrangler dev server."""
        host = f"[{self.ip}]" if ":" in self.ip else self.ip
        return f"http://{host}:{self.port}"

    @classmethod
    def parse(cls, message: bytes) -> ReadinessSignal:
        """Parse one raw IPC message.

        Wrangler sends ``process.send(JSON.stringify({ip, port}))``, so the
        IPC line is a JSON string holding the JSON object. A bare object
        is accepted too.

        Raises:
            MalformedReadinessSignal: If the message is not a JSON object
                with a string ``ip`` and an integer ``port``.
        """
        try:
            data = json.loads(message)
            if isinstance(data, str):
                data = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedReadinessSignal(message, "not JSON") from exc

        if not isinstance(data, dict):
            raise MalformedReadinessSignal(message, "not an object")

        ip = data.get("ip")
        port = data.get("port")
        if not isinstance(ip, str) or not ip:
            raise MalformedReadinessSignal(message, "missing ip")
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            raise MalformedReadinessSignal(message, "invalid port")
        return cls(ip=ip, port=port)


class WranglerProcess:
    """Owns exactly one ``wrangler pages dev`` process.

    ``Idle -> Spawned -> Ready`` on a readiness signal, or
    ``Spawned -> Failed`` on timeout, malformed signal, or early exit.
    Failures terminate the process; nothing is retried.

    Usage::

        wrangler = WranglerProcess(options.to_options(), config)
        wrangler.register_cleanup()
        address = await wrangler.start()   # "http://127.0.0.1:8788"
        ...
        await wrangler.aclose()
    """

    __slots__ = (
        "_channel",
        "_cleanup_registered",
        "_command",
        "_config",
        "_process",
        "_tasks",
        "readiness",
    )

    def __init__(
        self,
        options: Iterable[tuple[str, OptionValue]] = (),
        config: BridgeConfig | None = None,
    ) -> None:
        self._config = config or BridgeConfig()
        self._command = [
            *self._config.wrangler_command,
            "pages",
            "dev",
            self._config.static_dir,
            "--port=0",
            *wrangler_args(options),
        ]
        self._process: asyncio.subprocess.Process | None = None
        self._channel: asyncio.StreamWriter | None = None
        self._tasks: list[asyncio.Task[None]] = []
        self._cleanup_registered = False
        self.readiness: ReadinessSignal | None = None

    # -- Introspection --

    @property
    def command(self) -> list[str]:
        """The full command line used to spawn wrangler."""
        return list(self._command)

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._process is not None else None

    @property
    def running(self) -> bool:
        """True while a spawned process has not been reaped."""
        return self._process is not None and self._process.returncode is None

    # -- Lifecycle --

    def register_cleanup(self) -> None:
        """Terminate the process when the interpreter exits.

        Idempotent: repeated calls register the hook once.
        """
        if self._cleanup_registered:
            return
        atexit.register(self.terminate)
        self._cleanup_registered = True

    def terminate(self) -> None:
        """Send SIGTERM to a live process. Safe to call at interpreter exit."""
        if not self.running:
            return
        assert self._process is not None
        with contextlib.suppress(ProcessLookupError):
            os.kill(self._process.pid, signal.SIGTERM)

    async def start(self) -> str:
        """Spawn wrangler and wait for its readiness signal.

        Returns:
            The dev server address, e.g. ``"http://127.0.0.1:8788"``.

        Raises:
            EmulatorNotFound: The wrangler command cannot be executed.
            StartupTimeout: No signal within ``start_timeout`` seconds.
            MalformedReadinessSignal: The first message is not ``{ip, port}``.
            EmulatorExited: The channel closed before any message.
        """
        if self._process is not None:
            msg = "WranglerProcess.start() can only be called once."
            raise RuntimeError(msg)

        parent, child = socket.socketpair()
        env = {
            **os.environ,
            "NODE_CHANNEL_FD": str(child.fileno()),
            "NODE_CHANNEL_SERIALIZATION_MODE": "json",
        }
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self._command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                pass_fds=(child.fileno(),),
            )
        except OSError as exc:
            parent.close()
            msg = f"Cannot run {self._command[0]!r}: {exc}"
            raise EmulatorNotFound(msg) from exc
        finally:
            # The child holds its own copy now
            child.close()

        logger.debug("Spawned wrangler (pid %d): %s", self._process.pid, shlex.join(self._command))

        assert self._process.stdout is not None
        assert self._process.stderr is not None
        self._tasks.append(asyncio.create_task(self._forward(self._process.stdout, logging.INFO)))
        self._tasks.append(asyncio.create_task(self._forward(self._process.stderr, logging.WARNING)))

        reader, self._channel = await asyncio.open_unix_connection(sock=parent)

        timeout = self._config.start_timeout
        try:
            message = await asyncio.wait_for(reader.readline(), timeout=timeout)
        except TimeoutError:
            await self.aclose()
            raise StartupTimeout(timeout) from None

        if not message:
            returncode = await self._reap()
            await self.aclose()
            raise EmulatorExited(returncode)

        try:
            self.readiness = ReadinessSignal.parse(message)
        except MalformedReadinessSignal:
            await self.aclose()
            raise

        # First message wins; anything later is read and dropped
        self._tasks.append(asyncio.create_task(self._drain(reader)))

        address = self.readiness.address
        logger.debug("Wrangler is ready at %s", address)
        return address

    async def aclose(self) -> None:
        """Stop forwarding output and terminate the process.

        Sends SIGTERM, then SIGKILL if the process is still alive after
        ``shutdown_grace`` seconds.
        """
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self._channel is not None:
            self._channel.close()
            self._channel = None

        process = self._process
        if process is None or process.returncode is not None:
            return

        with contextlib.suppress(ProcessLookupError):
            process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=self._config.shutdown_grace)
        except TimeoutError:
            logger.warning("Wrangler (pid %d) ignored SIGTERM; killing it", process.pid)
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()

    # -- Internals --

    async def _forward(self, stream: asyncio.StreamReader, level: int) -> None:
        """Relay one output stream to the log, line by line."""
        async for line in stream:
            logger.log(level, "%s", line.decode("utf-8", errors="replace").rstrip("\r\n"))

    async def _drain(self, reader: asyncio.StreamReader) -> None:
        while line := await reader.readline():
            logger.debug("Ignoring wrangler IPC message: %r", line)

    async def _reap(self) -> int | None:
        """Give an exiting process a moment to report its exit code."""
        assert self._process is not None
        try:
            return await asyncio.wait_for(self._process.wait(), timeout=1.0)
        except TimeoutError:
            return self._process.returncode
