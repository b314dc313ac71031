"""Shared pytest configuration for pagesbridge tests.

Provides ``fake_wrangler``: a factory that writes a small Python script
standing in for the wrangler binary. The script speaks the same IPC
convention as Node (``NODE_CHANNEL_FD``, newline-delimited JSON) and
returns a ``BridgeConfig`` that launches it.
"""

import sys
import textwrap
from collections.abc import Callable
from typing import TypeAlias
from pathlib import Path

import pytest

from pagesbridge.config import BridgeConfig

_PRELUDE = """\
import json
import os
import sys
import time

CHANNEL = int(os.environ["NODE_CHANNEL_FD"])


def send(obj):
    os.write(CHANNEL, (json.dumps(obj) + "\\n").encode())


with open(os.path.join(os.path.dirname(__file__), "argv.json"), "w") as f:
    json.dump(sys.argv[1:], f)

"""

READY_BODY = """\
print("wrangler: listening", flush=True)
print("wrangler: warning", file=sys.stderr, flush=True)
send(json.dumps({"ip": "127.0.0.1", "port": 8788}))
send(json.dumps({"ip": "10.0.0.1", "port": 1}))
time.sleep(60)
"""


FakeWrangler: TypeAlias = Callable[..., BridgeConfig]


@pytest.fixture
def fake_wrangler(tmp_path: Path) -> FakeWrangler:
    """Build a BridgeConfig whose wrangler is a scripted Python process."""

    def _make(body: str = READY_BODY, **overrides: object) -> BridgeConfig:
        script_dir = tmp_path / "wrangler"
        script_dir.mkdir(exist_ok=True)
        script = script_dir / "wrangler.py"
        script.write_text(_PRELUDE + textwrap.dedent(body))
        settings: dict[str, object] = {
            "wrangler_command": (sys.executable, str(script)),
            "start_timeout": 10.0,
            "shutdown_grace": 2.0,
        }
        settings.update(overrides)
        return BridgeConfig(**settings)

    return _make


@pytest.fixture
def functions_dir(tmp_path: Path) -> Path:
    """A functions root with two routable files and a middleware file."""
    root = tmp_path / "functions"
    (root / "users").mkdir(parents=True)
    (root / "index.ts").write_text("export function onRequestGet() {}\n")
    (root / "users" / "[id].ts").write_text(
        "export const onRequestGet = async () => new Response('one');\n"
        "export const onRequestDelete = async () => new Response(null);\n"
    )
    (root / "_middleware.ts").write_text("export const onRequest = [];\n")
    return root
