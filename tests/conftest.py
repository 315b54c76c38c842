"""Shared test fixtures for tiercache.

Provides an isolated config environment, a fresh event stream with a
recorder, an in-memory store, and a scripted origin built on
:class:`httpx.MockTransport`. These fixtures are automatically discovered
by pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest

from tiercache.cache.store import MemoryStore
from tiercache.client.context import RequestContext
from tiercache.events import EVENT_KINDS, EventStream
from tiercache.output import OutputFormat, OutputManager, reset_output, set_output

DEFAULT_HEADERS = {"cache-control": "max-age=60"}
DEFAULT_BODY = "I am a string!"
DEFAULT_URL = "http://www.example.com/"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install an uncoloured PLAIN OutputManager that prints through ``sys.*``."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at subdirectories of tmp_path, clears all
    TIERCACHE_* environment variables, and changes the working directory
    to tmp_path.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("tiercache.config._is_xdg_platform", lambda: True)

    for var in [
        "TIERCACHE_TIMEOUT",
        "TIERCACHE_IGNORE_CACHE_ERRORS",
        "TIERCACHE_NAME",
        "TIERCACHE_CACHE_DIR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass
class EventRecorder:
    """Collects ``(event name, context)`` pairs from an :class:`EventStream`."""

    stream: EventStream
    received: list[tuple[str, RequestContext]] = field(default_factory=list)

    def listen(self, *names: str) -> None:
        for name in names:
            self.stream.on(name, lambda ctx, name=name: self.received.append((name, ctx)))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.received]


@pytest.fixture
def stream() -> EventStream:
    """A private event stream, so listeners never leak between tests."""
    return EventStream()


@pytest.fixture
def recorder(stream: EventStream) -> EventRecorder:
    """Records the four un-namespaced cache events on ``stream``."""
    rec = EventRecorder(stream)
    rec.listen(*(f"cache.{kind}" for kind in EVENT_KINDS))
    return rec


# ---------------------------------------------------------------------------
# Stores and origin
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@dataclass
class Origin:
    """Scripted origin server: fixed reply, records every request it sees."""

    status_code: int = 200
    body: str = DEFAULT_BODY
    headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    requests: list[httpx.Request] = field(default_factory=list)
    error: Optional[Exception] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.body, headers=self.headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def reply(self, status_code: int = 200, body: str = DEFAULT_BODY, **headers: Any) -> Origin:
        self.status_code = status_code
        self.body = body
        self.headers = {k.replace("_", "-"): v for k, v in headers.items()}
        return self


@pytest.fixture
def origin() -> Origin:
    return Origin()
