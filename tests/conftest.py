"""Shared test fixtures for cacheworker.

Provides an isolated config environment, output-state management, a fake
network built on :class:`httpx.MockTransport`, and a factory for workers
wired to that network and a temporary store.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

import httpx
import pytest

from cacheworker.models import NetworkConfig, RoutesConfig, StoreConfig, WorkerConfig
from cacheworker.output import (
    OutputFormat,
    OutputLogHandler,
    OutputManager,
    reset_output,
    set_output,
)
from cacheworker.worker import CacheWorker

ORIGIN = "https://radio.example"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the CLI log bridge after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()
    logger = logging.getLogger("cacheworker")
    for handler in list(logger.handlers):
        if isinstance(handler, OutputLogHandler):
            logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Fake network
# ---------------------------------------------------------------------------


Route = Union[httpx.Response, Exception]


class FakeNetwork:
    """Scriptable origin server.

    Routes map absolute URLs to a canned response or an exception.
    Unknown URLs answer 404.  Setting :attr:`offline` makes every request
    fail with :class:`httpx.ConnectError`.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}
        self.calls: list[httpx.Request] = []
        self.offline = False

    def add(
        self,
        url: str,
        content: bytes = b"",
        status: int = 200,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.routes[url] = httpx.Response(status, content=content, headers=headers or {})

    def fail(self, url: str) -> None:
        self.routes[url] = httpx.ConnectError("connection refused")

    def count(self, url: str) -> int:
        return sum(1 for r in self.calls if str(r.url) == url)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.offline:
            raise httpx.ConnectError("network is down", request=request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, content=b"not found")
        if isinstance(route, Exception):
            raise route
        return httpx.Response(
            route.status_code,
            content=route.content,
            headers=route.headers,
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def network() -> FakeNetwork:
    """A fake origin serving the default static assets."""
    net = FakeNetwork()
    net.add(f"{ORIGIN}/", b"<html>home</html>", headers={"content-type": "text/html"})
    net.add(f"{ORIGIN}/index.html", b"<html>index</html>", headers={"content-type": "text/html"})
    net.add(
        f"{ORIGIN}/manifest.json",
        b'{"name": "radio"}',
        headers={"content-type": "application/json"},
    )
    return net


# ---------------------------------------------------------------------------
# Config and worker fixtures
# ---------------------------------------------------------------------------


def make_config(store_dir: Path, version: str = "v2", **overrides) -> WorkerConfig:
    """Build a WorkerConfig rooted at *store_dir* that talks to ORIGIN."""
    return WorkerConfig(
        version=version,
        network=NetworkConfig(origin=ORIGIN),
        store=StoreConfig(directory=str(store_dir)),
        routes=RoutesConfig(static_assets=["/", "/index.html", "/manifest.json"]),
        **overrides,
    )


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    return tmp_path / "store"


@pytest.fixture
def worker_config(store_dir: Path) -> WorkerConfig:
    return make_config(store_dir)


@pytest.fixture
def make_worker(
    store_dir: Path, network: FakeNetwork
) -> Callable[..., CacheWorker]:
    """Factory for workers sharing one store directory and the fake network.

    Workers are async context managers; tests enter them with
    ``async with make_worker() as worker``.
    """

    def _make(version: str = "v2", **overrides) -> CacheWorker:
        config = make_config(store_dir, version=version, **overrides)
        return CacheWorker(config, transport=network.transport)

    return _make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at subdirectories of tmp_path, clears the
    CACHEWORKER_* environment variables, and changes the working
    directory to tmp_path.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("cacheworker.config._is_xdg_platform", lambda: True)

    for var in ["CACHEWORKER_VERSION", "CACHEWORKER_ORIGIN", "CACHEWORKER_STORE"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
