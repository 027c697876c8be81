"""Tests for the network Fetcher."""

from __future__ import annotations

import httpx
import pytest

from cacheworker.client import Fetcher
from cacheworker.exceptions import InvalidUsageError, NetworkUnavailable
from cacheworker.models import NetworkConfig


ORIGIN = "https://radio.example"


def _fetcher(handler, origin: str | None = ORIGIN) -> Fetcher:
    return Fetcher(NetworkConfig(origin=origin), transport=httpx.MockTransport(handler))


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=b"ok")


# ------------------------------------------------------------------ #
# URL resolution
# ------------------------------------------------------------------ #


class TestResolve:
    def test_absolute_url_unchanged(self) -> None:
        f = _fetcher(_ok)
        assert f.resolve("https://cdn.example/a.png") == "https://cdn.example/a.png"

    def test_relative_joined_to_origin(self) -> None:
        f = _fetcher(_ok)
        assert f.resolve("/index.html") == "https://radio.example/index.html"

    def test_root_path(self) -> None:
        f = _fetcher(_ok)
        assert f.resolve("/") == "https://radio.example/"

    def test_relative_without_origin(self) -> None:
        f = _fetcher(_ok, origin=None)
        with pytest.raises(InvalidUsageError, match="no network origin"):
            f.resolve("/index.html")

    def test_invalid_url(self) -> None:
        f = _fetcher(_ok)
        with pytest.raises(InvalidUsageError):
            f.resolve("http://radio.example:abc/")


# ------------------------------------------------------------------ #
# Sending
# ------------------------------------------------------------------ #


class TestFetch:
    @pytest.mark.asyncio
    async def test_request_forwarded_untouched(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, content=b"created")

        async with _fetcher(handler) as f:
            request = f.build_request(
                "post", "/api/favorites", headers={"X-Token": "abc"}, content=b'{"id": 1}'
            )
            response = await f.fetch(request)

        assert response.status_code == 201
        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == "https://radio.example/api/favorites"
        assert seen[0].headers["x-token"] == "abc"
        assert seen[0].content == b'{"id": 1}'

    @pytest.mark.asyncio
    async def test_error_status_is_not_an_exception(self) -> None:
        async with _fetcher(lambda r: httpx.Response(500, content=b"boom")) as f:
            response = await f.fetch(f.build_request("GET", "/x"))
        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_connect_error_becomes_network_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _fetcher(handler) as f:
            with pytest.raises(NetworkUnavailable, match="refused"):
                await f.fetch(f.build_request("GET", "/x"))

    @pytest.mark.asyncio
    async def test_timeout_becomes_network_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with _fetcher(handler) as f:
            with pytest.raises(NetworkUnavailable):
                await f.fetch(f.build_request("GET", "/x"))

    @pytest.mark.asyncio
    async def test_single_attempt(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        async with _fetcher(handler) as f:
            with pytest.raises(NetworkUnavailable):
                await f.fetch(f.build_request("GET", "/x"))
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_stream_leaves_body_unread(self) -> None:
        async with _fetcher(_ok) as f:
            response = await f.fetch(f.build_request("GET", "/live"), stream=True)
            assert not response.is_closed
            body = await response.aread()
            await response.aclose()
        assert body == b"ok"

    @pytest.mark.asyncio
    async def test_aclose_twice(self) -> None:
        f = _fetcher(_ok)
        await f.fetch(f.build_request("GET", "/"))
        await f.aclose()
        await f.aclose()
