"""Tests for the trigger-level CacheWorker facade and the httpx transport."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
import pytest

from cacheworker.client.response import is_cache_hit
from cacheworker.models import NotificationRequest, StoreConfig, WorkerConfig
from cacheworker.notifications import Notifier
from cacheworker.transport import CacheWorkerTransport
from cacheworker.worker import SYNC_FAVORITES_TAG, CacheWorker, store_root


ORIGIN = "https://radio.example"


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.shown: list[NotificationRequest] = []
        self.closed: list[NotificationRequest] = []
        self.opened: list[str] = []

    async def show(self, notification: NotificationRequest) -> None:
        self.shown.append(notification)

    async def close(self, notification: NotificationRequest) -> None:
        self.closed.append(notification)

    async def open_window(self, url: str) -> None:
        self.opened.append(url)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def notifying_worker(worker_config, network, notifier) -> CacheWorker:
    return CacheWorker(worker_config, notifier=notifier, transport=network.transport)


# ------------------------------------------------------------------ #
# Messages
# ------------------------------------------------------------------ #


class TestMessages:
    @pytest.mark.asyncio
    async def test_clear_cache_deletes_every_version(self, make_worker) -> None:
        async with make_worker() as worker:
            await worker.on_install()
            await worker.store.open("v1-static")
            deleted = await worker.on_message({"type": "CLEAR_CACHE"})
            assert await worker.store.keys() == []
        assert deleted == ["v1-static", "v2-static"]

    @pytest.mark.asyncio
    async def test_skip_waiting(self, make_worker) -> None:
        async with make_worker() as worker:
            result = await worker.on_message({"type": "SKIP_WAITING"})
            assert worker.lifecycle.state.skip_waiting_requested is True
        assert result is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "message", [None, "CLEAR_CACHE", {"type": "RELOAD"}, {}, {"kind": "CLEAR_CACHE"}]
    )
    async def test_unknown_messages_ignored(self, make_worker, message) -> None:
        async with make_worker() as worker:
            await worker.on_install()
            assert await worker.on_message(message) is None
            assert await worker.store.keys() == ["v2-static"]


# ------------------------------------------------------------------ #
# Push and notification click
# ------------------------------------------------------------------ #


class TestNotifications:
    @pytest.mark.asyncio
    async def test_push_with_payload(self, notifying_worker, notifier) -> None:
        async with notifying_worker as worker:
            shown = await worker.on_push({"title": "En vivo", "body": "Ya empezó", "url": "/live"})
        assert notifier.shown == [shown]
        assert shown.title == "En vivo"
        assert shown.body == "Ya empezó"
        assert shown.data == {"url": "/live"}
        assert shown.vibrate == [200, 100, 200]

    @pytest.mark.asyncio
    async def test_push_defaults(self, notifying_worker, notifier) -> None:
        async with notifying_worker as worker:
            shown = await worker.on_push({"other": 1})
        assert shown.title == "Radio Colombia"
        assert shown.body == "Nueva notificación"
        assert shown.data == {"url": "/"}

    @pytest.mark.asyncio
    async def test_empty_push_shows_nothing(self, notifying_worker, notifier) -> None:
        async with notifying_worker as worker:
            assert await worker.on_push(None) is None
            assert await worker.on_push({}) is None
        assert notifier.shown == []

    @pytest.mark.asyncio
    async def test_click_closes_and_opens_target(self, notifying_worker, notifier) -> None:
        async with notifying_worker as worker:
            shown = await worker.on_push({"url": "/station/rcn"})
            url = await worker.on_notification_click(shown)
        assert url == "/station/rcn"
        assert notifier.closed == [shown]
        assert notifier.opened == ["/station/rcn"]

    @pytest.mark.asyncio
    async def test_click_without_url_opens_root(self, notifying_worker, notifier) -> None:
        async with notifying_worker as worker:
            url = await worker.on_notification_click(NotificationRequest(title="x", body="y", icon="", badge=""))
        assert url == "/"

    @pytest.mark.asyncio
    async def test_default_notifier_logs(self, make_worker, caplog) -> None:
        caplog.set_level(logging.INFO, logger="cacheworker")
        async with make_worker() as worker:
            await worker.on_push({"title": "Hola"})
        assert "Hola" in caplog.text


class TestSync:
    @pytest.mark.asyncio
    async def test_favorites_tag_logged(self, make_worker, caplog) -> None:
        caplog.set_level(logging.INFO, logger="cacheworker")
        async with make_worker() as worker:
            await worker.on_sync(SYNC_FAVORITES_TAG)
        assert "favourites" in caplog.text

    @pytest.mark.asyncio
    async def test_other_tag_ignored(self, make_worker, caplog) -> None:
        caplog.set_level(logging.INFO, logger="cacheworker")
        async with make_worker() as worker:
            await worker.on_sync("something-else")
        assert "favourites" not in caplog.text


# ------------------------------------------------------------------ #
# Construction and transport
# ------------------------------------------------------------------ #


class TestStoreRoot:
    def test_explicit_directory(self, tmp_path: Path) -> None:
        config = WorkerConfig(store=StoreConfig(directory=str(tmp_path / "s")))
        assert store_root(config) == tmp_path / "s"

    def test_defaults_to_cache_dir(self, isolated_config: Path) -> None:
        assert store_root(WorkerConfig()) == isolated_config / "cache" / "cacheworker"


class TestTransport:
    @pytest.mark.asyncio
    async def test_client_requests_go_through_worker(self, make_worker, network) -> None:
        network.add(f"{ORIGIN}/logo.png", b"png")
        worker = make_worker()
        async with httpx.AsyncClient(transport=CacheWorkerTransport(worker)) as client:
            first = await client.get(f"{ORIGIN}/logo.png")
            second = await client.get(f"{ORIGIN}/logo.png")
        assert first.content == b"png"
        assert is_cache_hit(second)
        assert network.count(f"{ORIGIN}/logo.png") == 1

    @pytest.mark.asyncio
    async def test_placeholder_surfaces_as_response(self, make_worker, network) -> None:
        network.offline = True
        worker = make_worker()
        async with httpx.AsyncClient(transport=CacheWorkerTransport(worker)) as client:
            response = await client.get(f"{ORIGIN}/")
        assert response.status_code == 503
