"""Trigger-level facade.

:class:`CacheWorker` wires the store, fetcher, strategy engine, dispatcher
and lifecycle manager together and exposes one coroutine per host
trigger:

* :meth:`~CacheWorker.on_install` / :meth:`~CacheWorker.on_activate`
* :meth:`~CacheWorker.on_fetch`
* :meth:`~CacheWorker.on_message` (``SKIP_WAITING``, ``CLEAR_CACHE``)
* :meth:`~CacheWorker.on_push` / :meth:`~CacheWorker.on_notification_click`
* :meth:`~CacheWorker.on_sync`

The host awaits each coroutine; a transition is complete only once its
coroutine returns.

Example::

    async with CacheWorker(config) as worker:
        await worker.on_install()
        await worker.on_activate()
        response = await worker.on_fetch(httpx.Request("GET", url))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import httpx

from cacheworker.client import Fetcher
from cacheworker.dispatcher import Dispatcher
from cacheworker.lifecycle import LifecycleManager
from cacheworker.models import MessageType, NotificationRequest, WorkerConfig
from cacheworker.notifications import (
    LoggingNotifier,
    Notifier,
    build_notification,
    click_target,
)
from cacheworker.store import CacheStore
from cacheworker.strategies import StrategyEngine

logger = logging.getLogger(__name__)

SYNC_FAVORITES_TAG = "sync-favorites"


def store_root(config: WorkerConfig) -> Path:
    """Return the store directory for *config*, defaulting to the XDG cache dir."""
    if config.store.directory:
        return Path(config.store.directory).expanduser()
    from cacheworker.config import get_cache_dir

    return get_cache_dir()


class CacheWorker:
    """The caching layer as seen by its host.

    Args:
        config: Worker configuration, including the version tag.
        store: Cache store; built from ``config.store`` when omitted.
        fetcher: Network fetcher; built from ``config.network`` when
            omitted.
        notifier: Notification collaborator; defaults to
            :class:`~cacheworker.notifications.LoggingNotifier`.
        transport: Transport for the default fetcher (ignored when
            *fetcher* is given).
    """

    def __init__(
        self,
        config: WorkerConfig,
        store: Optional[CacheStore] = None,
        fetcher: Optional[Fetcher] = None,
        notifier: Optional[Notifier] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.store = store or CacheStore(store_root(config))
        self.fetcher = fetcher or Fetcher(config.network, transport=transport)
        self.engine = StrategyEngine(self.store, self.fetcher)
        self.dispatcher = Dispatcher(config, self.engine)
        self.lifecycle = LifecycleManager(config, self.store, self.fetcher)
        self._notifier = notifier or LoggingNotifier()
        logger.info("Cache worker %s loaded", config.version)

    async def __aenter__(self) -> CacheWorker:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Finish background writes, then close the fetcher and the store."""
        await self.engine.drain()
        await self.fetcher.aclose()
        await self.store.close()

    # ------------------------------------------------------------------ #
    # Lifecycle triggers
    # ------------------------------------------------------------------ #

    async def on_install(self) -> list[str]:
        return await self.lifecycle.install()

    async def on_activate(self) -> list[str]:
        return await self.lifecycle.activate()

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    async def on_fetch(self, request: httpx.Request) -> httpx.Response:
        return await self.dispatcher.dispatch(request)

    # ------------------------------------------------------------------ #
    # Control messages
    # ------------------------------------------------------------------ #

    async def on_message(self, message: Any) -> Optional[list[str]]:
        """Handle a control message from a client page.

        ``{"type": "SKIP_WAITING"}`` requests immediate takeover.
        ``{"type": "CLEAR_CACHE"}`` deletes every partition, whatever its
        version, and returns the deleted names.  Anything else is ignored.
        """
        if not isinstance(message, dict):
            logger.debug("Ignoring non-dict message: %r", message)
            return None
        try:
            message_type = MessageType(message.get("type"))
        except ValueError:
            logger.debug("Ignoring unknown message type: %r", message.get("type"))
            return None

        if message_type is MessageType.SKIP_WAITING:
            self.lifecycle.skip_waiting()
            return None
        return await self.lifecycle.clear_all()

    # ------------------------------------------------------------------ #
    # Notifications and background sync
    # ------------------------------------------------------------------ #

    async def on_push(self, payload: Optional[dict[str, Any]]) -> Optional[NotificationRequest]:
        """Show a notification for a push *payload*; empty pushes are dropped."""
        notification = build_notification(payload, self.config.notifications)
        if notification is None:
            return None
        await self._notifier.show(notification)
        return notification

    async def on_notification_click(self, notification: NotificationRequest) -> str:
        """Dismiss *notification* and open the page it points to."""
        await self._notifier.close(notification)
        url = click_target(notification, self.config.notifications)
        await self._notifier.open_window(url)
        return url

    async def on_sync(self, tag: str) -> None:
        if tag == SYNC_FAVORITES_TAG:
            logger.info("Synchronising favourites")
