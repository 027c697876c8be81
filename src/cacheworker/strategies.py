"""Caching strategies.

:class:`StrategyEngine` implements the four ways a request can be served:

* :meth:`~StrategyEngine.cache_first` -- serve from the partition, fetch
  only on a miss.  Used for images.
* :meth:`~StrategyEngine.network_first` -- fetch, fall back to any
  partition on network failure.  Used for documents.
* :meth:`~StrategyEngine.opportunistic` -- fetch and store a copy in the
  background.  Used for everything else.
* :meth:`~StrategyEngine.passthrough` -- fetch and return as-is, never
  touching the store.  Used for live streams.

Only 2xx responses are ever written.  Writes made by strategies are
best-effort: a :class:`~cacheworker.exceptions.StoreWriteFailure` is
logged and reported as a :class:`~cacheworker.models.WriteOutcome`, never
raised to the requester.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from cacheworker.client import Fetcher
from cacheworker.client.response import from_snapshot, placeholder, snapshot
from cacheworker.exceptions import NetworkUnavailable, StoreWriteFailure
from cacheworker.models import CachedResponse, WriteOutcome
from cacheworker.store import CacheStore

logger = logging.getLogger(__name__)

OFFLINE_STATUS = 404
UNAVAILABLE_STATUS = 503


class StrategyEngine:
    """Runs a request through one caching strategy.

    Args:
        store: The partitioned cache store.
        fetcher: The network fetcher.
    """

    def __init__(self, store: CacheStore, fetcher: Fetcher) -> None:
        self._store = store
        self._fetcher = fetcher
        self._pending: set[asyncio.Task[WriteOutcome]] = set()

    @property
    def pending_writes(self) -> int:
        """Number of background writes not yet finished."""
        return len(self._pending)

    # ------------------------------------------------------------------ #
    # Strategies
    # ------------------------------------------------------------------ #

    async def cache_first(self, request: httpx.Request, partition_name: str) -> httpx.Response:
        """Serve from *partition_name*; go to the network only on a miss.

        A hit is returned without any freshness check.  On a miss the
        network response is stored (if successful) and returned.  If the
        network is unreachable an empty 404 ``Offline`` placeholder is
        returned instead of raising.
        """
        partition = await self._store.open(partition_name)
        cached = await partition.get(request.method, str(request.url))
        if cached is not None:
            logger.debug("Cache hit in %s for %s", partition_name, request.url)
            return from_snapshot(cached, request)

        try:
            response = await self._fetcher.fetch(request)
        except NetworkUnavailable as exc:
            logger.info("Network error for %s, serving offline placeholder: %s", request.url, exc)
            return placeholder(OFFLINE_STATUS, "Offline", "offline", request)

        if response.is_success:
            await self.write(partition_name, snapshot(response, request))
        return response

    async def network_first(self, request: httpx.Request, partition_name: str) -> httpx.Response:
        """Fetch first; on network failure serve from any partition.

        A successful response overwrites the stored copy in
        *partition_name*.  When the network is down and nothing is stored,
        a 503 placeholder is returned.
        """
        try:
            response = await self._fetcher.fetch(request)
        except NetworkUnavailable:
            logger.info("Network unavailable, using cache for %s", request.url)
            cached = await self._store.match(request.method, str(request.url))
            if cached is not None:
                return from_snapshot(cached, request)
            return placeholder(
                UNAVAILABLE_STATUS,
                "Service Unavailable",
                "unavailable",
                request,
                body=b"Offline",
            )

        if response.is_success:
            await self.write(partition_name, snapshot(response, request))
        return response

    async def opportunistic(self, request: httpx.Request, partition_name: str) -> httpx.Response:
        """Fetch, and keep a background copy of successful GET responses.

        The copy is written by a separate task so storage never delays
        the response.  On network failure any stored copy is served; if
        there is none, :class:`NetworkUnavailable` propagates.
        """
        try:
            response = await self._fetcher.fetch(request)
        except NetworkUnavailable:
            cached = await self._store.match(request.method, str(request.url))
            if cached is None:
                raise
            return from_snapshot(cached, request)

        if response.is_success and request.method == "GET":
            self.schedule_write(partition_name, snapshot(response, request))
        return response

    async def passthrough(self, request: httpx.Request) -> httpx.Response:
        """Fetch without consulting or writing the store.

        The body is left unread so live streams can be consumed
        incrementally.  Network failures propagate unchanged.
        """
        return await self._fetcher.fetch(request, stream=True)

    # ------------------------------------------------------------------ #
    # Best-effort writes
    # ------------------------------------------------------------------ #

    async def write(self, partition_name: str, entry: CachedResponse) -> WriteOutcome:
        """Store *entry* in *partition_name*, reporting failure instead of raising."""
        try:
            partition = await self._store.open(partition_name)
            await partition.put(entry)
        except StoreWriteFailure as exc:
            logger.warning("Could not cache %s in %s: %s", entry.url, partition_name, exc)
            return WriteOutcome(ok=False, partition=partition_name, url=entry.url, error=str(exc))
        return WriteOutcome(ok=True, partition=partition_name, url=entry.url)

    def schedule_write(self, partition_name: str, entry: CachedResponse) -> asyncio.Task[WriteOutcome]:
        """Start :meth:`write` as a background task and return it."""
        task = asyncio.create_task(self.write(partition_name, entry))
        self._pending.add(task)
        task.add_done_callback(self._on_write_done)
        return task

    async def drain(self) -> list[WriteOutcome]:
        """Wait for every pending background write to finish."""
        if not self._pending:
            return []
        results = await asyncio.gather(*list(self._pending), return_exceptions=True)
        return [r for r in results if isinstance(r, WriteOutcome)]

    def _on_write_done(self, task: asyncio.Task[WriteOutcome]) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background cache write crashed: %s", task.exception())
