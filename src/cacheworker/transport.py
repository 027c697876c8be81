"""httpx transport that routes requests through a :class:`~cacheworker.worker.CacheWorker`.

Plugging :class:`CacheWorkerTransport` into an :class:`httpx.AsyncClient`
puts the caching layer between the application and the network without
any change to calling code::

    worker = CacheWorker(config)
    async with httpx.AsyncClient(transport=CacheWorkerTransport(worker)) as client:
        resp = await client.get("https://radio.example/index.html")

The worker's own :class:`~cacheworker.client.Fetcher` must use a separate
transport (the default network one), otherwise requests would loop back
into the worker.
"""

from __future__ import annotations

import httpx

from cacheworker.worker import CacheWorker


class CacheWorkerTransport(httpx.AsyncBaseTransport):
    """Async transport delegating every request to :meth:`CacheWorker.on_fetch`.

    Args:
        worker: The worker that serves requests.
        close_worker: Close the worker when the transport is closed.
    """

    def __init__(self, worker: CacheWorker, close_worker: bool = True) -> None:
        self._worker = worker
        self._close_worker = close_worker

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._worker.on_fetch(request)

    async def aclose(self) -> None:
        if self._close_worker:
            await self._worker.aclose()
