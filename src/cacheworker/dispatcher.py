"""Per-request strategy selection.

:class:`Dispatcher` classifies each request exactly once and hands it to
the matching strategy, with the partition fixed by class:

==============  =================  ==================
Class           Strategy           Partition
==============  =================  ==================
``streaming``   passthrough        (none)
``image``       cache-first        ``<version>-images``
``document``    network-first      ``<version>-static``
``other``       opportunistic      ``<version>-dynamic``
==============  =================  ==================

The request object is forwarded untouched, so method, headers and body
reach the network exactly as the caller built them.
"""

from __future__ import annotations

import logging

import httpx

from cacheworker.classifier import classify
from cacheworker.models import Purpose, RequestClass, WorkerConfig
from cacheworker.strategies import StrategyEngine

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes intercepted requests to a caching strategy.

    Args:
        config: Worker configuration; supplies the version tag and the
            classifier's reference lists.
        engine: The strategy engine that performs the actual work.
    """

    def __init__(self, config: WorkerConfig, engine: StrategyEngine) -> None:
        self._config = config
        self._engine = engine

    def classify(self, request: httpx.Request) -> RequestClass:
        return classify(str(request.url), request.method, self._config.routes)

    async def dispatch(self, request: httpx.Request) -> httpx.Response:
        """Serve *request* through the strategy its class calls for."""
        request_class = self.classify(request)
        logger.debug("%s %s classified as %s", request.method, request.url, request_class.value)

        if request_class is RequestClass.STREAMING:
            return await self._engine.passthrough(request)
        if request_class is RequestClass.IMAGE:
            return await self._engine.cache_first(
                request, self._config.partition_name(Purpose.IMAGES)
            )
        if request_class is RequestClass.DOCUMENT:
            return await self._engine.network_first(
                request, self._config.partition_name(Purpose.STATIC)
            )
        return await self._engine.opportunistic(
            request, self._config.partition_name(Purpose.DYNAMIC)
        )
