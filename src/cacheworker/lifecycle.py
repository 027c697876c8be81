"""Install and activate handling.

The lifecycle has two triggers, each split into a *prepare* phase that
does the work and a *commit* phase that signals readiness:

* **install** -- :meth:`LifecycleManager.prepare_install` fetches every
  static asset and writes them into the ``<version>-static`` partition;
  :meth:`LifecycleManager.commit_install` asks to take over immediately
  instead of waiting for older instances to finish.
* **activate** -- :meth:`LifecycleManager.prepare_activate` deletes every
  partition that does not belong to the current version;
  :meth:`LifecycleManager.commit_activate` claims control so pages
  already open use the new version without a reload.

Install is all-or-nothing: assets are fetched first and nothing is written
unless every fetch succeeded.  Both triggers are idempotent.
"""

from __future__ import annotations

import asyncio
import logging

from cacheworker.client import Fetcher
from cacheworker.client.response import snapshot
from cacheworker.exceptions import InstallError, NetworkUnavailable
from cacheworker.models import CachedResponse, HandoffState, Purpose, WorkerConfig
from cacheworker.store import CacheStore

logger = logging.getLogger(__name__)


class LifecycleManager:
    """Pre-populates and garbage-collects cache generations.

    Args:
        config: Worker configuration; the version tag decides which
            partitions are current.
        store: The partitioned cache store.
        fetcher: Used to download the static assets on install.
    """

    def __init__(self, config: WorkerConfig, store: CacheStore, fetcher: Fetcher) -> None:
        self._config = config
        self._store = store
        self._fetcher = fetcher
        self.state = HandoffState()

    # ------------------------------------------------------------------ #
    # Install
    # ------------------------------------------------------------------ #

    async def install(self) -> list[str]:
        """Run both install phases.  Returns the URLs written to the static partition."""
        urls = await self.prepare_install()
        self.commit_install()
        return urls

    async def prepare_install(self) -> list[str]:
        """Fetch every static asset and store it in the static partition.

        Returns:
            The absolute URLs that were written.

        Raises:
            InstallError: If any asset cannot be fetched or answers with a
                non-2xx status.  No entry is written in that case.
            StoreWriteFailure: If writing an entry fails.
        """
        name = self._config.partition_name(Purpose.STATIC)
        logger.info("Installing cache version %s", self._config.version)
        partition = await self._store.open(name)

        results = await asyncio.gather(
            *(self._fetch_asset(url) for url in self._config.routes.static_assets),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        entries: list[CachedResponse] = list(results)
        logger.debug("Pre-caching %d static assets into %s", len(entries), name)
        for entry in entries:
            await partition.put(entry)

        self.state.installed = True
        return [entry.url for entry in entries]

    def commit_install(self) -> None:
        """Signal that this version should take over without waiting."""
        self.skip_waiting()

    def skip_waiting(self) -> None:
        """Request immediate takeover from any previous version."""
        self.state.skip_waiting_requested = True
        logger.debug("Skip-waiting requested for %s", self._config.version)

    # ------------------------------------------------------------------ #
    # Activate
    # ------------------------------------------------------------------ #

    async def activate(self) -> list[str]:
        """Run both activate phases.  Returns the names of deleted partitions."""
        deleted = await self.prepare_activate()
        self.commit_activate()
        return deleted

    async def prepare_activate(self) -> list[str]:
        """Delete every partition that is not one of the current version's three.

        When ``cleanup_prefix`` is configured, partitions whose names do not
        start with it are left alone.
        """
        logger.info("Activating cache version %s", self._config.version)
        current = set(self._config.current_partitions())
        prefix = self._config.cleanup_prefix

        deleted = []
        for name in await self._store.keys():
            if name in current:
                continue
            if prefix and not name.startswith(prefix):
                continue
            logger.info("Deleting stale partition %s", name)
            if await self._store.delete(name):
                deleted.append(name)

        self.state.activated = True
        return deleted

    def commit_activate(self) -> None:
        """Claim control of every open client."""
        self.state.controlling = True
        logger.debug("Version %s now controlling", self._config.version)

    # ------------------------------------------------------------------ #
    # Manual reset
    # ------------------------------------------------------------------ #

    async def clear_all(self) -> list[str]:
        """Delete every partition, current version included."""
        deleted = await self._store.clear()
        logger.info("Cleared %d partitions", len(deleted))
        return deleted

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _fetch_asset(self, url: str) -> CachedResponse:
        request = self._fetcher.build_request("GET", url)
        try:
            response = await self._fetcher.fetch(request)
        except NetworkUnavailable as exc:
            raise InstallError(f"Could not pre-cache {url}: {exc}") from exc
        if not response.is_success:
            raise InstallError(f"Could not pre-cache {url}: HTTP {response.status_code}")
        return snapshot(response, request)
