"""Multi-partition response store backed by :mod:`diskcache`.

Each partition is its own :class:`diskcache.Cache` directory under
``<root>/partitions/<name>``, so listing partitions is a directory scan and
deleting one is a directory removal.  Entries are
:class:`~cacheworker.models.CachedResponse` snapshots serialised to plain
dicts.

Keys are SHA-256 hashes of ``METHOD|URL`` so that identical requests
always resolve to the same entry.  Entries never expire; a later ``put``
for the same key simply overwrites (last write wins).

:mod:`diskcache` is blocking and keeps one SQLite connection per thread,
so every call is funnelled through a single-worker executor owned by the
store.  Callers only ever see coroutines.

See Also:
    :class:`~cacheworker.lifecycle.LifecycleManager` -- deletes stale
    partitions on activate.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
import shutil
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import diskcache

from cacheworker.exceptions import InvalidUsageError, StoreWriteFailure
from cacheworker.models import CachedResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PARTITION_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_STORAGE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


def make_key(method: str, url: str) -> str:
    """Generate the cache key for a request from its method and URL."""
    raw = f"{method.upper()}|{url}"
    return hashlib.sha256(raw.encode()).hexdigest()


def _validate_name(name: str) -> None:
    if not _PARTITION_NAME_RE.match(name):
        raise InvalidUsageError(f"Invalid partition name: {name!r}")


class Partition:
    """A single named partition of the store.

    Obtain instances through :meth:`CacheStore.open` rather than
    constructing them directly.

    Args:
        name: Partition name, e.g. ``radio-co-v2.0-images``.
        cache: The open :class:`diskcache.Cache` holding the entries.
        run: Coroutine function that executes a blocking callable on the
            store's executor thread.
    """

    def __init__(
        self,
        name: str,
        cache: diskcache.Cache,
        run: Callable[..., Any],
    ) -> None:
        self.name = name
        self._cache = cache
        self._run = run

    @property
    def directory(self) -> str:
        return self._cache.directory

    async def get(self, method: str, url: str) -> Optional[CachedResponse]:
        """Look up the snapshot stored for ``method`` + ``url``.

        Returns:
            The stored :class:`CachedResponse`, or ``None`` on a miss.  A
            partition that cannot be read is logged and treated as a miss.
        """
        try:
            data = await self._run(self._cache.get, make_key(method, url))
        except _STORAGE_ERRORS as exc:
            logger.warning("Cannot read %s from partition '%s': %s", url, self.name, exc)
            return None
        if data is None:
            return None
        return CachedResponse.model_validate(data)

    async def put(self, entry: CachedResponse) -> None:
        """Store *entry*, overwriting any previous snapshot for the same request.

        The partition does not inspect the status code; callers only hand
        it successful responses.

        Raises:
            StoreWriteFailure: If the underlying storage rejects the write.
        """
        key = make_key(entry.method, entry.url)
        try:
            await self._run(self._cache.set, key, entry.model_dump())
        except _STORAGE_ERRORS as exc:
            raise StoreWriteFailure(
                f"Cannot write {entry.url} to partition '{self.name}': {exc}"
            ) from exc

    async def delete(self, method: str, url: str) -> bool:
        """Remove a single entry.  Returns ``True`` if it existed."""
        try:
            return await self._run(self._cache.delete, make_key(method, url))
        except _STORAGE_ERRORS as exc:
            raise StoreWriteFailure(
                f"Cannot delete {url} from partition '{self.name}': {exc}"
            ) from exc

    async def entries(self) -> list[CachedResponse]:
        """Return every snapshot in the partition, ordered by URL."""
        raw = await self._run(self._entries_sync)
        items = [CachedResponse.model_validate(data) for data in raw]
        return sorted(items, key=lambda e: (e.url, e.method))

    async def size(self) -> int:
        """Return the number of entries in the partition."""
        return await self._run(len, self._cache)

    def _entries_sync(self) -> list[dict[str, Any]]:
        found = []
        for key in self._cache.iterkeys():
            data = self._cache.get(key)
            if data is not None:
                found.append(data)
        return found


class CacheStore:
    """Set of named partitions rooted at one directory.

    Args:
        root: Store root.  A ``partitions/`` subdirectory is created
            inside it.

    Example::

        async with CacheStore("/tmp/cw") as store:
            images = await store.open("v2-images")
            await images.put(entry)
            hit = await store.match("GET", entry.url)
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._partitions_dir = self._root / "partitions"
        self._partitions_dir.mkdir(parents=True, exist_ok=True)
        self._open: dict[str, Partition] = {}
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="cacheworker-store"
        )
        self._closed = False

    async def __aenter__(self) -> CacheStore:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    @property
    def directory(self) -> Path:
        return self._partitions_dir

    # ------------------------------------------------------------------ #
    # Partition management
    # ------------------------------------------------------------------ #

    async def open(self, name: str) -> Partition:
        """Return the partition called *name*, creating it on first use.

        Raises:
            InvalidUsageError: If *name* is not a plain directory name.
        """
        _validate_name(name)
        partition = self._open.get(name)
        if partition is None:
            try:
                cache = await self._run(diskcache.Cache, str(self._partitions_dir / name))
            except _STORAGE_ERRORS as exc:
                raise StoreWriteFailure(f"Cannot open partition '{name}': {exc}") from exc
            partition = Partition(name, cache, self._run)
            self._open[name] = partition
        return partition

    async def keys(self) -> list[str]:
        """Return the names of all partitions on disk, sorted."""
        return await self._run(self._keys_sync)

    async def has(self, name: str) -> bool:
        """Return ``True`` if a partition called *name* exists on disk."""
        return name in await self.keys()

    async def delete(self, name: str) -> bool:
        """Delete the partition called *name* and all its entries.

        Returns:
            ``True`` if the partition existed, ``False`` otherwise.

        Raises:
            StoreWriteFailure: If the partition directory cannot be removed.
        """
        _validate_name(name)
        partition = self._open.pop(name, None)
        try:
            return await self._run(self._delete_sync, name, partition)
        except OSError as exc:
            raise StoreWriteFailure(f"Cannot delete partition '{name}': {exc}") from exc

    async def clear(self) -> list[str]:
        """Delete every partition regardless of name.  Returns the deleted names."""
        deleted = []
        for name in await self.keys():
            if await self.delete(name):
                deleted.append(name)
        return deleted

    async def match(self, method: str, url: str) -> Optional[CachedResponse]:
        """Search every partition for ``method`` + ``url``.

        Partitions are searched in name order; the first hit wins.  A
        partition that cannot be opened or read counts as a miss.
        """
        for name in await self.keys():
            try:
                partition = await self.open(name)
            except StoreWriteFailure as exc:
                logger.warning("Skipping partition '%s': %s", name, exc)
                continue
            entry = await partition.get(method, url)
            if entry is not None:
                return entry
        return None

    async def stats(self) -> dict[str, Any]:
        """Return store statistics.

        Returns:
            A ``dict`` with ``directory`` (str path) and ``partitions``
            (mapping of partition name to entry count).
        """
        counts: dict[str, int] = {}
        for name in await self.keys():
            partition = await self.open(name)
            counts[name] = await partition.size()
        return {"directory": str(self._partitions_dir), "partitions": counts}

    async def close(self) -> None:
        """Close every open partition and release the executor thread."""
        if self._closed:
            return
        partitions = list(self._open.values())
        self._open.clear()
        for partition in partitions:
            await self._run(partition._cache.close)
        self._executor.shutdown(wait=True)
        self._closed = True

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Execute blocking *func* on the store's executor thread."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(func, *args))

    def _keys_sync(self) -> list[str]:
        if not self._partitions_dir.is_dir():
            return []
        return sorted(
            p.name
            for p in self._partitions_dir.iterdir()
            if p.is_dir() and _PARTITION_NAME_RE.match(p.name)
        )

    def _delete_sync(self, name: str, partition: Optional[Partition]) -> bool:
        if partition is not None:
            partition._cache.close()
        path = self._partitions_dir / name
        if not path.is_dir():
            return False
        shutil.rmtree(path)
        logger.debug("Deleted partition %s", name)
        return True
