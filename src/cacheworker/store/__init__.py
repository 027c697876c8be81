"""Versioned, disk-backed cache store.

This package provides :class:`CacheStore`, a set of named partitions
persisted with :mod:`diskcache`, and :class:`Partition`, a single
key-to-response-snapshot mapping inside it.  Partition names follow the
``<version>-<purpose>`` convention (see
:meth:`~cacheworker.models.WorkerConfig.partition_name`); the store itself
attaches no meaning to them.

The store is consumed by :class:`~cacheworker.strategies.StrategyEngine`
and :class:`~cacheworker.lifecycle.LifecycleManager`.
"""

from cacheworker.store.store import CacheStore, Partition, make_key

__all__ = ["CacheStore", "Partition", "make_key"]
