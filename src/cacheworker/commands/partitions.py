"""Partition commands -- inspect the cache store.

Provides the ``cacheworker partitions`` sub-command group with read-only
views of the store: every partition with its entry count and whether it
belongs to the current version, and the entries of a single partition.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import typer

from cacheworker.commands.context import load_config, run_async
from cacheworker.exceptions import NotFoundError
from cacheworker.models import CachedResponse
from cacheworker.output import info, print_table
from cacheworker.store import CacheStore
from cacheworker.worker import store_root


partitions_app = typer.Typer(no_args_is_help=True)


@partitions_app.command("list")
def partitions_list(ctx: typer.Context) -> None:
    """List every partition with its entry count.

    Partitions of the current version are flagged; anything else will be
    removed by the next ``cacheworker activate``.

    Example::

        cacheworker partitions list
        cacheworker --json partitions list
    """
    config = load_config(ctx)
    current = set(config.current_partitions())

    async def _stats() -> dict[str, Any]:
        async with CacheStore(store_root(config)) as store:
            return await store.stats()

    stats = run_async(_stats())
    counts: dict[str, int] = stats["partitions"]
    info(f"Store directory: {stats['directory']}")
    if not counts:
        info("No partitions.")
        return

    rows = [
        [name, str(count), "yes" if name in current else ""]
        for name, count in sorted(counts.items())
    ]
    print_table(
        ["Partition", "Entries", "Current"], rows, title=f"Partitions ({len(rows)})"
    )


@partitions_app.command("show")
def partitions_show(
    ctx: typer.Context,
    name: str = typer.Argument(help="Partition name, e.g. radio-co-v2.0-static."),
) -> None:
    """List the entries stored in one partition.

    Example::

        cacheworker partitions show radio-co-v2.0-images
    """
    config = load_config(ctx)

    async def _entries() -> list[CachedResponse]:
        async with CacheStore(store_root(config)) as store:
            if not await store.has(name):
                raise NotFoundError(f"Partition '{name}' does not exist")
            partition = await store.open(name)
            return await partition.entries()

    entries = run_async(_entries())
    rows = [
        [
            entry.method,
            entry.url,
            str(entry.status_code),
            str(len(entry.body)),
            datetime.fromtimestamp(entry.stored_at, tz=timezone.utc).isoformat(timespec="seconds"),
        ]
        for entry in entries
    ]
    print_table(
        ["Method", "URL", "Status", "Bytes", "Stored"], rows, title=f"{name} ({len(rows)})"
    )
