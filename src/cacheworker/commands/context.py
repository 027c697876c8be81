"""Shared helpers for CLI commands.

Commands read the global flags stored on ``ctx.obj`` by
:func:`~cacheworker.app.main_callback`, resolve the effective
:class:`~cacheworker.models.WorkerConfig`, and run one worker coroutine
to completion with :func:`run_async`.

``ctx.obj["transport"]`` may carry an :class:`httpx.AsyncBaseTransport`
for the worker's fetcher; the CLI never sets it, tests do.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import typer

from cacheworker.exceptions import CacheWorkerError
from cacheworker.models import WorkerConfig
from cacheworker.output import error
from cacheworker.worker import CacheWorker

T = TypeVar("T")


def _obj(ctx: typer.Context) -> dict[str, Any]:
    return ctx.obj if isinstance(ctx.obj, dict) else {}


def load_config(ctx: typer.Context) -> WorkerConfig:
    """Resolve configuration from CLI flags, environment and config files.

    Raises:
        typer.Exit: With the error's exit code if the config is invalid.
    """
    from cacheworker.config import resolve_config

    obj = _obj(ctx)
    try:
        return resolve_config(
            cli_version=obj.get("version"),
            cli_origin=obj.get("origin"),
            cli_store=obj.get("store"),
        )
    except CacheWorkerError as exc:
        error(f"Config error: {exc}")
        raise typer.Exit(code=exc.exit_code) from None


def run_with_worker(
    ctx: typer.Context,
    action: Callable[[CacheWorker], Awaitable[T]],
) -> T:
    """Build a worker, run *action* with it, and close it.

    Background cache writes are drained before the worker closes, so
    everything fetched by a command is on disk when it returns.

    Raises:
        typer.Exit: With the error's exit code on any
            :class:`~cacheworker.exceptions.CacheWorkerError`.
    """
    config = load_config(ctx)
    transport = _obj(ctx).get("transport")

    async def _main() -> T:
        async with CacheWorker(config, transport=transport) as worker:
            return await action(worker)

    return run_async(_main())


def run_async(coro: Awaitable[T]) -> T:
    """Run *coro* on a fresh event loop, mapping errors to exit codes."""
    try:
        return asyncio.run(coro)
    except CacheWorkerError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
