"""Worker trigger commands.

Each command maps onto one :class:`~cacheworker.worker.CacheWorker`
trigger so the caching layer can be driven from a shell:

* ``cacheworker install`` -- pre-populate the static partition.
* ``cacheworker activate`` -- delete partitions from older versions.
* ``cacheworker fetch URL`` -- serve one request through the dispatcher.
* ``cacheworker classify URL`` -- show which strategy a URL would get.
* ``cacheworker message skip-waiting|clear-cache`` -- control messages.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional

import httpx
import typer

from cacheworker.classifier import classify
from cacheworker.client.response import fallback_marker, is_cache_hit
from cacheworker.commands.context import load_config, run_with_worker
from cacheworker.models import RequestClass
from cacheworker.output import (
    format_response,
    info,
    print_data,
    success,
    suggest,
    warning,
)
from cacheworker.worker import CacheWorker


class MessageKind(str, enum.Enum):
    SKIP_WAITING = "skip-waiting"
    CLEAR_CACHE = "clear-cache"


def install_command(ctx: typer.Context) -> None:
    """Pre-cache the static assets for the current version.

    Fails without writing anything if any asset cannot be fetched.

    Example::

        cacheworker --origin https://radio.example install
    """

    async def _install(worker: CacheWorker) -> list[str]:
        return await worker.on_install()

    urls = run_with_worker(ctx, _install)
    for url in urls:
        info(f"  cached {url}")
    success(f"Installed {len(urls)} static assets.")
    suggest("Run: cacheworker activate")


def activate_command(ctx: typer.Context) -> None:
    """Delete cache partitions that belong to other versions.

    Example::

        cacheworker --cache-version radio-co-v2.1 activate
    """

    async def _activate(worker: CacheWorker) -> list[str]:
        return await worker.on_activate()

    deleted = run_with_worker(ctx, _activate)
    if not deleted:
        info("No stale partitions.")
    for name in deleted:
        info(f"  deleted {name}")
    success("Activated.")


def _parse_headers(raw: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for item in raw:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected 'Name: value', got: {item}")
        headers[name.strip()] = value.strip()
    return headers


def fetch_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute URL, or a path resolved against --origin."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    header: list[str] = typer.Option(
        [], "--header", "-H", help="Request header, 'Name: value'. Repeatable."
    ),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Request body."),
    body_out: Optional[Path] = typer.Option(
        None, "--body-out", help="Write the response body to this file."
    ),
) -> None:
    """Serve one request through the caching layer.

    Prints the status line, the request class and whether the response
    came from the cache or is an offline placeholder, then the body.

    Example::

        cacheworker fetch https://radio.example/index.html
        cacheworker fetch /logo.png --body-out logo.png
    """
    headers = _parse_headers(header)
    content = data.encode() if data is not None else None

    async def _fetch(worker: CacheWorker) -> tuple[RequestClass, httpx.Response]:
        request = worker.fetcher.build_request(method, url, headers=headers, content=content)
        request_class = worker.dispatcher.classify(request)
        response = await worker.on_fetch(request)
        if request_class is RequestClass.STREAMING:
            # live streams never end; report the status and hang up
            await response.aclose()
        return request_class, response

    request_class, response = run_with_worker(ctx, _fetch)

    info(f"HTTP {response.status_code} {response.reason_phrase or ''}".rstrip())
    info(f"Class: {request_class.value}")
    if is_cache_hit(response):
        info("Served from cache")
    marker = fallback_marker(response)
    if marker:
        warning(f"Placeholder response ({marker})")

    if request_class is RequestClass.STREAMING:
        return
    if body_out is not None:
        body_out.write_bytes(response.content)
        success(f"Wrote {len(response.content)} bytes to {body_out}")
        return
    if not response.content:
        return

    content_type = response.headers.get("content-type", "")
    if content_type.startswith(("text/", "application/json")) or "json" in content_type:
        format_response(response.text, content_type)
    else:
        info(f"<{len(response.content)} bytes of {content_type or 'binary data'}>")


def classify_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="URL to classify."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
) -> None:
    """Print the class (streaming, image, document, other) of a request.

    Example::

        cacheworker classify https://streaming.rcnradio.com/live
    """
    config = load_config(ctx)
    print_data(classify(url, method, config.routes).value)


def message_command(
    ctx: typer.Context,
    kind: MessageKind = typer.Argument(help="Message to deliver."),
) -> None:
    """Deliver a control message to the worker.

    ``skip-waiting`` requests immediate takeover; ``clear-cache`` deletes
    every partition of every version.

    Example::

        cacheworker message clear-cache
    """
    force = ctx.obj.get("force", False) if isinstance(ctx.obj, dict) else False
    if kind is MessageKind.CLEAR_CACHE and not force:
        if not typer.confirm("Delete every cache partition?"):
            info("Cancelled.")
            raise typer.Exit()

    message = {"type": kind.value.upper().replace("-", "_")}

    async def _send(worker: CacheWorker) -> Optional[list[str]]:
        return await worker.on_message(message)

    deleted = run_with_worker(ctx, _send)
    if kind is MessageKind.CLEAR_CACHE:
        for name in deleted or []:
            info(f"  deleted {name}")
        success(f"Cleared {len(deleted or [])} partitions.")
    else:
        success("Skip-waiting requested.")


def register(app: typer.Typer) -> None:
    """Attach the worker commands to *app*."""
    app.command("install")(install_command)
    app.command("activate")(activate_command)
    app.command("fetch")(fetch_command)
    app.command("classify")(classify_command)
    app.command("message")(message_command)

