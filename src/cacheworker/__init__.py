"""cacheworker -- a request-interception caching layer for offline-capable apps.

Every outgoing request is classified (streaming, image, document, other),
routed to a caching strategy, and served from a versioned, disk-backed
store that survives restarts.  Live audio streams are never cached.

Typical workflow::

    cacheworker install             # pre-populate the static partition
    cacheworker activate            # drop partitions from older versions
    cacheworker fetch https://example.com/index.html

Library use goes through :class:`~cacheworker.worker.CacheWorker`, or via
:class:`~cacheworker.transport.CacheWorkerTransport` plugged into an
``httpx.AsyncClient``.

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration loading and precedence resolution.
    classifier: Request classification rules.
    store: Versioned multi-partition cache store.
    strategies: Cache-first, network-first and opportunistic strategies.
    dispatcher: Per-request strategy selection.
    lifecycle: Install / activate handling.
    worker: Trigger-level facade.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
