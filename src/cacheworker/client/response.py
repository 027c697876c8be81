"""Conversions between live responses and stored snapshots.

:func:`snapshot` turns a fully-read :class:`httpx.Response` into a
:class:`~cacheworker.models.CachedResponse`; :func:`from_snapshot` turns a
snapshot back into a response that can be handed to the requester.
:func:`placeholder` builds the marked responses returned when neither the
network nor the store can serve a request.

Snapshots keep the decoded body, so transfer-level headers describing the
wire encoding are dropped on the way in.  Otherwise a stored
``content-encoding: gzip`` would make :mod:`httpx` try to decompress a
body that is already plain.
"""

from __future__ import annotations

from typing import Optional

import httpx

from cacheworker.models import CachedResponse

CACHE_HEADER = "x-cacheworker-cache"
FALLBACK_HEADER = "x-cacheworker-fallback"

_DROPPED_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})


def snapshot(
    response: httpx.Response,
    request: Optional[httpx.Request] = None,
) -> CachedResponse:
    """Capture *response* as a storable snapshot.

    The entry is keyed by *request*, the intercepted request.  It defaults
    to ``response.request``, which after a redirect is the final hop.
    """
    if request is None:
        request = response.request
    headers = [
        (name, value)
        for name, value in response.headers.multi_items()
        if name.lower() not in _DROPPED_HEADERS
    ]
    return CachedResponse(
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        headers=headers,
        body=response.content,
    )


def from_snapshot(
    entry: CachedResponse,
    request: Optional[httpx.Request] = None,
) -> httpx.Response:
    """Rebuild an :class:`httpx.Response` from a stored snapshot.

    The response is tagged with ``x-cacheworker-cache: hit``.
    """
    headers = list(entry.headers) + [(CACHE_HEADER, "hit")]
    return httpx.Response(
        status_code=entry.status_code,
        headers=headers,
        content=entry.body,
        request=request or httpx.Request(entry.method, entry.url),
    )


def placeholder(
    status_code: int,
    reason: str,
    marker: str,
    request: httpx.Request,
    body: bytes = b"",
) -> httpx.Response:
    """Build a synthetic response for requests nothing could serve.

    Args:
        status_code: Distinguishing status (404 offline, 503 unavailable).
        reason: Reason phrase, e.g. ``"Offline"``.
        marker: Value of the ``x-cacheworker-fallback`` header.
        request: The request being answered.
        body: Placeholder body; empty by default.
    """
    return httpx.Response(
        status_code=status_code,
        headers={FALLBACK_HEADER: marker, "content-type": "text/plain"},
        content=body,
        request=request,
        extensions={"reason_phrase": reason.encode("ascii")},
    )


def is_cache_hit(response: httpx.Response) -> bool:
    """Return True if *response* was served from the store."""
    return response.headers.get(CACHE_HEADER) == "hit"


def fallback_marker(response: httpx.Response) -> Optional[str]:
    """Return the placeholder marker of *response*, or ``None`` for real responses."""
    return response.headers.get(FALLBACK_HEADER)
