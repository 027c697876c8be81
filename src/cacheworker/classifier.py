"""Request classification rules.

:func:`classify` sorts an intercepted request into a
:class:`~cacheworker.models.RequestClass`.  The rules are checked in a
fixed order and the first match wins:

1. ``streaming`` -- the URL contains a configured streaming domain.  This
   check runs first so a live stream is never cached, whatever its
   extension.
2. ``image`` -- the URL ends in a known image extension, or contains one
   of the configured radio-image references.
3. ``document`` -- a GET whose path is ``/`` or ends in ``.html`` /
   ``.json``.
4. ``other`` -- everything else.

The module is pure: no I/O, no state, and :func:`classify` never raises.
"""

from __future__ import annotations

import httpx

from cacheworker.models import RequestClass, RoutesConfig

_DOCUMENT_SUFFIXES = (".html", ".json")


def is_streaming_url(url: str, routes: RoutesConfig) -> bool:
    """Return True if *url* belongs to one of the streaming domains."""
    return any(domain in url for domain in routes.streaming_domains)


def is_image_url(url: str, routes: RoutesConfig) -> bool:
    """Return True if *url* has an image extension or is a known radio image."""
    lowered = url.lower()
    if any(lowered.endswith("." + ext.lower()) for ext in routes.image_extensions):
        return True
    return any(img in url for img in routes.radio_images)


def is_document_request(url: str, method: str) -> bool:
    """Return True for GET requests to ``/``, ``*.html`` or ``*.json``."""
    if method.upper() != "GET":
        return False
    try:
        path = httpx.URL(url).path
    except httpx.InvalidURL:
        return False
    return path == "/" or path.endswith(_DOCUMENT_SUFFIXES)


def classify(url: str, method: str, routes: RoutesConfig) -> RequestClass:
    """Map a request URL and method to its :class:`RequestClass`.

    Args:
        url: The full request URL.
        method: HTTP method, any case.
        routes: Reference lists of streaming domains and image URLs.

    Returns:
        The first matching class, falling back to ``RequestClass.OTHER``.

    Example::

        >>> classify("https://streaming.rcnradio.com/live.png", "GET", RoutesConfig())
        <RequestClass.STREAMING: 'streaming'>
    """
    if is_streaming_url(url, routes):
        return RequestClass.STREAMING
    if is_image_url(url, routes):
        return RequestClass.IMAGE
    if is_document_request(url, method):
        return RequestClass.DOCUMENT
    return RequestClass.OTHER
