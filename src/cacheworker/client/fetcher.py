"""Asynchronous network fetcher.

:class:`Fetcher` wraps :class:`httpx.AsyncClient` with the two things the
caching layer needs from the network:

* relative asset paths (``/``, ``/index.html``) are resolved against
  :attr:`~cacheworker.models.NetworkConfig.origin`;
* every transport-level failure (DNS, refused connection, timeout,
  redirect loop) surfaces as
  :class:`~cacheworker.exceptions.NetworkUnavailable`.

Each request is attempted exactly once.  There is no retry and, unless
``NetworkConfig.timeout`` is set, no timeout: an unresponsive server keeps
that one request waiting.  HTTP error statuses are *not* exceptions here;
strategies decide what a 404 or 500 means.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from cacheworker.exceptions import InvalidUsageError, NetworkUnavailable
from cacheworker.models import NetworkConfig

logger = logging.getLogger(__name__)


class Fetcher:
    """Issues outbound requests on behalf of the strategies.

    Args:
        config: Network settings (origin, timeout, SSL verification,
            redirect handling).
        transport: Optional transport for the inner client.  Tests pass an
            :class:`httpx.MockTransport` here.

    Example::

        async with Fetcher(NetworkConfig(origin="https://radio.example")) as f:
            resp = await f.fetch(f.build_request("GET", "/manifest.json"))
    """

    def __init__(
        self,
        config: NetworkConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> Fetcher:
        self._get_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying :class:`httpx.AsyncClient`."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def resolve(self, url: str) -> str:
        """Return *url* as an absolute URL.

        Raises:
            InvalidUsageError: If *url* is relative and no origin is
                configured.
        """
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise InvalidUsageError(f"Invalid URL '{url}': {exc}") from exc
        if parsed.is_absolute_url:
            return str(parsed)
        if not self._config.origin:
            raise InvalidUsageError(
                f"Cannot resolve relative URL '{url}': no network origin configured"
            )
        return str(httpx.URL(self._config.origin).join(url))

    def build_request(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        content: Optional[bytes] = None,
    ) -> httpx.Request:
        """Build an :class:`httpx.Request` with the client's defaults applied."""
        return self._get_client().build_request(
            method.upper(),
            self.resolve(url),
            headers=headers,
            content=content,
        )

    async def fetch(self, request: httpx.Request, stream: bool = False) -> httpx.Response:
        """Send *request* once and return whatever the server answered.

        Args:
            request: The request to send.  Method, headers and body are
                forwarded untouched.
            stream: When ``True`` the body is left unread so the caller
                can consume it incrementally (live audio streams).

        Returns:
            The :class:`httpx.Response`, whatever its status code.

        Raises:
            NetworkUnavailable: On any transport-level failure.
        """
        client = self._get_client()
        try:
            response = await client.send(request, stream=stream)
        except httpx.RequestError as exc:
            logger.debug("Network error for %s %s: %s", request.method, request.url, exc)
            raise NetworkUnavailable(
                f"{request.method} {request.url} failed: {exc}"
            ) from exc
        logger.debug("%s %s -> %s", request.method, request.url, response.status_code)
        return response

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            kwargs = {
                "timeout": self._config.timeout,
                "verify": self._config.verify_ssl,
                "follow_redirects": self._config.follow_redirects,
            }
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.AsyncClient(**kwargs)
        return self._client
