"""Network access for cacheworker.

Provides :class:`Fetcher`, the only component that touches the network.
It wraps :class:`httpx.AsyncClient`, resolves relative asset paths against
the configured origin, and maps transport failures to
:class:`~cacheworker.exceptions.NetworkUnavailable`.

The :mod:`~cacheworker.client.response` module converts between live
:class:`httpx.Response` objects and the
:class:`~cacheworker.models.CachedResponse` snapshots kept in the store.

Example::

    from cacheworker.client import Fetcher

    async with Fetcher(config.network) as fetcher:
        request = fetcher.build_request("GET", "/index.html")
        response = await fetcher.fetch(request)
"""

from cacheworker.client.fetcher import Fetcher

__all__ = ["Fetcher"]
