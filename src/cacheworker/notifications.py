"""Push notification plumbing.

Displaying notifications is the host's business.  This module only turns
a push payload into a :class:`~cacheworker.models.NotificationRequest`
(filling gaps from :class:`~cacheworker.models.NotificationConfig`) and
hands it to a :class:`Notifier`.

Hosts subclass :class:`Notifier`; :class:`LoggingNotifier` is the default
used when nothing else is supplied.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from cacheworker.models import NotificationConfig, NotificationRequest

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Host collaborator that shows notifications and opens windows."""

    @abstractmethod
    async def show(self, notification: NotificationRequest) -> None:
        """Display *notification* to the user."""
        ...

    async def close(self, notification: NotificationRequest) -> None:
        """Dismiss *notification*.  No-op by default."""

    @abstractmethod
    async def open_window(self, url: str) -> None:
        """Bring up the application at *url*."""
        ...


class LoggingNotifier(Notifier):
    """Notifier that only logs; used when the host provides none."""

    async def show(self, notification: NotificationRequest) -> None:
        logger.info("Notification: %s -- %s", notification.title, notification.body)

    async def open_window(self, url: str) -> None:
        logger.info("Open window requested for %s", url)


def build_notification(
    payload: Optional[dict[str, Any]],
    defaults: NotificationConfig,
) -> Optional[NotificationRequest]:
    """Build a notification from a push *payload*.

    Returns ``None`` when the push carried no data, in which case nothing
    should be shown.
    """
    if not payload:
        return None
    return NotificationRequest(
        title=payload.get("title") or defaults.title,
        body=payload.get("body") or defaults.body,
        icon=defaults.icon,
        badge=defaults.badge,
        vibrate=list(defaults.vibrate),
        data={"url": payload.get("url") or defaults.url},
    )


def click_target(notification: NotificationRequest, defaults: NotificationConfig) -> str:
    """Return the URL a click on *notification* should open."""
    return notification.data.get("url") or defaults.url
