"""Canonical Pydantic models shared across all cacheworker modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`RoutesConfig`, :class:`NetworkConfig`,
:class:`StoreConfig`, :class:`NotificationConfig`, :class:`OutputConfig`
and the top-level :class:`WorkerConfig`.

**Runtime models** -- produced while serving requests:
:class:`RequestClass`, :class:`Purpose`, :class:`MessageType`,
:class:`CachedResponse`, :class:`WriteOutcome`, :class:`HandoffState` and
:class:`NotificationRequest`.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
import time
from typing import Any, Optional

from pydantic import BaseModel, Field


# --- Enumerations ---


class RequestClass(str, enum.Enum):
    """Semantic class of an intercepted request.

    Derived per request by :func:`~cacheworker.classifier.classify` and
    never stored.
    """

    STREAMING = "streaming"
    IMAGE = "image"
    DOCUMENT = "document"
    OTHER = "other"


class Purpose(str, enum.Enum):
    """Partition purpose; combined with the version tag to form a partition name."""

    STATIC = "static"
    DYNAMIC = "dynamic"
    IMAGES = "images"


class MessageType(str, enum.Enum):
    """Control messages accepted by :meth:`~cacheworker.worker.CacheWorker.on_message`."""

    SKIP_WAITING = "SKIP_WAITING"
    CLEAR_CACHE = "CLEAR_CACHE"


# --- Configuration ---


DEFAULT_STATIC_ASSETS = [
    "/",
    "/index.html",
    "/manifest.json",
    "https://i.imgur.com/ZcLLrkY.jpg",
]

DEFAULT_RADIO_IMAGES = [
    "https://upload.wikimedia.org/wikipedia/commons/4/4e/RCN_Radio_logo.png",
    "https://upload.wikimedia.org/wikipedia/commons/6/6b/Caracol_Radio_logo.png",
    "https://upload.wikimedia.org/wikipedia/commons/1/19/La_Mega_Colombia_logo.png",
    "https://upload.wikimedia.org/wikipedia/commons/5/55/Radio_Nacional_de_Colombia_logo.png",
]

DEFAULT_STREAMING_DOMAINS = [
    "streaming.rcnradio.com",
    "playerservices.streamtheworld.com",
    "streaming.lamega.com.co",
    "streaming.radionacional.co",
]

DEFAULT_IMAGE_EXTENSIONS = ["png", "jpg", "jpeg", "svg", "gif", "webp"]


class RoutesConfig(BaseModel):
    """URL reference lists consulted by the classifier and by install.

    Example::

        RoutesConfig(
            static_assets=["/", "/index.html"],
            streaming_domains=["live.example.com"],
        )
    """

    static_assets: list[str] = Field(
        default_factory=lambda: list(DEFAULT_STATIC_ASSETS),
        description="URLs pre-populated into the static partition on install",
    )
    radio_images: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RADIO_IMAGES),
        description="Known image URLs cached on demand regardless of extension",
    )
    streaming_domains: list[str] = Field(
        default_factory=lambda: list(DEFAULT_STREAMING_DOMAINS),
        description="Hosts whose responses are never cached",
    )
    image_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS),
        description="File extensions (without dot) treated as images",
    )


class NetworkConfig(BaseModel):
    """Settings for the outbound HTTP client."""

    origin: Optional[str] = Field(
        default=None,
        description="Base URL that relative asset paths such as '/' resolve against",
    )
    timeout: Optional[float] = Field(
        default=None, description="Request timeout in seconds; None waits indefinitely"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")


class StoreConfig(BaseModel):
    """Location of the persistent cache store."""

    directory: Optional[str] = Field(
        default=None,
        description="Store root; defaults to the XDG cache directory when unset",
    )


class NotificationConfig(BaseModel):
    """Defaults applied to notifications built from push payloads."""

    title: str = "Radio Colombia"
    body: str = "Nueva notificación"
    icon: str = "/icons/icon-192.png"
    badge: str = "/icons/badge-72.png"
    vibrate: list[int] = Field(default_factory=lambda: [200, 100, 200])
    url: str = "/"


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`WorkerConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class WorkerConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/cacheworker/config.json``.

    Loaded and saved by :func:`~cacheworker.config.load_worker_config` and
    :func:`~cacheworker.config.save_worker_config`.  Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags.  See :func:`~cacheworker.config.resolve_config`
    for the full precedence chain.

    The ``version`` tag is injected into every component that needs it;
    nothing in the package reads it from module state.
    """

    version: str = Field(
        default="radio-co-v2.0", description="Generation tag of the current cache"
    )
    cleanup_prefix: Optional[str] = Field(
        default=None,
        description="When set, activate only deletes stale partitions with this prefix",
    )
    routes: RoutesConfig = Field(default_factory=RoutesConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def partition_name(self, purpose: Purpose) -> str:
        """Return the partition name for *purpose* under the current version."""
        return f"{self.version}-{purpose.value}"

    def current_partitions(self) -> list[str]:
        """Return the three partition names that belong to the current version."""
        return [self.partition_name(p) for p in Purpose]


# --- Runtime models ---


class CachedResponse(BaseModel):
    """Snapshot of a successful response as persisted in a partition.

    ``headers`` is a list of pairs so repeated headers (``set-cookie``)
    survive the round trip.  The body is stored already decoded.
    """

    method: str = "GET"
    url: str
    status_code: int
    headers: list[tuple[str, str]] = Field(default_factory=list)
    body: bytes = b""
    stored_at: float = Field(default_factory=time.time)


class WriteOutcome(BaseModel):
    """Result of a best-effort store write.

    Strategy writes never raise; they report through this model instead.
    Writes that must propagate (install) raise
    :class:`~cacheworker.exceptions.StoreWriteFailure`.
    """

    ok: bool
    partition: str
    url: str
    error: Optional[str] = None


class HandoffState(BaseModel):
    """Readiness flags moved by the lifecycle commit phases."""

    installed: bool = False
    skip_waiting_requested: bool = False
    activated: bool = False
    controlling: bool = False


class NotificationRequest(BaseModel):
    """A notification ready to hand to a :class:`~cacheworker.notifications.Notifier`."""

    title: str
    body: str
    icon: str
    badge: str
    vibrate: list[int] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)
