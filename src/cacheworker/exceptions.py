"""Exception hierarchy for cacheworker.

All exceptions inherit from :class:`CacheWorkerError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`cacheworker.exit_codes`.  The CLI entry point in
:func:`cacheworker.app.main` catches ``CacheWorkerError`` and exits with
the matching code.

Subclass hierarchy::

    CacheWorkerError (exit 1)
    +-- InvalidUsageError    (exit 2)
    +-- NotFoundError        (exit 4)
    +-- StoreWriteFailure    (exit 5)
    +-- InstallError         (exit 5)
    +-- NetworkUnavailable   (exit 6)
    +-- ConfigError          (exit 1)
"""

from cacheworker.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NETWORK_UNAVAILABLE,
    EXIT_NOT_FOUND,
    EXIT_STORE_FAILURE,
)


class CacheWorkerError(Exception):
    """Base exception for all cacheworker errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CacheWorkerError):
    """Raised for invalid arguments (bad partition names, unknown message types)."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(CacheWorkerError):
    """Raised when a partition or cache entry does not exist."""

    exit_code = EXIT_NOT_FOUND


class StoreWriteFailure(CacheWorkerError):
    """Raised when persisting to, or deleting from, the cache store fails."""

    exit_code = EXIT_STORE_FAILURE


class InstallError(CacheWorkerError):
    """Raised when install pre-population cannot complete.

    Install is all-or-nothing: one unreachable or non-2xx static asset
    fails the whole step so the host can retry it.
    """

    exit_code = EXIT_STORE_FAILURE


class NetworkUnavailable(CacheWorkerError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_NETWORK_UNAVAILABLE


class ConfigError(CacheWorkerError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE
