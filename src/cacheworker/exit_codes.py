"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~cacheworker.exceptions.CacheWorkerError` subclass.

Example::

    $ cacheworker install
    $ echo $?
    5   # EXIT_STORE_FAILURE -- a static asset could not be pre-cached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_NOT_FOUND = 4
"""The requested partition or entry does not exist."""

EXIT_STORE_FAILURE = 5
"""The cache store could not be written, or install pre-population failed."""

EXIT_NETWORK_UNAVAILABLE = 6
"""A network-level error occurred (DNS failure, connection refused, timeout)."""
