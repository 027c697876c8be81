"""Built-in CLI sub-commands for cacheworker.

This package groups the Typer sub-command modules that form the CLI's
command tree:

* :mod:`~cacheworker.commands.worker` -- ``install``, ``activate``,
  ``fetch``, ``classify`` and ``message``, one per worker trigger.
* :mod:`~cacheworker.commands.partitions` -- inspect the cache store.
* :mod:`~cacheworker.commands.config` -- view and modify settings.

:mod:`~cacheworker.commands.context` holds the helpers every command uses
to resolve configuration and run a worker coroutine.
"""
