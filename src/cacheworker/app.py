"""The ``cacheworker`` command.

Top-level commands drive the worker's triggers (``install``, ``activate``,
``fetch``, ``classify``, ``message``); ``partitions`` inspects the store
and ``config`` edits the user configuration.

Global options shared by every command (cache version, origin, store
directory, output style, ``--force``) are parsed once by
:func:`main_callback` and handed to commands through ``ctx.obj``.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from cacheworker import __version__
from cacheworker.commands import worker as worker_commands
from cacheworker.commands.config import config_app
from cacheworker.commands.partitions import partitions_app
from cacheworker.exit_codes import EXIT_GENERIC_FAILURE
from cacheworker.output import (
    OutputFormat,
    OutputManager,
    error,
    install_log_handler,
    set_output,
)

EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="cacheworker",
    help="Request-interception caching layer with versioned offline storage.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

worker_commands.register(app)
app.add_typer(partitions_app, name="partitions", help="Inspect cache partitions.")
app.add_typer(config_app, name="config", help="Show or change the user configuration.")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"cacheworker {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True,
        help="Print the cacheworker version.",
    ),
    cache_version: Optional[str] = typer.Option(
        None, "--cache-version", help="Cache generation tag, e.g. radio-co-v2.0."
    ),
    origin: Optional[str] = typer.Option(
        None, "--origin", help="Origin that relative URLs resolve against."
    ),
    store: Optional[str] = typer.Option(None, "--store", help="Cache store directory."),
    json_output: bool = typer.Option(False, "--json", help="Print data as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Print data as tab-separated text."),
    no_color: bool = typer.Option(False, "--no-color", help="Never use colour."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print data, warnings and errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show worker debug logging."),
    force: bool = typer.Option(False, "--force", "-f", help="Do not ask before deleting."),
) -> None:
    """Install the output manager and record the global options."""
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    install_log_handler(verbose=verbose)

    ctx.ensure_object(dict)
    ctx.obj.update(
        version=cache_version,
        origin=origin,
        store=store,
        force=force,
        verbose=verbose,
    )


def _on_sigint(signum: int, frame: Any) -> None:
    sys.stderr.write("\nInterrupted.\n")
    sys.exit(EXIT_INTERRUPTED)


def _write_crash_log() -> str:
    """Save the current traceback under the data directory; return its path."""
    from cacheworker.config import get_data_dir

    path = get_data_dir() / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    path.write_text(traceback.format_exc(), encoding="utf-8")
    return str(path)


def main() -> None:
    """Console-script entry point.

    A :class:`~cacheworker.exceptions.CacheWorkerError` that escapes a
    command exits with its ``exit_code``; any other exception is saved to
    a crash log and exits with :data:`EXIT_GENERIC_FAILURE`.
    """
    from cacheworker.exceptions import CacheWorkerError

    signal.signal(signal.SIGINT, _on_sigint)
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted.\n")
        sys.exit(EXIT_INTERRUPTED)
    except CacheWorkerError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        error(f"Unexpected error; traceback saved to {_write_crash_log()}")
        sys.exit(EXIT_GENERIC_FAILURE)
