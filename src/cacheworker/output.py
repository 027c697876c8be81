"""Terminal output for the cacheworker CLI.

Data the user asked for (response bodies, partition tables, the effective
configuration) is written to stdout.  Everything else -- status lines,
cache-hit and placeholder notices, warnings, errors and forwarded log
records -- goes to stderr, so ``cacheworker fetch URL > body.html`` keeps
the body clean.

Three renderings are available for stdout: ``json`` for scripts, ``plain``
(tab-separated) for pipes, and ``rich`` for an interactive terminal.
``auto`` picks ``rich`` on a colour-capable TTY and ``plain`` elsewhere.
Colour is turned off by ``--no-color``, ``NO_COLOR`` or ``TERM=dumb``.

A single :class:`OutputManager` is installed by
:func:`~cacheworker.app.main_callback`; commands use the module-level
helpers, and :class:`OutputLogHandler` feeds ``logging`` records from the
library into the same manager.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, NamedTuple, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Diagnostic(NamedTuple):
    prefix: str
    markup: str
    quiet_hides: bool


# prefix, Rich markup template, hidden by --quiet
_DIAGNOSTICS = {
    "info": _Diagnostic("", "{}", True),
    "success": _Diagnostic("", "[green]{}[/green]", True),
    "warning": _Diagnostic("Warning: ", "[yellow]Warning:[/yellow] {}", False),
    "error": _Diagnostic("Error: ", "[bold red]Error:[/bold red] {}", False),
    "suggest": _Diagnostic("→ ", "[dim]→ {}[/dim]", True),
    "debug": _Diagnostic("[debug] ", "[dim]\\[debug] {}[/dim]", False),
}


class OutputManager:
    """Holds the output preferences of one CLI invocation.

    Args:
        format: Rendering for stdout data; ``AUTO`` is resolved here.
        no_color: Force colour off even on a terminal.
        quiet: Hide info, success and suggestion lines.
        verbose: Show debug lines.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self._format = format

        self._out = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._err = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Write *text* verbatim to stdout."""
        print(text, file=sys.stdout, flush=True)

    def format_response(self, data: Any, content_type: str = "application/json") -> None:
        """Render *data* to stdout in the active format.

        *data* is a decoded object (dict, list, scalar) or a response body
        string.  JSON bodies are re-indented; anything else is printed
        as-is.  *content_type* tells the Rich renderer whether a string is
        worth highlighting.
        """
        if self._format == OutputFormat.JSON:
            self._render_json(data)
        elif self._format == OutputFormat.PLAIN:
            self._render_plain(data)
        else:
            self._render_rich(data, content_type)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows to stdout.

        JSON renders a list of objects keyed by *headers*; plain renders a
        tab-separated header line followed by one line per row (the title
        is dropped); Rich draws a table.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._out.print(table)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        self._diagnose("info", message)

    def success(self, message: str) -> None:
        self._diagnose("success", message)

    def warning(self, message: str) -> None:
        self._diagnose("warning", message)

    def error(self, message: str) -> None:
        self._diagnose("error", message)

    def suggest(self, message: str) -> None:
        """Print a next-step hint, e.g. ``Run: cacheworker activate``."""
        self._diagnose("suggest", message)

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnose("debug", message)

    def _diagnose(self, kind: str, message: str) -> None:
        spec = _DIAGNOSTICS[kind]
        if self._quiet and spec.quiet_hides:
            return
        if self._no_color:
            print(spec.prefix + message, file=sys.stderr, flush=True)
        else:
            self._err.print(spec.markup.format(message))

    # ------------------------------------------------------------------ #
    # Renderers
    # ------------------------------------------------------------------ #

    def _render_json(self, data: Any) -> None:
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError:
                self.print_data(data)
                return
        self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    def _render_plain(self, data: Any) -> None:
        if isinstance(data, dict):
            lines = [f"{key}\t{value}" for key, value in data.items()]
        elif isinstance(data, list):
            lines = [
                "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
                for item in data
            ]
        else:
            lines = [str(data)]
        for line in lines:
            self.print_data(line)

    def _render_rich(self, data: Any, content_type: str) -> None:
        if isinstance(data, str) and "json" in content_type:
            try:
                data = json.loads(data)
            except json.JSONDecodeError:
                pass
        if isinstance(data, (dict, list)):
            text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            self._out.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self._out.print(str(data), markup=False)


class OutputLogHandler(logging.Handler):
    """Forwards ``cacheworker`` log records to the global :class:`OutputManager`."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            output = get_output()
            if record.levelno >= logging.ERROR:
                output.error(message)
            elif record.levelno >= logging.WARNING:
                output.warning(message)
            elif record.levelno >= logging.INFO:
                output.info(message)
            else:
                output.debug(message)
        except Exception:
            self.handleError(record)


def install_log_handler(verbose: bool = False) -> OutputLogHandler:
    """Route the ``cacheworker`` logger through :class:`OutputLogHandler`.

    Only warnings and errors are shown unless *verbose* is set.  Calling it
    again replaces the previous handler.
    """
    logger = logging.getLogger("cacheworker")
    for existing in list(logger.handlers):
        if isinstance(existing, OutputLogHandler):
            logger.removeHandler(existing)
    handler = OutputLogHandler()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
    return handler


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (to anything) or ``TERM`` is ``dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager; tests call this between runs."""
    global _output
    _output = None


def format_response(data: Any, content_type: str = "application/json") -> None:
    get_output().format_response(data, content_type)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
