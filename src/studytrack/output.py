"""Terminal output for the studytrack CLI.

Data (dashboard figures, timetables, notes, session payloads) goes to
stdout in one of three renderings; everything said *about* the data
(status lines, warnings, errors, next-step hints, and the library log
records routed by :func:`configure_logging`) goes to stderr.

``--json`` and ``--plain`` pick the rendering explicitly; otherwise the
``output.format`` setting does, and ``auto`` means Rich on an interactive
terminal and plain text when piped. ``NO_COLOR``, ``TERM=dumb`` and
``--no-color`` turn colour off.

Commands never hold an :class:`OutputManager`; the root callback installs
one with :func:`set_output` and the module-level helpers (:func:`info`,
:func:`format_response`, ...) write through it.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How data is rendered on stdout. ``AUTO`` settles to ``RICH`` or ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Diagnostic(NamedTuple):
    prefix: str
    markup: str
    quiet_hides: bool = True
    verbose_only: bool = False


# Plain prefix, Rich markup template (``{}`` is the message), visibility rules.
_DIAGNOSTICS: dict[str, _Diagnostic] = {
    "info": _Diagnostic("", "{}"),
    "success": _Diagnostic("", "[green]{}[/green]"),
    "suggest": _Diagnostic("→ ", "[dim]→ {}[/dim]"),
    "warning": _Diagnostic("Warning: ", "[yellow]Warning:[/yellow] {}", quiet_hides=False),
    "error": _Diagnostic("Error: ", "[bold red]Error:[/bold red] {}", quiet_hides=False),
    "debug": _Diagnostic("[debug] ", "[dim][debug] {}[/dim]", verbose_only=True),
}


def _jsonable(data: Any) -> Any:
    """Dump pydantic study records (or lists of them) to plain JSON values."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", exclude_none=True)
    if isinstance(data, list):
        return [_jsonable(item) for item in data]
    return data


def _cell(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


class OutputManager:
    """Holds the rendering choice and the two Rich consoles for one CLI run.

    Args:
        format: Requested rendering; ``AUTO`` is resolved here, once.
        no_color: Disable colour and Rich markup.
        quiet: Drop status lines and hints; warnings and errors still show.
        verbose: Also show debug lines.
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
            rich = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def stderr_console(self) -> Console:
        return self._stderr

    # --- stdout ---

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def format_response(self, data: Any) -> None:
        """Render one result on stdout.

        *data* may be a pydantic model (a note, a session, the dashboard
        summary), a list of them, or already-plain dicts, lists and scalars.
        Plain mode prints ``key<TAB>value`` for a mapping and one line per
        item for a list, joining list values with commas.
        """
        data = _jsonable(data)
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        elif self._format == OutputFormat.PLAIN:
            if isinstance(data, dict):
                lines = [f"{key}\t{_cell(value)}" for key, value in data.items()]
            elif isinstance(data, list):
                lines = [
                    "\t".join(map(_cell, item.values())) if isinstance(item, dict) else _cell(item)
                    for item in data
                ]
            else:
                lines = [str(data)]
            for line in lines:
                self.print_data(line)
        elif isinstance(data, (dict, list)):
            text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Render rows as JSON records, tab-separated lines, or a Rich table.

        The header line is printed in plain mode too, so ``cut -f`` users can
        see the column order; *title* only shows in the Rich table.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return
        table = Table(title=title, show_header=True, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # --- stderr ---

    def _emit(self, kind: str, message: str) -> None:
        spec = _DIAGNOSTICS[kind]
        if spec.verbose_only and not self._verbose:
            return
        if spec.quiet_hides and self._quiet:
            return
        if self._no_color:
            print(f"{spec.prefix}{message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(spec.markup.format(message))

    def info(self, message: str) -> None:
        self._emit("info", message)

    def success(self, message: str) -> None:
        self._emit("success", message)

    def suggest(self, message: str) -> None:
        """Hint at the command to run next, e.g. ``studytrack auth login``."""
        self._emit("suggest", message)

    def warning(self, message: str) -> None:
        self._emit("warning", message)

    def error(self, message: str) -> None:
        self._emit("error", message)

    def debug(self, message: str) -> None:
        self._emit("debug", message)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything, or ``TERM`` is ``dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


def configure_logging(output: OutputManager) -> None:
    """Route ``studytrack.*`` log records to stderr through Rich.

    The cache and the session coordinator log the failures they absorb at
    ``ERROR`` and the skipped or discarded work at ``WARNING``/``DEBUG``.
    A normal run shows warnings and up, ``--verbose`` everything and
    ``--quiet`` errors only. Calling this again replaces the handler.
    """
    if output.is_verbose:
        level = logging.DEBUG
    elif output.is_quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logger = logging.getLogger("studytrack")
    for handler in list(logger.handlers):
        if getattr(handler, "_studytrack_cli", False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=output.stderr_console,
        show_time=output.is_verbose,
        show_path=False,
        markup=False,
    )
    handler._studytrack_cli = True  # type: ignore[attr-defined]
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
