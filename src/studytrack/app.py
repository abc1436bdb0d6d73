"""Typer application and CLI entry point for studytrack.

This module wires together the top-level Typer application and registers
the sub-commands:

* ``dashboard``, ``timetables``, ``completed``, ``stats`` -- study reads.
* ``session`` -- start, pause, resume, end and inspect the running session.
* ``notes`` -- list, add, edit, pin and delete notes.
* ``auth`` -- store or clear the bearer token.
* ``config`` -- view and modify global configuration.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from studytrack import __version__
from studytrack.commands.auth import auth_app
from studytrack.commands.config import config_app
from studytrack.commands.notes import notes_app
from studytrack.commands.session import session_app
from studytrack.commands.study import register_study_commands
from studytrack.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="studytrack",
    help="Track study sessions, notes and timetables against the study API.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_study_commands(app)
app.add_typer(session_app, name="session", help="Study session lifecycle.")
app.add_typer(notes_app, name="notes", help="Study notes.")
app.add_typer(auth_app, name="auth", help="Authentication management.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"studytrack {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="API base URL (overrides profile and environment)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~studytrack.output.OutputManager`, routes
    library logging to stderr, and stores shared options in ``ctx.obj``.
    Keys already present in ``ctx.obj`` (tests pass an httpx transport that
    way) are kept.
    """
    from studytrack.output import OutputFormat, OutputManager, configure_logging, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat(_configured_format())

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["base_url"] = base_url
    ctx.obj["verbose"] = verbose


def _configured_format() -> str:
    """Return ``output.format`` from ``config.json``, or ``auto`` if it cannot be read.

    An unreadable config file is reported by the command that resolves it.
    """
    from studytrack.config import load_global_config
    from studytrack.exceptions import ConfigError

    try:
        return load_global_config().output.format
    except ConfigError:
        return "auto"


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from studytrack.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``studytrack`` console script.

    :class:`~studytrack.exceptions.StudytrackError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions produce a crash
    log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from studytrack.exceptions import StudytrackError
        from studytrack.output import error

        if isinstance(exc, StudytrackError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
