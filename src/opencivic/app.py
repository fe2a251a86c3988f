"""Typer application and CLI entry point for opencivic.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``query``, ``cache``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs a SIGINT handler and invokes the Typer
app; unhandled exceptions are written to a crash log under the data
directory.

See Also:
    :mod:`opencivic.config`: Settings resolution.
    :mod:`opencivic.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer
from rich.logging import RichHandler

from opencivic import __version__
from opencivic.commands.cache import cache_app
from opencivic.commands.config import config_app
from opencivic.commands.query import query_command
from opencivic.exit_codes import EXIT_GENERIC_FAILURE
from opencivic.output import OutputFormat, OutputManager, set_output


app = typer.Typer(
    name="opencivic",
    help="Query the Open Civic Data API with a local response cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("query")(query_command)
app.add_typer(cache_app, name="cache", help="Inspect the response cache.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"opencivic {__version__}")
        raise typer.Exit()


def _configure_logging(output: OutputManager, verbose: bool) -> None:
    """Send ``opencivic.*`` log records to stderr through Rich.

    Replaces the handler installed by a previous invocation so repeated
    runs in one process (tests) do not stack handlers.
    """
    logger = logging.getLogger("opencivic")
    for handler in list(logger.handlers):
        if getattr(handler, "_opencivic_cli", False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=output.stderr_console,
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler._opencivic_cli = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


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
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log cache decisions and requests."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~opencivic.output.OutputManager` and routes
    library logging to stderr.
    """
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    _configure_logging(output, verbose)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to the data directory and return its path."""
    from opencivic.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now().strftime('%Y%m%d-%H%M%S')}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``opencivic`` console script.

    :class:`~opencivic.exceptions.OpenCivicError` instances that escape a
    command exit with the error's ``exit_code``; anything else produces a
    crash log and a generic failure exit.
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
        from opencivic.exceptions import OpenCivicError
        from opencivic.output import error

        if isinstance(exc, OpenCivicError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
