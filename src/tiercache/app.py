"""Typer application and CLI entry point for tiercache.

This module wires together the top-level Typer application and registers
the built-in commands (``fetch``, ``cache``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~tiercache.exceptions.TiercacheError` exits with its mapped code;
any other exception is written to a crash log under the data directory.

See Also:
    :mod:`tiercache.config`: Configuration resolution.
    :mod:`tiercache.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

import typer

from tiercache import __version__
from tiercache.commands.cache import cache_app
from tiercache.commands.config import config_app
from tiercache.commands.fetch import fetch_command
from tiercache.exit_codes import EXIT_GENERIC_FAILURE

if TYPE_CHECKING:
    from tiercache.output import OutputFormat

app = typer.Typer(
    name="tiercache",
    help="Serve HTTP responses from max-age cache tiers.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("fetch")(fetch_command)
app.add_typer(cache_app, name="cache", help="Inspect and maintain the persistent store.")
app.add_typer(config_app, name="config", help="Configuration management.")

_log_handler: Optional[logging.Handler] = None


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"tiercache {__version__}")
        raise typer.Exit()


def _configure_logging(handler: logging.Handler, verbose: bool) -> None:
    """Route ``tiercache.*`` log records to *handler*, replacing a previous one."""
    global _log_handler
    logger = logging.getLogger("tiercache")
    if _log_handler is not None:
        logger.removeHandler(_log_handler)
    _log_handler = handler
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _configured_format() -> OutputFormat:
    """Default format from the config file, ``auto`` when it cannot be read."""
    from tiercache.config import load_global_config
    from tiercache.exceptions import ConfigError
    from tiercache.output import OutputFormat

    try:
        configured = load_global_config().output.format
    except ConfigError:
        # The command that needs the config reports the problem.
        return OutputFormat.AUTO
    try:
        return OutputFormat(configured)
    except ValueError:
        return OutputFormat.AUTO


@app.callback()
def main_callback(
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
        False, "--verbose", "-v", help="Enable debug output, including cache decisions."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~tiercache.output.OutputManager` from the
    CLI flags and routes library log records to stderr (debug level with
    ``--verbose``, warnings otherwise).
    """
    from tiercache.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = _configured_format()

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    _configure_logging(output.log_handler(), verbose)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from tiercache.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``tiercache`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
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
        from tiercache.exceptions import TiercacheError
        from tiercache.output import error

        if isinstance(exc, TiercacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
