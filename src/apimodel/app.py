"""Typer application and CLI entry point for apimodel.

This module wires together the top-level Typer application and registers
the built-in commands (``generate``, ``items``, ``operations``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers commands and
invokes the Typer app. :class:`~apimodel.exceptions.ApiModelError` exits
with the error's exit code; any other exception is written to a crash log
under the data directory.

See Also:
    :mod:`apimodel.config`: Configuration resolution.
    :mod:`apimodel.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from apimodel import __version__
from apimodel.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="apimodel",
    help="Compile OpenAPI 3.0/3.1 documents into typed Python models.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

_registered = False


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"apimodel {__version__}")
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
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Output file path."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~apimodel.output.OutputManager` from CLI
    flags. Without ``--json`` or ``--plain`` the format comes from the
    ``output.format`` setting of the resolved configuration.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
        output_file: Redirect primary data output to a file path.
    """
    from apimodel.config import resolve_config
    from apimodel.exceptions import ConfigError
    from apimodel.output import OutputFormat, OutputManager, error, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        try:
            fmt = OutputFormat(resolve_config().output.format)
        except (ConfigError, ValueError) as exc:
            error(f"Config error: {exc}")
            raise typer.Exit(code=getattr(exc, "exit_code", EXIT_GENERIC_FAILURE)) from None

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
        output_file=output_file,
    )
    set_output(output)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def register_commands() -> typer.Typer:
    """Attach the built-in commands to :data:`app`; safe to call repeatedly."""
    global _registered
    if not _registered:
        from apimodel.commands.config import config_app
        from apimodel.commands.generate import generate_command
        from apimodel.commands.inspect import items_command, operations_command

        app.command("generate")(generate_command)
        app.command("items")(items_command)
        app.command("operations")(operations_command)
        app.add_typer(config_app, name="config", help="Configuration management.")
        _registered = True
    return app


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from apimodel.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``apimodel`` console script.

    Performs the following sequence:

    1. Install signal handlers for clean Ctrl-C behaviour.
    2. Register the built-in commands.
    3. Invoke the Typer application.

    Unhandled :class:`~apimodel.exceptions.ApiModelError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from apimodel.exceptions import ApiModelError
        from apimodel.output import error

        if isinstance(exc, ApiModelError):
            error(str(exc))
            if exc.__cause__ is not None:
                error(f"Caused by: {exc.__cause__}")
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
