"""Typer application and CLI entry point for e2eauth.

The CLI is a shell front end for :class:`~e2eauth.auth.acquirer.TokenAcquirer`:
fetch a token for ``curl``, drive a login in a real browser, log out, or
check which settings a test run would resolve.

Global options given before the sub-command (``--realm``, ``--client-id``,
``--provider-url``) form the override layer of
:func:`~e2eauth.config.resolve_settings`; everything else comes from the
environment. ``--strict`` disables the fallback policy so failures exit
non-zero instead of printing the sentinel token.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.logging import RichHandler

from e2eauth import __version__
from e2eauth.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="e2eauth",
    help="Acquire OAuth2/OIDC tokens for end-to-end tests.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"e2eauth {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool, console: Any = None) -> None:
    """Send library log records to stderr through Rich.

    Args:
        verbose: Log at DEBUG instead of WARNING.
        console: Rich console to write to; the output manager's stderr
            console when called from the CLI.
    """
    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        markup=False,
    )
    logger = logging.getLogger("e2eauth")
    logger.handlers = [handler]
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
    provider_url: Optional[str] = typer.Option(
        None, "--provider-url", help="Identity provider base URL."
    ),
    realm: Optional[str] = typer.Option(None, "--realm", help="Provider realm."),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="OAuth client identifier."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    strict: bool = typer.Option(
        False, "--strict", help="Fail instead of printing the fallback token."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~e2eauth.output.OutputManager`, wires
    library logging to stderr, and stores the settings overrides and the
    ``strict`` flag in ``ctx.obj`` for the sub-commands.
    """
    from e2eauth.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet)
    set_output(output)
    configure_logging(verbose, output.stderr_console)

    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "provider_url": provider_url,
        "realm": realm,
        "client_id": client_id,
    }
    ctx.obj["strict"] = strict


def _register_commands() -> None:
    from e2eauth.commands.config import config_app
    from e2eauth.commands.token import register_token_commands

    register_token_commands(app)
    app.add_typer(config_app, name="config", help="Inspect resolved settings.")


_register_commands()


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to the data directory and return its path."""
    from e2eauth.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``e2eauth`` console script.

    :class:`~e2eauth.exceptions.E2EAuthError` exits with the error's
    ``exit_code``. Anything else writes a crash log and exits with a
    generic failure.
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
        from e2eauth.exceptions import E2EAuthError
        from e2eauth.output import error

        if isinstance(exc, E2EAuthError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
