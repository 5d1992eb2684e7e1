"""Command-line entry point.

Usage::

    rustmail check            # default folder from the config, else inbox
    rustmail check Archive    # a specific folder
    rustmail -v check         # debug logging; -vv also traces IMAP

On success ``check`` prints the number of unseen messages, and nothing
else, on stdout.  Errors print one line on stderr and exit with status 1.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import structlog
import typer

from . import __version__
from .checker import MailChecker
from .config import load_settings
from .errors import RustmailError
from .logging import level_for_verbosity, setup_logging

app = typer.Typer(
    help="Fetch unseen mail from an IMAP account into local .eml files.",
    no_args_is_help=True,
    add_completion=False,
)

logger = structlog.get_logger()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Verbose output (-vv traces IMAP)."
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Log JSON lines to stderr."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    setup_logging(json=json_logs, level=level_for_verbosity(verbose), verbose=verbose)


@app.command()
def check(
    folder: Optional[str] = typer.Argument(None, help="Folder to check (default: config, then inbox)."),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (default: the platform config dir's rustmail/config.toml).",
        dir_okay=False,
    ),
) -> None:
    """Check for new or unread mail and store it locally."""
    try:
        settings = load_settings(config)
        count = MailChecker.from_settings(settings).check(folder)
    except RustmailError as exc:
        logger.debug("check_failed", error_type=type(exc).__name__)
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(count)


def main() -> None:
    app(prog_name="rustmail")
