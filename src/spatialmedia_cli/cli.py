from __future__ import annotations

import json
import logging
from typing import Optional

import typer

from spatialmedia_cli.parser import PROG, parse

app = typer.Typer(help="spatialmedia command line", add_completion=False)
LOGGER = logging.getLogger(__name__)


def main() -> None:
    """Allow `python -m spatialmedia_cli` execution."""
    app()


@app.command(
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "help_option_names": [],
    }
)
def show(
    args: Optional[list[str]] = typer.Argument(None, help="spatialmedia options and files."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose logging."),
    pretty: bool = typer.Option(False, "--pretty", help="Pretty-print the JSON output."),
) -> None:
    """Resolve spatialmedia options and print the resulting configuration."""
    _configure_logging(verbose)
    configuration = parse([PROG, *(args or [])])
    action = "inject" if configuration.inject else "report"
    LOGGER.info("Configuration ready to %s %s", action, configuration.input_path or "<no input>")
    typer.echo(json.dumps(configuration.to_dict(), indent=2 if pretty else None))


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")
