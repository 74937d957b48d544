"""Main Typer application, entry point for the ``checkrun`` CLI."""

from __future__ import annotations

import typer

from checkrun import __version__
from checkrun.cli.run import run_cmd

app = typer.Typer(
    name="checkrun",
    help="Run authenticated request-and-check load iterations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run", help="Run the products scenario or a scenario file.")(run_cmd)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"checkrun {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """checkrun: authenticated request-and-check load runs."""
