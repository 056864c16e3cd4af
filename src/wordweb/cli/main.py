"""WordWeb command line interface."""

import sys

import typer
from loguru import logger

from .. import __version__
from .commands.grow import grow_main
from .commands.serve import serve_main

app = typer.Typer(
    name="wordweb",
    help="🕸️  Grow expandable radial mind maps of related words",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)

app.command("grow")(grow_main)
app.command("serve")(serve_main)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"wordweb {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Verbose output",
        rich_help_panel="🔧 Global Options",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """🕸️  WordWeb: expandable radial mind maps."""
    # Suppress DEBUG/INFO logs unless --verbose
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


if __name__ == "__main__":
    app()
