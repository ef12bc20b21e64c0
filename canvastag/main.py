#!/usr/bin/env python3
"""
Main CLI entry point for canvastag
"""

import typer

from canvastag import __version__
from canvastag.commands.objects import app as object_app
from canvastag.commands.tags import app as tag_app
from canvastag.config.settings import validate_all_env_vars
from canvastag.utils.logging import configure_logging
from canvastag.utils.output import console

app = typer.Typer(
    name="canvastag",
    help="Tag registry and node-tag sync for canvas boards",
    rich_markup_mode="rich",
)
app.add_typer(tag_app, name="tag")
app.add_typer(object_app, name="object")


@app.command()
def version():
    """Show canvastag version"""
    typer.echo(f"canvastag version {__version__}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
):
    """
    canvastag - tag the objects on a canvas board

    [bold]Examples:[/bold]

    Create a tag:
        [cyan]canvastag tag create urgent --color "#ff0000" --emoji 🔥[/cyan]

    Tag the selected objects:
        [cyan]canvastag tag assign urgent[/cyan]

    Export the tag map:
        [cyan]canvastag tag export --format csv[/cyan]
    """
    if verbose and quiet:
        typer.echo("Error: --verbose and --quiet are mutually exclusive", err=True)
        raise typer.Exit(1)

    for error in validate_all_env_vars():
        console.print(f"[yellow]Warning: {error}[/yellow]")

    if verbose:
        configure_logging("DEBUG")
    elif quiet:
        configure_logging("ERROR")
    else:
        configure_logging()


def run():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    run()
