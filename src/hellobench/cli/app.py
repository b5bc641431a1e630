"""Main Typer application, entry point for the ``hellobench`` CLI."""

from __future__ import annotations

import typer

from hellobench import __version__
from hellobench.cli.init_cmd import init_cmd
from hellobench.cli.run import run_cmd
from hellobench.cli.serve import serve_cmd

app = typer.Typer(
    name="hellobench",
    help="Hello-world echo server and staged HTTP load generator.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("serve", help="Run the hello-world echo server.")(serve_cmd)
app.command("run", help="Run a load profile against a target.")(run_cmd)
app.command("init", help="Scaffold a load profile file.")(init_cmd)


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"hellobench {__version__}")
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
    """hellobench: echo server and staged load generator."""
