"""Command line interface for apmkit."""

from typing import Optional

import typer
from typing_extensions import Annotated
from importlib.metadata import version as metadata_version

from apmkit_cli.console.console import Console
from apmkit_cli.commands.env import app as env_command
from apmkit_cli.commands.ping import app as ping_command
from apmkit_cli.commands.version import app as version_command


# Create typer app
app = typer.Typer(
    name='apmkit',
    help='apmkit application performance monitoring agent.',
    no_args_is_help=True,
    add_completion=False,
    pretty_exceptions_enable=False,
)

console = Console()


def version_callback(value: bool):
    if value:
        try:
            apmkit_version = metadata_version('apmkit')
        except Exception:
            apmkit_version = 'Development version'

        console.info(f'apmkit {apmkit_version}')
        raise typer.Exit()


@app.callback()
def callback(
    version: Annotated[
        Optional[bool],
        typer.Option(
            '--version',
            callback=version_callback,
            is_eager=True,
            help='Show apmkit version',
        ),
    ] = None,
):
    """Define the common command options"""


app.add_typer(env_command)
app.add_typer(ping_command)
app.add_typer(version_command)


def main():
    """Entry point for the CLI."""
    app()
