from importlib.resources import files
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from apmkit_cli.console.console import Console


app = typer.Typer()

console = Console()


def _with_server_url(content: str, server_url: str) -> str:
    lines = []
    for line in content.splitlines():
        if line.startswith('APMKIT_SERVER_URL='):
            line = f'APMKIT_SERVER_URL={server_url}'
        lines.append(line)
    return '\n'.join(lines) + '\n'


@app.command()
def env(
    server_url: Annotated[
        Optional[str],
        typer.Option(
            '--server-url',
            '-s',
            help='The APM server (OTLP/HTTP collector) the agent reports to.',
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option('--force', '-f', help='Overwrite an existing .env file.'),
    ] = False,
):
    """Write a .env file with the agent configuration."""
    env_file_path: Path = Path.cwd() / '.env'

    console.action('Create env file')

    if env_file_path.exists() and not force:
        console.highlight('.env file already exists')
        console.newline()
        if not typer.confirm('Do you want to overwrite it?', default=False):
            console.faint('Leaving your file as is.')
            return

    try:
        content = files('apmkit_cli').joinpath('.env.example').read_text()
        if server_url:
            content = _with_server_url(content, server_url)

        env_file_path.write_text(content)
    except OSError as e:
        console.error(f'Error creating .env file: {str(e)}')
        raise typer.Exit(1)

    console.success('[success]Created .env file[/success] with default configuration.')
    if server_url:
        console.faint(f'Traces are sent to {server_url}.')
    console.faint('Set APMKIT_APP_NAME and APMKIT_SERVER_SECRET_TOKEN before deploying.')
