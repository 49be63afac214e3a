"""Print the agent, runtime and exporter versions with the active delivery target."""

import sys
import platform
from importlib.metadata import PackageNotFoundError, version as metadata_version

import typer

from apmkit_cli.console.console import Console
from apmkit_core.models import ApmConfig
from apmkit_core.sinks.otlp_sink import agent_version


app = typer.Typer()

console = Console()

OTEL_PACKAGES = [
    'opentelemetry-sdk',
    'opentelemetry-exporter-otlp-proto-http',
]


def _installed_version(package: str) -> str:
    try:
        return metadata_version(package)
    except PackageNotFoundError:
        return 'not installed'


@app.command()
def version():
    """Show the agent version and where traces are delivered."""
    config = ApmConfig()

    console.highlight(
        f'{config.agent_name} {agent_version(config)}. Application performance monitoring agent.'
    )
    console.newline()

    for package in OTEL_PACKAGES:
        console.muted(f'{package}: {_installed_version(package)}')
    console.muted(
        f'Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro} on {platform.platform()}'
    )
    console.newline()

    if not config.enable or config.transport == 'memory':
        console.info('Transport: memory, records are not sent')
    else:
        console.info(f'Transport: otlp to {config.server.traces_endpoint}')
