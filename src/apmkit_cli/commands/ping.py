"""Send a test transaction to the configured APM server."""

from typing import Annotated

import typer

from apmkit_core.facade import Apm

from apmkit_cli.console.console import Console

app = typer.Typer()

console = Console()


@app.command()
def ping(
    name: Annotated[
        str,
        typer.Option(
            '--name',
            '-n',
            help='Name of the test transaction.',
        ),
    ] = 'apmkit ping',
):
    """Send a test transaction with one span through the configured agent."""
    agent = Apm.agent()

    console.action(
        f'Sending test transaction for [bold]{agent.app_name}[/bold] to {agent.server_url}'
    )

    session = agent.new_session()
    transaction = session.start_transaction(name, 'ping')
    span = session.start_span('ping', 'app.internal')
    session.stop_span(span)

    with console.spinner('Sending...'):
        delivered = session.stop_transaction()

    if not delivered:
        console.error(
            f'Transaction {transaction.id} could not be delivered with {agent.sink.__class__.__name__}.'
        )
        raise typer.Exit(1)

    console.success(
        f'Transaction {transaction.id} delivered in trace {transaction.trace_id}.'
    )
