"""List providers command."""

import click
from rich.console import Console
from rich.table import Table

from ...helpers import echo_json, handle_errors, json_option, load_project
from ....providers.registry import resolve_provider_statuses


@click.command()
@json_option
@handle_errors
def list_providers(as_json):
    """List configured providers and whether their command is installed"""
    project = load_project()
    statuses = resolve_provider_statuses(project.config)

    if as_json:
        echo_json({"status": "ok", "providers": [vars(s) for s in statuses]})
        return

    console = Console()
    if not statuses:
        console.print("[yellow]No providers configured.[/yellow]")
        console.print("Add providers to agentsquad.config.json or run 'agentsquad init --force'.")
        return

    table = Table(title="Configured Providers")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Command", style="white")
    table.add_column("Mode", style="green")
    table.add_column("Transport", style="green")
    table.add_column("Available")

    for status in statuses:
        available = "[green]yes[/green]" if status.available else "[red]missing[/red]"
        table.add_row(status.id, status.command, status.mode, status.transport, available)

    console.print(table)
