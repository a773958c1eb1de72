"""Provider command group."""

import click

from .list_providers import list_providers


@click.group()
def provider():
    """Inspect configured providers"""
    pass


provider.add_command(list_providers, name='list')
