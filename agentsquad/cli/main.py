"""Main CLI entry point for agentsquad."""

import logging

import click

from .commands.init import init
from .commands.run import run
from .commands.provider import provider
from .commands.agent import agent
from .commands.task import task
from .commands.message import message
from .commands.artifact import artifact
from .commands.events import events
from .commands.logs import logs
from .. import __version__


@click.group()
@click.version_option(__version__, prog_name='agentsquad')
@click.option('--verbose', '-v', is_flag=True, help='Log engine activity to stderr')
def cli(verbose):
    """agentsquad - Spawn and coordinate CLI agents across providers"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


# Register commands
cli.add_command(init)
cli.add_command(run)
cli.add_command(provider)
cli.add_command(agent)
cli.add_command(task)
cli.add_command(message)
cli.add_command(artifact)
cli.add_command(events)
cli.add_command(logs)


if __name__ == '__main__':
    cli()
