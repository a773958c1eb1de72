"""Agent command group and sub-commands."""

import click

from .run_agent import run_agent
from .list_agents import list_agents
from .show import show
from .stop import stop

__all__ = [
    'agent',
    'run_agent',
    'list_agents',
    'show',
    'stop',
]


@click.group()
def agent():
    """Manage agents"""
    pass


# Register all sub-commands
agent.add_command(run_agent, name='run')
agent.add_command(list_agents, name='list')
agent.add_command(show)
agent.add_command(stop)
