"""Artifact command group."""

import click

from .add import add
from .list_artifacts import list_artifacts


@click.group()
def artifact():
    """Record files produced by agents"""
    pass


artifact.add_command(add)
artifact.add_command(list_artifacts, name='list')
