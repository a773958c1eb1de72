"""Task command group and sub-commands."""

import click

from .get import get
from .list_tasks import list
from .assign import assign
from .update_status import update_status
from .notify_done import notify_done
from .history import history

__all__ = [
    'task',
    'get',
    'list',
    'assign',
    'update_status',
    'notify_done',
    'history',
]


@click.group()
def task():
    """Manage agent tasks"""
    pass


# Register all sub-commands
task.add_command(get)
task.add_command(list)
task.add_command(assign)
task.add_command(update_status)
task.add_command(notify_done)
task.add_command(history)
