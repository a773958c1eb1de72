"""Message command group."""

import click

from .send import send
from .list_messages import list_messages
from .inbox import inbox


@click.group()
def message():
    """Persist and deliver messages"""
    pass


message.add_command(send)
message.add_command(list_messages, name='list')
message.add_command(inbox)
