"""Inbox command."""

import click

from ...helpers import echo_json, format_time, handle_errors, json_option, load_project, session_option
from ....core.context import CallerContext


@click.command()
@click.option('--agent', '-a', 'agent_ref', help='Agent id or name (defaults to $AGENTSQUAD_AGENT_ID)')
@click.option('--keep-unread', is_flag=True, help='Do not mark the messages as read')
@session_option
@json_option
@handle_errors
def inbox(agent_ref, keep_unread, session, as_json):
    """Read the messages queued for an agent"""
    project = load_project()
    caller = CallerContext.from_env(agent_ref=agent_ref, session_id=session)
    messages = project.messages.read_inbox(
        project.session_id(session, caller),
        caller.require_agent_id(),
        mark_read=not keep_unread,
    )

    if as_json:
        echo_json({"status": "ok", "messages": messages})
        return

    if not messages:
        click.echo("Inbox is empty.")
        return

    for message in messages:
        click.echo(f"\n[{message.kind.value}] {message.id} from {message.from_agent_id or 'user'} "
                   f"at {format_time(message.created_at)}")
        click.echo("-" * 40)
        click.echo(message.text)
