"""Send message command."""

import click

from ...helpers import console_reporter, echo_json, handle_errors, json_option, load_project, session_option
from ....core.context import CallerContext
from ....models.message import MessageKind


@click.command()
@click.option('--to', 'to_ref', required=True, help='Target agent id or name')
@click.option('--from', 'from_ref', help='Sending agent id or name (defaults to $AGENTSQUAD_AGENT_ID, else the user)')
@click.option('--text', help='Inline message text')
@click.option('--file', 'file_path', type=click.Path(exists=True, dir_okay=False), help='Read message text from a file')
@click.option('--kind', type=click.Choice([k.value for k in MessageKind]), default=MessageKind.INSTRUCTION.value,
              show_default=True, help='Message kind')
@click.option('--related-task-id', help='Task the message is about')
@click.option('--reply-to', 'reply_to_message_id', help='Message being answered')
@session_option
@json_option
@handle_errors
def send(to_ref, from_ref, text, file_path, kind, related_task_id, reply_to_message_id, session, as_json):
    """Send a message to an agent"""
    project = load_project()
    caller = CallerContext.from_env(agent_ref=from_ref, session_id=session)
    sent = project.messages.send_message(
        project.session_id(session, caller),
        to_ref,
        text=text,
        file_path=file_path,
        from_agent_ref=caller.agent_id,
        kind=MessageKind(kind),
        related_task_id=related_task_id,
        reply_to_message_id=reply_to_message_id,
        reporter=None if as_json else console_reporter,
    )

    if as_json:
        echo_json({"status": "ok", "message": sent})
        return

    click.echo(f"{sent.id} -> {sent.to_agent_id} ({sent.delivery_status.value})")
