"""List messages command."""

import click

from ...helpers import echo_json, format_time, handle_errors, json_option, load_project, print_table, session_option, truncate


@click.command()
@click.option('--agent', '-a', 'agent_ref', help='Filter by sender or recipient')
@session_option
@json_option
@handle_errors
def list_messages(agent_ref, session, as_json):
    """List persisted messages"""
    project = load_project()
    messages = project.messages.list_messages(project.session_id(session), agent_ref)

    if as_json:
        echo_json({"status": "ok", "messages": messages})
        return

    if not messages:
        click.echo("No messages found.")
        return

    rows = [
        [m.id, format_time(m.created_at), m.from_agent_id or "user", m.to_agent_id, m.kind.value,
         m.delivery_status.value, truncate(m.text, 40)]
        for m in messages
    ]
    print_table(["ID", "TIME", "FROM", "TO", "KIND", "STATUS", "TEXT"], rows)
