"""Events command."""

import click

from ..helpers import echo_json, format_time, handle_errors, json_option, load_project, print_table, session_option


@click.command()
@click.option('--agent', '-a', 'agent_ref', help='Only events of this agent (id or name)')
@click.option('--type', '-t', 'event_type', help='Event type, or a prefix ending in "." such as "task."')
@click.option('--limit', '-n', type=int, help='Show only the most recent events')
@click.option('--activity', is_flag=True, help='Show activity logs instead of events')
@session_option
@json_option
@handle_errors
def events(agent_ref, event_type, limit, activity, session, as_json):
    """List session events"""
    project = load_project()
    session_id = project.session_id(session)
    agent_id = project.agents.resolve_agent(session_id, agent_ref).id if agent_ref else None

    if activity:
        entries = project.events.list_activity(session_id, agent_id=agent_id, limit=limit)
        if as_json:
            echo_json({"status": "ok", "activity": entries})
            return
        if not entries:
            click.echo("No activity found.")
            return
        rows = [[format_time(e.created_at), e.level.value, e.kind, e.message] for e in entries]
        print_table(["TIME", "LEVEL", "KIND", "MESSAGE"], rows)
        return

    found = project.events.list_events(session_id, agent_id=agent_id, event_type=event_type, limit=limit)
    if as_json:
        echo_json({"status": "ok", "events": found})
        return
    if not found:
        click.echo("No events found.")
        return

    rows = [[format_time(e.timestamp), e.type, e.agent_id or ""] for e in found]
    print_table(["TIME", "TYPE", "AGENT"], rows)
