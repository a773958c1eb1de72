"""List artifacts command."""

import click

from ...helpers import echo_json, format_time, handle_errors, json_option, load_project, print_table, session_option


@click.command()
@click.option('--agent', '-a', 'agent_ref', help='Filter by producing agent')
@click.option('--task', 'task_id', help='Filter by task')
@session_option
@json_option
@handle_errors
def list_artifacts(agent_ref, task_id, session, as_json):
    """List registered artifacts"""
    project = load_project()
    session_id = project.session_id(session)
    agent_id = project.agents.resolve_agent(session_id, agent_ref).id if agent_ref else None
    artifacts = project.artifacts.list(session_id, agent_id=agent_id, task_id=task_id)

    if as_json:
        echo_json({"status": "ok", "artifacts": artifacts})
        return

    if not artifacts:
        click.echo("No artifacts found.")
        return

    rows = [
        [a.id, a.kind.value, a.agent_id or "", a.task_id or "", a.title or "", a.path, format_time(a.created_at)]
        for a in artifacts
    ]
    print_table(["ID", "KIND", "AGENT", "TASK", "TITLE", "PATH", "CREATED"], rows)
