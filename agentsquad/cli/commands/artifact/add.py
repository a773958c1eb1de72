"""Add artifact command."""

import click

from ...helpers import echo_json, handle_errors, json_option, load_project, session_option
from ....core.context import CallerContext
from ....models.records import ArtifactKind


@click.command()
@click.argument('path')
@click.option('--kind', type=click.Choice([k.value for k in ArtifactKind]), default=ArtifactKind.FILE.value,
              show_default=True, help='Artifact kind')
@click.option('--task', 'task_id', help='Task the artifact belongs to')
@click.option('--title', help='Short title (defaults to the file name)')
@click.option('--summary', help='What the artifact contains')
@click.option('--agent', '-a', 'agent_ref', help='Producing agent (defaults to $AGENTSQUAD_AGENT_ID)')
@session_option
@json_option
@handle_errors
def add(path, kind, task_id, title, summary, agent_ref, session, as_json):
    """Register an artifact"""
    project = load_project()
    caller = CallerContext.from_env(agent_ref=agent_ref, session_id=session)
    session_id = project.session_id(session, caller)
    agent_id = project.agents.resolve_agent(session_id, caller.agent_id).id if caller.agent_id else None

    artifact = project.artifacts.register(
        session_id,
        path,
        kind=ArtifactKind(kind),
        agent_id=agent_id,
        task_id=task_id,
        title=title,
        summary=summary,
    )

    if as_json:
        echo_json({"status": "ok", "artifact": artifact})
        return

    click.echo(f"Registered {artifact.id}: {artifact.path}")
