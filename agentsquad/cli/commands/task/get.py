"""Get current task command."""

import click

from ...helpers import echo_json, handle_errors, json_option, load_project, session_option
from ....core.context import CallerContext


@click.command()
@click.option('--agent', '-a', 'agent_ref', help='Agent id or name (defaults to $AGENTSQUAD_AGENT_ID)')
@click.option('--wait/--no-wait', default=None,
              help='Block until the task is unblocked (default: wait when called by an agent)')
@click.option('--timeout', type=float, help='Give up waiting after this many seconds')
@session_option
@json_option
@handle_errors
def get(agent_ref, wait, timeout, session, as_json):
    """Get the current task of an agent"""
    project = load_project()
    caller = CallerContext.from_env(agent_ref=agent_ref, session_id=session)
    context = project.tasks.get_task_context(caller, project.session_id(session, caller), wait=wait, timeout=timeout)

    if as_json:
        echo_json({"status": "ok", "agent": context.agent, "task": context.task})
        return

    agent, task = context.agent, context.task
    if task is None:
        click.echo(f"{agent.id} ({agent.role}) has no active task.")
        return

    click.echo(f"{agent.id} ({agent.role})")
    click.echo(f"Goal: {agent.goal}")
    click.echo(f"Task: {task.id} {task.title}")
    click.echo(f"Type: {task.task_type.value}")
    click.echo(f"Status: {task.status.value}")
    click.echo(f"Details: {task.description}")
    if task.acceptance_criteria:
        click.echo(f"Acceptance criteria: {task.acceptance_criteria}")
    if task.blocking_reason:
        click.echo(f"Feedback: {task.blocking_reason}")
    for dependency in task.dependencies:
        status = dependency.depends_on_task_status.value if dependency.depends_on_task_status else "missing"
        click.echo(f"Depends on: {dependency.depends_on_task_id} "
                   f"({dependency.dependency_type.value}, {status})")
    if task.available_agents:
        click.echo("Team:")
        for teammate in task.available_agents:
            click.echo(f"  - {teammate.id} ({teammate.role}) {teammate.status}")
