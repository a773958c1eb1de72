"""List tasks command."""

import click

from ...helpers import echo_json, handle_errors, json_option, load_project, print_table, session_option, truncate
from ....models.task import TaskStatus

STATUS_COLORS = {
    TaskStatus.READY: 'green',
    TaskStatus.IN_PROGRESS: 'cyan',
    TaskStatus.IN_REVIEW: 'magenta',
    TaskStatus.WAITING: 'yellow',
    TaskStatus.BLOCKED: 'red',
    TaskStatus.FAILED: 'red',
    TaskStatus.DONE: 'white',
}


@click.command()
@click.option('--agent', '-a', 'agent_ref', help='Filter by agent id or name')
@click.option('--status', type=click.Choice([s.value for s in TaskStatus]), help='Filter by task status')
@session_option
@json_option
@handle_errors
def list(agent_ref, status, session, as_json):
    """List tasks in a session"""
    project = load_project()
    session_id = project.session_id(session)
    agent_id = project.agents.resolve_agent(session_id, agent_ref).id if agent_ref else None
    tasks = project.tasks.list_tasks(session_id, agent_id=agent_id, status=TaskStatus(status) if status else None)

    if as_json:
        echo_json({"status": "ok", "tasks": tasks})
        return

    if not tasks:
        click.echo("No tasks found.")
        return

    rows = []
    for task in tasks:
        rows.append([
            task.id,
            task.agent_id,
            click.style(task.status.value.upper(), fg=STATUS_COLORS.get(task.status, 'white')),
            task.task_type.value,
            ", ".join(d.depends_on_task_id for d in task.blocking_tasks),
            truncate(task.title),
        ])
    print_table(["ID", "AGENT", "STATUS", "TYPE", "WAITING ON", "TITLE"], rows)
