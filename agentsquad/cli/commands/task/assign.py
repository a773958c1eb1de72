"""Assign task command."""

import click

from ...helpers import console_reporter, echo_json, handle_errors, json_option, load_project, session_option
from ....core.context import CallerContext
from ....models.task import TaskPriority, TaskType


@click.command()
@click.option('--agent', '-a', 'agent_ref', required=True, help='Agent id or name receiving the task')
@click.option('--task', '-t', 'description', required=True, help='Task description')
@click.option('--title', help='Task title (defaults to the description)')
@click.option('--goal', '-g', help='Project goal for the task (defaults to the agent goal)')
@click.option('--type', 'task_type', type=click.Choice([t.value for t in TaskType]),
              help='Task type (inferred from the agent role by default)')
@click.option('--priority', type=click.Choice([p.value for p in TaskPriority]), default=TaskPriority.MEDIUM.value,
              show_default=True, help='Task priority')
@click.option('--acceptance-criteria', help='What must hold for the task to be accepted')
@click.option('--depends-on', multiple=True, help='Task id this task is blocked by (repeatable)')
@session_option
@json_option
@handle_errors
def assign(agent_ref, description, title, goal, task_type, priority, acceptance_criteria, depends_on,
           session, as_json):
    """Assign a task to an agent"""
    project = load_project()
    caller = CallerContext.from_env(session_id=session)
    task = project.tasks.assign_task(
        project.session_id(session, caller),
        agent_ref,
        description,
        title=title,
        goal=goal,
        priority=TaskPriority(priority),
        task_type=TaskType(task_type) if task_type else None,
        acceptance_criteria=acceptance_criteria,
        depends_on=list(depends_on),
        created_by_agent_id=caller.agent_id,
        reporter=None if as_json else console_reporter,
    )

    if as_json:
        echo_json({"status": "ok", "task": task})
        return

    click.echo(f"Assigned {task.id} to {task.agent_id} [{task.status.value}]")
