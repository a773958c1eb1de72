"""Update task status command."""

import click

from ...helpers import echo_json, handle_errors, json_option, load_project, session_option
from ....core.context import CallerContext
from ....models.task import TaskStatus


@click.command(name='update-status')
@click.argument('task_id')
@click.argument('status', type=click.Choice([s.value for s in TaskStatus]))
@click.option('--note', help='History note; also the feedback when blocking')
@click.option('--blocking-reason', help='Reason when blocked')
@click.option('--result-summary', help='Summary when completed')
@click.option('--agent', '-a', 'agent_ref', help='Agent performing the update (defaults to $AGENTSQUAD_AGENT_ID)')
@session_option
@json_option
@handle_errors
def update_status(task_id, status, note, blocking_reason, result_summary, agent_ref, session, as_json):
    """Update the status of a task"""
    project = load_project()
    caller = CallerContext.from_env(agent_ref=agent_ref, session_id=session)

    changes = {}
    if blocking_reason is not None:
        changes["blocking_reason"] = blocking_reason
    if result_summary is not None:
        changes["result_summary"] = result_summary

    task = project.tasks.update_task_status(
        task_id,
        TaskStatus(status),
        session_id=session or caller.session_id,
        changed_by_agent_id=caller.agent_id,
        note=note,
        **changes,
    )

    if as_json:
        echo_json({"status": "ok", "task": task})
        return

    click.echo(f"{task.id} -> {task.status.value}")
