"""Notify done command."""

import sys

import click

from ...helpers import echo_json, handle_errors, json_option, load_project, session_option
from ....core.context import CallerContext
from ....models.task import FinalizationOutcome


@click.command(name='notify-done')
@click.argument('task_id', required=False)
@click.option('--note', help='History note')
@click.option('--result-summary', help='What was done')
@click.option('--timeout', type=float, help='Give up waiting after this many seconds')
@click.option('--agent', '-a', 'agent_ref', help='Agent submitting the task (defaults to $AGENTSQUAD_AGENT_ID)')
@session_option
@json_option
@handle_errors
def notify_done(task_id, note, result_summary, timeout, agent_ref, session, as_json):
    """Submit a task for validation and wait for the verdict

    Without TASK_ID the caller's current task is submitted. Exits with
    status 2 when validators request changes.
    """
    project = load_project()
    caller = CallerContext.from_env(agent_ref=agent_ref, session_id=session)
    session_id = project.session_id(session, caller)

    if not task_id:
        context = project.tasks.get_task_context(caller, session_id, wait=False)
        if context.task is None:
            click.echo(f"{context.agent.id} has no active task.", err=True)
            sys.exit(1)
        task_id = context.task.id

    changes = {} if result_summary is None else {"result_summary": result_summary}
    if not as_json:
        click.echo(f"⏳ Waiting for validation of {task_id}...")
    result = project.tasks.notify_task_done(
        task_id,
        session_id=session_id,
        changed_by_agent_id=caller.agent_id,
        note=note,
        timeout=timeout,
        **changes,
    )

    if as_json:
        echo_json({"status": "ok", **result.model_dump(mode="json")})
    elif result.outcome == FinalizationOutcome.FINALIZED:
        click.echo(f"✅ {task_id} finalized.")
    else:
        click.echo(f"🔁 Changes requested for {task_id}:")
        for feedback in result.feedback:
            click.echo(f"  - {feedback.agent_id}: {feedback.message}")

    if result.outcome == FinalizationOutcome.CHANGES_REQUESTED:
        sys.exit(2)
