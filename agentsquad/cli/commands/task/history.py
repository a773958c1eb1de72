"""Task status history command."""

import click

from ...helpers import echo_json, format_time, handle_errors, json_option, load_project, print_table, session_option


@click.command()
@click.argument('task_id', required=False)
@session_option
@json_option
@handle_errors
def history(task_id, session, as_json):
    """Show task status transitions, oldest first"""
    project = load_project()
    session_id = project.session_id(session)
    if task_id:
        project.tasks.require_task(task_id, session_id)
    entries = project.tasks.list_status_history(session_id, task_id=task_id)

    if as_json:
        echo_json({"status": "ok", "history": entries})
        return

    if not entries:
        click.echo("No status changes recorded.")
        return

    rows = [
        [
            format_time(e.created_at),
            e.task_id,
            e.from_status.value if e.from_status else "-",
            e.to_status.value,
            e.changed_by_agent_id or "",
            e.note or "",
        ]
        for e in entries
    ]
    print_table(["TIME", "TASK", "FROM", "TO", "BY", "NOTE"], rows)
