"""Run command: start an objective with a manager agent."""

import click

from ..helpers import console_reporter, echo_json, handle_errors, json_option, load_project, session_option


@click.command()
@click.argument('goal')
@click.option('--provider', '-p', help='Provider of the manager agent (defaults to the orchestrator provider)')
@click.option('--workdir', '-w', type=click.Path(file_okay=False), help='Root working directory')
@click.option('--title', help='Session title (defaults to the start of the goal)')
@session_option
@json_option
@handle_errors
def run(goal, provider, workdir, title, session, as_json):
    """Start an objective: spawn a manager agent and hand it the goal"""
    project = load_project()
    result = project.orchestrator.execute_objective(
        goal,
        session_id=project.session_id(session),
        provider_id=provider,
        workdir=workdir,
        title=title,
        reporter=None if as_json else console_reporter,
    )

    if as_json:
        echo_json({
            "status": "ok",
            "session_id": result.session_id,
            "goal": result.goal,
            "manager": result.manager,
            "message": result.message,
            "summary": result.summary,
        })
        return

    click.echo(result.summary)
    click.echo(f"Instruction {result.message.id}: {result.message.delivery_status.value}")
