"""Stop agent command."""

import click

from ...helpers import echo_json, handle_errors, json_option, load_project, session_option


@click.command()
@click.argument('agent_ref')
@session_option
@json_option
@handle_errors
def stop(agent_ref, session, as_json):
    """Stop a running detached agent"""
    project = load_project()
    result = project.agents.stop_agent(project.session_id(session), agent_ref)

    if as_json:
        echo_json({"status": "ok", "agent": result.agent, "stopped": result.stopped, "message": result.message})
        return

    click.echo(result.message)
