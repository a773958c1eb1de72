"""List agents command."""

import click

from ...helpers import echo_json, handle_errors, json_option, load_project, print_table, session_option
from ....models.agent import AgentStatus

STATUS_COLORS = {
    AgentStatus.RUNNING: 'green',
    AgentStatus.IDLE: 'cyan',
    AgentStatus.STARTING: 'yellow',
    AgentStatus.STOPPED: 'white',
    AgentStatus.FAILED: 'red',
}


@click.command()
@session_option
@json_option
@handle_errors
def list_agents(session, as_json):
    """List agents in a session"""
    project = load_project()
    agents = project.agents.list_agents(project.session_id(session))

    if as_json:
        echo_json({"status": "ok", "agents": agents})
        return

    if not agents:
        click.echo("No agents found.")
        return

    rows = []
    for agent in agents:
        rows.append([
            agent.id,
            agent.name,
            click.style(agent.status.value.upper(), fg=STATUS_COLORS.get(agent.status, 'white')),
            agent.provider_id,
            agent.role,
            agent.mode.value,
            agent.current_task_id or "",
        ])
    print_table(["ID", "NAME", "STATUS", "PROVIDER", "ROLE", "MODE", "TASK"], rows)
