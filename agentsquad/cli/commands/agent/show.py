"""Show agent command."""

import click

from ...helpers import echo_json, format_time, handle_errors, json_option, load_project, session_option


@click.command()
@click.argument('agent_ref')
@session_option
@json_option
@handle_errors
def show(agent_ref, session, as_json):
    """Show details for one agent"""
    project = load_project()
    session_id = project.session_id(session)
    agent = project.agents.show_agent(session_id, agent_ref)

    if as_json:
        echo_json({"status": "ok", "agent": agent})
        return

    click.echo(f"\n🤖 Agent {agent.id}")
    click.echo("=" * 60)
    click.echo(f"Name:      {agent.name}")
    click.echo(f"Role:      {agent.role} ({agent.kind.value})")
    click.echo(f"Status:    {agent.status.value}")
    click.echo(f"Provider:  {agent.provider_id}{f' [{agent.profile}]' if agent.profile else ''} ({agent.mode.value})")
    click.echo(f"Workdir:   {agent.workdir}")
    click.echo(f"Goal:      {agent.goal}")
    if agent.current_task_id:
        task = project.tasks.get_task(agent.current_task_id, session_id)
        label = f"{task.title} [{task.status.value}]" if task else "missing"
        click.echo(f"Task:      {agent.current_task_id} {label}")
    if agent.pid:
        click.echo(f"Pid:       {agent.pid}")
    if agent.parent_agent_id:
        click.echo(f"Parent:    {agent.parent_agent_id}")
    click.echo(f"Created:   {format_time(agent.created_at)}")
