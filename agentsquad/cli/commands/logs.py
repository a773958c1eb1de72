"""Logs command."""

import subprocess

import click

from ..helpers import handle_errors, load_project, session_option


@click.command()
@click.argument('agent_ref')
@click.option('--stderr', 'use_stderr', is_flag=True, help='Show stderr instead of stdout')
@click.option('--follow', '-f', is_flag=True, help='Follow log output')
@session_option
@handle_errors
def logs(agent_ref, use_stderr, follow, session):
    """Show the captured output of an agent"""
    project = load_project()
    session_id = project.session_id(session)
    log_file = project.agents.log_path(session_id, agent_ref, stderr=use_stderr)

    if follow:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        log_file.touch(exist_ok=True)
        try:
            subprocess.run(['tail', '-n', '50', '-f', str(log_file)], check=True)
        except KeyboardInterrupt:
            click.echo("\nStopped following logs.")
        return

    content = project.agents.read_logs(session_id, agent_ref, stderr=use_stderr)
    if not content:
        click.echo(f"No {'stderr' if use_stderr else 'stdout'} output recorded for {agent_ref}.")
        return
    click.echo(content, nl=not content.endswith("\n"))
