"""Run agent command."""

import click

from ...helpers import echo_json, handle_errors, json_option, load_project, session_option
from ....core.agents import parse_env_entries
from ....core.context import CallerContext
from ....models.agent import AgentKind
from ....models.task import TaskPriority, TaskType


@click.command()
@click.option('--provider', '-p', help='Provider id (defaults to the orchestrator provider)')
@click.option('--role', '-r', default='worker', show_default=True, help='Agent role')
@click.option('--name', '-n', help='Human-friendly agent name')
@click.option('--kind', type=click.Choice([k.value for k in AgentKind]), default=AgentKind.WORKER.value,
              show_default=True, help='Agent kind')
@click.option('--goal', '-g', help='Goal assigned to the agent')
@click.option('--task', '-t', 'task_description', help='Initial task to assign')
@click.option('--task-title', help='Title of the initial task')
@click.option('--task-type', type=click.Choice([t.value for t in TaskType]),
              help='Type of the initial task (inferred from the role by default)')
@click.option('--priority', type=click.Choice([p.value for p in TaskPriority]), default=TaskPriority.MEDIUM.value,
              show_default=True, help='Priority of the initial task')
@click.option('--acceptance-criteria', help='Acceptance criteria of the initial task')
@click.option('--depends-on', multiple=True, help='Task id the initial task is blocked by (repeatable)')
@click.option('--workdir', '-w', type=click.Path(file_okay=False), help='Working directory')
@click.option('--profile', help='Provider profile')
@click.option('--env', '-e', 'env_pairs', multiple=True, help='Environment override as KEY=VALUE (repeatable)')
@session_option
@json_option
@handle_errors
def run_agent(provider, role, name, kind, goal, task_description, task_title, task_type, priority,
              acceptance_criteria, depends_on, workdir, profile, env_pairs, session, as_json):
    """Create an agent and start it if its provider is detached"""
    project = load_project()
    caller = CallerContext.from_env(session_id=session)
    session_id = project.session_id(session, caller)

    agent = project.agents.spawn(
        session_id,
        provider or project.config.orchestrator.provider,
        name=name,
        role=role,
        kind=AgentKind(kind),
        profile=profile,
        workdir=workdir,
        goal=goal,
        env=parse_env_entries(env_pairs),
        parent_agent_id=caller.agent_id,
        created_by_agent_id=caller.agent_id,
        task=task_description,
        task_title=task_title,
        task_type=TaskType(task_type) if task_type else None,
        priority=TaskPriority(priority),
        acceptance_criteria=acceptance_criteria,
        depends_on=list(depends_on),
    )

    if as_json:
        echo_json({"status": "ok", "agent": agent})
        return

    click.echo(f"Created {agent.id} ({agent.provider_id}, {agent.role})")
    if agent.pid:
        click.echo(f"   Started process {agent.pid}")
    if agent.current_task_id:
        click.echo(f"   Assigned task {agent.current_task_id}")
