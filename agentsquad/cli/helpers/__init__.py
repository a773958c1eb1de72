"""CLI Helper Functions for agentsquad.

This module provides reusable helper functions for CLI commands so every
command builds its services, reports errors and prints output the same way.

The helpers provide:
- Project context with the record store and engine services
- Caller identity and session resolution
- Uniform error reporting with machine-readable codes
- JSON and table output
"""

import functools
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional

import click
from pydantic import BaseModel
from tabulate import tabulate

from agentsquad.core.agents import AgentManager
from agentsquad.core.artifacts import ArtifactRegistry
from agentsquad.core.constants import WORKSPACE_DIR_NAME
from agentsquad.core.context import CallerContext
from agentsquad.core.events import EventLog
from agentsquad.core.messages import MessageService
from agentsquad.core.orchestrator import Orchestrator
from agentsquad.core.record_store import RecordStore
from agentsquad.core.tasks import TaskEngine
from agentsquad.models.config import AgentsquadConfig
from agentsquad.models.records import ActivityLogEntry
from agentsquad.services.exceptions import AgentsquadError
from agentsquad.utils.config_manager import ConfigManager


@dataclass
class ProjectContext:
    """Services of one project, built once per invocation."""
    project_root: Path
    config: AgentsquadConfig
    store: RecordStore
    events: EventLog
    tasks: TaskEngine
    agents: AgentManager
    messages: MessageService
    artifacts: ArtifactRegistry
    orchestrator: Orchestrator

    def session_id(self, session: Optional[str] = None, caller: Optional[CallerContext] = None) -> str:
        """Pick the session: explicit option, then caller environment, then config."""
        if session:
            return session
        if caller is not None and caller.session_id:
            return caller.session_id
        return self.config.default_session


def get_project_context() -> tuple[Path, Path]:
    """Get project root and workspace directory.

    Returns:
        Tuple of (project_root, workspace_dir)

    Note:
        Does not check if workspace_dir exists - callers should validate as needed.
    """
    project_root = Path.cwd()
    workspace_dir = project_root / WORKSPACE_DIR_NAME
    return project_root, workspace_dir


def load_project(project_root: Optional[Path] = None) -> ProjectContext:
    """Load the configuration and wire up the engine services.

    Raises:
        ConfigNotFoundError: If the project has not been initialized
        ConfigInvalidError: If the configuration does not validate
    """
    if project_root is None:
        project_root, _ = get_project_context()

    config = ConfigManager(project_root).load_config()
    store = RecordStore(project_root)
    events = EventLog(store)
    tasks = TaskEngine(
        store,
        events,
        poll_interval_ms=config.tasks.poll_interval_ms,
        wait_timeout=config.tasks.wait_timeout_seconds,
    )
    agents = AgentManager(store, config, tasks, events)
    messages = MessageService(agents, events)
    return ProjectContext(
        project_root=project_root,
        config=config,
        store=store,
        events=events,
        tasks=tasks,
        agents=agents,
        messages=messages,
        artifacts=ArtifactRegistry(store, events),
        orchestrator=Orchestrator(agents, messages),
    )


def handle_errors(func: Callable) -> Callable:
    """Report engine errors as ``Error [CODE]: message`` and exit with their code."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AgentsquadError as e:
            click.echo(f"Error [{e.code}]: {e.message}", err=True)
            sys.exit(e.exit_code)
    return wrapper


def session_option(func: Callable) -> Callable:
    return click.option('--session', '-s', help='Session id (defaults to $AGENTSQUAD_SESSION_ID or the configured session)')(func)


def json_option(func: Callable) -> Callable:
    return click.option('--json', 'as_json', is_flag=True, help='Print machine-readable JSON')(func)


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value


def echo_json(value: Any) -> None:
    click.echo(json.dumps(to_jsonable(value), indent=2, default=str))


def console_reporter(message: str, entry: Optional[ActivityLogEntry] = None) -> None:
    """Echo activity lines as they happen."""
    click.echo(message)


def format_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


def truncate(text: Optional[str], max_length: int = 50) -> str:
    if not text:
        return ""
    line = text.split('\n')[0]
    if len(line) > max_length:
        line = line[:max_length - 3] + "..."
    return line


def print_table(headers: List[str], rows: List[List[Any]],
                tablefmt: str = "simple") -> None:
    """Print a table with project-wide defaults.

    Args:
        headers: Table headers
        rows: Table rows
        tablefmt: Table format (default: "simple")
    """
    table_str = tabulate(rows, headers=headers, tablefmt=tablefmt)
    click.echo(table_str)


__all__ = [
    'ProjectContext',
    'get_project_context',
    'load_project',
    'handle_errors',
    'session_option',
    'json_option',
    'to_jsonable',
    'echo_json',
    'console_reporter',
    'format_time',
    'truncate',
    'print_table',
]
