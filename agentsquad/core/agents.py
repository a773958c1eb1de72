"""Agent lifecycle: spawn, lookup with liveness reconciliation, stop."""
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..models.agent import Agent, AgentKind, AgentRun, AgentRunStatus, AgentStatus, ProviderMode
from ..models.config import AgentsquadConfig, ProviderConfig
from ..models.session import Session, SessionStatus
from ..models.task import TaskPriority, TaskType
from ..providers.registry import ProviderRegistry, merge_provider_config
from ..services.exceptions import AgentNotRunningError
from .agent_naming import build_agent_id, generate_agent_name, infer_task_type, resolve_agent_reference
from .constants import ENV_WORKSPACE_ROOT
from .events import EventLog
from .ids import create_id, utcnow
from .process_manager import is_pid_alive, read_pid, start_detached_process, stop_pid
from .record_store import AgentWorkspace, RecordStore
from .tasks import TaskEngine

logger = logging.getLogger(__name__)


@dataclass
class AgentStopResult:
    agent: Agent
    stopped: bool
    message: str


def parse_env_entries(entries: Optional[Iterable[str]]) -> Dict[str, str]:
    """Turn ``KEY=VALUE`` strings into a dict, skipping malformed entries."""
    env: Dict[str, str] = {}
    for entry in entries or []:
        key, sep, value = entry.partition("=")
        if not key or not sep:
            continue
        env[key] = value
    return env


class AgentManager:
    """Creates agents and reconciles their recorded state with the OS."""

    def __init__(self, store: RecordStore, config: AgentsquadConfig, tasks: TaskEngine,
                 events: Optional[EventLog] = None, registry: Optional[ProviderRegistry] = None):
        self.store = store
        self.config = config
        self.tasks = tasks
        self.events = events or tasks.events
        self.registry = registry or ProviderRegistry()

    def _load_agents(self, session_id: str) -> List[Agent]:
        agents = [Agent.model_validate(row) for row in self.store.read_snapshots(session_id, "agents")]
        return sorted(agents, key=lambda a: a.created_at)

    def _allocate_agent_id(self, session_id: str, name: str, role: str) -> str:
        taken = {agent.id for agent in self._load_agents(session_id)}
        index = 0
        while True:
            candidate = build_agent_id(name, role, index)
            if candidate not in taken:
                return candidate
            index += 1

    def save(self, agent: Agent, **changes) -> Agent:
        """Persist a new version of an agent with ``changes`` applied."""
        updated = agent.model_copy(update={**changes, "updated_at": utcnow()})
        self.store.save_agent(updated.session_id, updated)
        return updated

    def ensure_session(self, session_id: str, provider_id: str, workdir: str,
                       goal: Optional[str] = None) -> Session:
        """Create the session record on first use, otherwise touch it."""
        existing = self.store.read_session(session_id)
        if existing:
            session = Session.model_validate(existing).model_copy(update={"updated_at": utcnow()})
        else:
            session = Session(
                id=session_id,
                title=session_id,
                goal=goal or f"Session {session_id}",
                status=SessionStatus.ACTIVE,
                provider_id=provider_id,
                root_workdir=workdir,
            )
        self.store.append_snapshot(session_id, "session", session)
        return session

    def record_run(self, agent: Agent, provider_config: ProviderConfig, status: AgentRunStatus,
                   args: Optional[List[str]] = None, pid: Optional[int] = None,
                   exit_code: Optional[int] = None, exit_signal: Optional[str] = None,
                   started_at: Optional[datetime] = None, ended_at: Optional[datetime] = None,
                   run_id: Optional[str] = None) -> AgentRun:
        """Append an ``agent_runs`` snapshot for one provider launch."""
        workspace = self.store.agent_workspace(agent.session_id, agent.id)
        run = AgentRun(
            id=run_id or create_id("run"),
            agent_id=agent.id,
            session_id=agent.session_id,
            provider_id=agent.provider_id,
            command=provider_config.command,
            args=list(provider_config.args if args is None else args),
            pid=pid,
            exit_code=exit_code,
            exit_signal=exit_signal,
            status=status,
            stdout_path=str(workspace.stdout_path),
            stderr_path=str(workspace.stderr_path),
            started_at=started_at or utcnow(),
            ended_at=ended_at,
        )
        self.store.append_snapshot(agent.session_id, "agent_runs", run)
        return run

    def list_runs(self, session_id: str, agent_id: Optional[str] = None) -> List[AgentRun]:
        runs = [AgentRun.model_validate(row) for row in self.store.read_snapshots(session_id, "agent_runs")]
        if agent_id:
            runs = [r for r in runs if r.agent_id == agent_id]
        return runs

    def spawn(self, session_id: str, provider_id: str, name: Optional[str] = None,
              role: Optional[str] = None, kind: AgentKind = AgentKind.WORKER,
              profile: Optional[str] = None, workdir: Optional[str] = None,
              goal: Optional[str] = None, env: Optional[Dict[str, str]] = None,
              parent_agent_id: Optional[str] = None,
              created_by_agent_id: Optional[str] = None,
              system_prompt: Optional[str] = None,
              task: Optional[str] = None, task_title: Optional[str] = None,
              task_type: Optional[TaskType] = None,
              priority: TaskPriority = TaskPriority.MEDIUM,
              acceptance_criteria: Optional[str] = None,
              depends_on: Optional[Iterable[str]] = None) -> Agent:
        """Register a new agent and, for detached providers, start its process.

        Args:
            session_id: Session the agent joins
            provider_id: Configured provider the agent runs on
            name: Display name; one is picked from the name pool when omitted
            role: Free-form role such as ``developer`` or ``tester``
            kind: Manager or worker
            profile: Provider profile to layer over the provider settings
            workdir: Working directory, defaults to the project root
            goal: What the agent works towards
            env: Extra environment for the provider process
            parent_agent_id: Agent this one reports to
            created_by_agent_id: Agent that requested the spawn
            system_prompt: Instructions stored with the agent
            task: Description of an initial task to create and bind
            task_title: Title of the initial task
            task_type: Type of the initial task, inferred from the role when omitted
            priority: Priority of the initial task
            acceptance_criteria: Acceptance criteria of the initial task
            depends_on: Task ids the initial task is blocked by

        Returns:
            The agent as stored after spawning

        Raises:
            ProviderUnknownError: If the provider or its adapter is unknown
            ProfileUnknownError: If the profile is unknown
        """
        provider_config = merge_provider_config(self.config, provider_id, profile)
        adapter = self.registry.resolve(provider_id, provider_config)

        role = role or "worker"
        name = name or generate_agent_name()
        resolved_workdir = str(Path(workdir or self.store.project_root).resolve())
        agent_env = dict(env or {})
        agent_env.setdefault(ENV_WORKSPACE_ROOT, str(self.store.project_root.resolve()))
        detached = provider_config.mode == ProviderMode.DETACHED

        self.ensure_session(session_id, provider_id, resolved_workdir, goal)

        with self.store.session_lock(session_id):
            agent = Agent(
                id=self._allocate_agent_id(session_id, name, role),
                name=name,
                role=role,
                kind=kind,
                provider_id=provider_id,
                profile=profile,
                session_id=session_id,
                workdir=resolved_workdir,
                goal=goal or "Support the project goal",
                status=AgentStatus.STARTING if detached else AgentStatus.IDLE,
                mode=provider_config.mode,
                parent_agent_id=parent_agent_id,
                created_by_agent_id=created_by_agent_id,
                env=agent_env,
                system_prompt=system_prompt,
                launch_command=" ".join([provider_config.command, *provider_config.args]),
            )
            self.store.save_agent(session_id, agent)

        workspace = self.store.agent_workspace(session_id, agent.id)
        now = utcnow()
        run = self.record_run(
            agent, provider_config,
            status=AgentRunStatus.STARTING if detached else AgentRunStatus.COMPLETED,
            started_at=now,
            ended_at=None if detached else now,
        )

        if detached:
            invocation = adapter.create_spawn_invocation(agent, provider_config)
            pid = start_detached_process(
                invocation.command,
                invocation.args,
                cwd=invocation.cwd,
                env=invocation.env,
                stdout_path=workspace.stdout_path,
                stderr_path=workspace.stderr_path,
                pid_path=workspace.pid_path,
            )
            agent = self.save(agent, pid=pid, status=AgentStatus.RUNNING)
            self.record_run(
                agent, provider_config,
                status=AgentRunStatus.RUNNING,
                args=invocation.args,
                pid=pid,
                started_at=run.started_at,
                run_id=run.id,
            )

        if task:
            self.tasks.create_task(
                session_id,
                agent.id,
                description=task,
                title=task_title or task,
                goal=agent.goal,
                priority=priority,
                task_type=task_type or infer_task_type(role),
                acceptance_criteria=acceptance_criteria,
                created_by_agent_id=created_by_agent_id,
                dependencies=depends_on,
            )
            agent = self.get_record(session_id, agent.id)

        self.events.emit(session_id, "agent.spawned", agent.id, {
            "provider_id": agent.provider_id,
            "workdir": agent.workdir,
            "mode": agent.mode.value,
            "role": agent.role,
        })
        logger.info(f"Spawned agent {agent.id} on provider {provider_id}")
        return agent

    def get_record(self, session_id: str, agent_id: str) -> Agent:
        """Get the stored agent without liveness reconciliation."""
        return resolve_agent_reference(self._load_agents(session_id), agent_id)

    def hydrate_runtime(self, agent: Agent) -> Agent:
        """Reconcile a detached agent's status with its pid file.

        The result is for display only and is not persisted.
        """
        workspace = self.store.agent_workspace(agent.session_id, agent.id, create=False)
        pid_meta = read_pid(workspace.pid_path)

        if pid_meta and is_pid_alive(pid_meta.get("pid")):
            status = AgentStatus.RUNNING if agent.mode == ProviderMode.DETACHED else agent.status
            return agent.model_copy(update={"pid": pid_meta["pid"], "status": status})

        if agent.mode == ProviderMode.DETACHED and agent.status == AgentStatus.RUNNING:
            return agent.model_copy(update={"status": AgentStatus.STOPPED})

        return agent

    def list_agents(self, session_id: str) -> List[Agent]:
        """List the agents of a session in creation order with live status."""
        return [self.hydrate_runtime(agent) for agent in self._load_agents(session_id)]

    def resolve_agent(self, session_id: str, agent_ref: str) -> Agent:
        """Find an agent by id, or by name when the name is unique.

        Raises:
            AgentNotFoundError: If nothing matches
            AmbiguousAgentNameError: If several agents share the name
        """
        return resolve_agent_reference(self.list_agents(session_id), agent_ref)

    def show_agent(self, session_id: str, agent_ref: str) -> Agent:
        return self.resolve_agent(session_id, agent_ref)

    def workspace(self, agent: Agent) -> AgentWorkspace:
        return self.store.agent_workspace(agent.session_id, agent.id)

    def stop_agent(self, session_id: str, agent_ref: str) -> AgentStopResult:
        """Terminate a detached agent and mark it stopped.

        Raises:
            AgentNotRunningError: If the agent is not a detached process
        """
        agent = self.resolve_agent(session_id, agent_ref)
        if agent.mode != ProviderMode.DETACHED:
            raise AgentNotRunningError(f"{agent.id} is not a detached process.")

        result = stop_pid(self.workspace(agent).pid_path)
        agent = self.save(agent, status=AgentStatus.STOPPED)
        self.events.emit(session_id, "agent.stopped", agent.id, {"pid": result.pid})

        message = f"Stopped {agent.id}." if result.stopped else f"{agent.id} was already stopped."
        return AgentStopResult(agent=agent, stopped=result.stopped, message=message)

    def log_path(self, session_id: str, agent_ref: str, stderr: bool = False) -> Path:
        agent = self.resolve_agent(session_id, agent_ref)
        workspace = self.store.agent_workspace(session_id, agent.id, create=False)
        return workspace.stderr_path if stderr else workspace.stdout_path

    def read_logs(self, session_id: str, agent_ref: str, stderr: bool = False) -> str:
        """Get the captured output of an agent, or an empty string."""
        path = self.log_path(session_id, agent_ref, stderr=stderr)
        if not path.exists():
            return ""
        return path.read_text(encoding="utf-8", errors="replace")
