"""Starting an objective: session, manager agent and its first instruction."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..models.agent import Agent, AgentKind
from ..models.message import Message, MessageKind
from ..models.session import Session, SessionStatus
from ..models.task import TaskType
from .agents import AgentManager
from .constants import MANAGER_AGENT_NAME, MANAGER_TASK_DESCRIPTION
from .events import Reporter
from .ids import utcnow
from .messages import MessageService

logger = logging.getLogger(__name__)


def build_manager_prompt(goal: str) -> str:
    """Instructions handed to the manager agent of an objective."""
    return "\n".join([
        "You are the project manager and planner for this objective.",
        "You must create a high-level plan, identify the roles needed, and coordinate the project "
        "using the agentsquad CLI.",
        "You can create worker agents with "
        "`agentsquad agent run --provider <vibe|codex|claude> --role <role> --goal <goal> --task <task>`.",
        "Each worker can recover its current assignment with `agentsquad task get`.",
        "You can communicate between agents with `agentsquad message send --to <agent-id> --text <message>`.",
        "Workers declare dependencies with `agentsquad task assign --depends-on <task-id>` and report "
        "completion with `agentsquad task notify-done`.",
        "You should break the objective into concrete tasks, assign roles, and drive the project to completion.",
        "When you create a worker, give it a focused role and a crisp task.",
        "If you need a specific model family, you can choose between `vibe`, `codex`, and `claude`.",
        "",
        f"User objective: {goal}",
    ])


@dataclass
class ObjectiveResult:
    session_id: str
    goal: str
    manager: Agent
    message: Message

    @property
    def summary(self) -> str:
        return f"Started {self.manager.id} with {self.manager.provider_id} for objective: {self.goal}"


class Orchestrator:
    """Bootstraps a session around a manager agent."""

    def __init__(self, agents: AgentManager, messages: MessageService):
        self.agents = agents
        self.messages = messages
        self.store = agents.store
        self.config = agents.config

    def _write_session(self, session: Session) -> Session:
        self.store.append_snapshot(session.id, "session", session)
        return session

    def execute_objective(self, goal: str, session_id: Optional[str] = None,
                          provider_id: Optional[str] = None, workdir: Optional[str] = None,
                          title: Optional[str] = None,
                          reporter: Optional[Reporter] = None) -> ObjectiveResult:
        """Start work on an objective.

        Args:
            goal: What the user wants done
            session_id: Session to use, defaults to the configured one
            provider_id: Provider of the manager, defaults to the orchestrator's
            workdir: Root working directory, defaults to the project root
            title: Session title, defaults to the start of the goal
            reporter: Receives delivery activity as it happens

        Returns:
            The manager agent and the instruction message sent to it
        """
        session_id = session_id or self.config.default_session
        provider_id = provider_id or self.config.orchestrator.provider
        root_workdir = str(Path(workdir or self.store.project_root).resolve())

        existing = self.store.read_session(session_id)
        if existing:
            session = Session.model_validate(existing).model_copy(update={
                "title": title or goal[:80],
                "goal": goal,
                "status": SessionStatus.PLANNING,
                "provider_id": provider_id,
                "root_workdir": root_workdir,
                "updated_at": utcnow(),
            })
        else:
            session = Session(
                id=session_id,
                title=title or goal[:80],
                goal=goal,
                status=SessionStatus.PLANNING,
                provider_id=provider_id,
                root_workdir=root_workdir,
            )
        self._write_session(session)

        prompt = build_manager_prompt(goal)
        manager = self.agents.spawn(
            session_id,
            provider_id,
            name=MANAGER_AGENT_NAME,
            role=self.config.orchestrator.manager_role_name,
            kind=AgentKind.MANAGER,
            workdir=root_workdir,
            goal=goal,
            system_prompt=prompt,
            task=MANAGER_TASK_DESCRIPTION,
            task_type=TaskType.PLANNING,
        )

        session = Session.model_validate(self.store.read_session(session_id))
        self._write_session(session.model_copy(update={
            "manager_agent_id": manager.id,
            "status": SessionStatus.ACTIVE,
            "updated_at": utcnow(),
        }))
        self.agents.events.emit(session_id, "session.objective_started", manager.id, {
            "goal": goal,
            "provider": provider_id,
        })
        logger.info(f"Objective started in session {session_id} with manager {manager.id}")

        message = self.messages.send_message(
            session_id,
            manager.id,
            text=prompt,
            kind=MessageKind.INSTRUCTION,
            reporter=reporter,
        )
        return ObjectiveResult(session_id=session_id, goal=goal, manager=manager, message=message)
