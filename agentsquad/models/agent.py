"""Agent and agent run models."""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.ids import utcnow


class AgentKind(str, Enum):
    MANAGER = "manager"
    WORKER = "worker"


class AgentStatus(str, Enum):
    """Agent status enumeration."""
    CREATED = "created"
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    WAITING = "waiting"
    BLOCKED = "blocked"
    STOPPED = "stopped"
    COMPLETED = "completed"
    FAILED = "failed"


class ProviderMode(str, Enum):
    """How a provider runs: one process per message, or one long-lived process."""
    ONESHOT = "oneshot"
    DETACHED = "detached"


class Agent(BaseModel):
    """A tracked worker identity bound to a provider."""
    id: str
    name: str
    role: str = "worker"
    kind: AgentKind = AgentKind.WORKER
    provider_id: str
    profile: Optional[str] = None
    session_id: str
    workdir: str
    goal: str = "Support the project goal"
    status: AgentStatus = AgentStatus.CREATED
    mode: ProviderMode = ProviderMode.ONESHOT
    current_task_id: Optional[str] = None
    parent_agent_id: Optional[str] = None
    created_by_agent_id: Optional[str] = None
    env: Dict[str, str] = Field(default_factory=dict)
    system_prompt: Optional[str] = None
    launch_command: Optional[str] = None
    pid: Optional[int] = None
    last_heartbeat_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class AgentRunStatus(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    KILLED = "killed"


class AgentRun(BaseModel):
    """One launch of a provider process on behalf of an agent."""
    id: str
    agent_id: str
    session_id: str
    provider_id: str
    command: str
    args: List[str] = Field(default_factory=list)
    pid: Optional[int] = None
    exit_code: Optional[int] = None
    exit_signal: Optional[str] = None
    status: AgentRunStatus
    stdout_path: Optional[str] = None
    stderr_path: Optional[str] = None
    started_at: datetime = Field(default_factory=utcnow)
    ended_at: Optional[datetime] = None
