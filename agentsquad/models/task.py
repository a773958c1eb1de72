"""Task, dependency and status history models."""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from ..core.ids import utcnow
from .agent import Agent


class TaskStatus(str, Enum):
    """Task status enumeration."""
    TODO = "todo"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    WAITING = "waiting"
    BLOCKED = "blocked"
    IN_REVIEW = "in_review"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TaskType(str, Enum):
    """Kind of work a task represents."""
    PLANNING = "planning"
    IMPLEMENTATION = "implementation"
    TESTING = "testing"
    REVIEW = "review"
    RESEARCH = "research"
    COORDINATION = "coordination"
    OTHER = "other"


class DependencyType(str, Enum):
    """Edge type between two tasks. Only BLOCKS affects scheduling."""
    BLOCKS = "blocks"
    RELATES_TO = "relates_to"
    DUPLICATES = "duplicates"
    PARENT_OF = "parent_of"


class WaitState(str, Enum):
    """Whether a task still waits on blocking dependencies."""
    READY = "ready"
    WAITING_FOR_DEPENDENCIES = "waiting_for_dependencies"


TERMINAL_TASK_STATUSES = frozenset({TaskStatus.DONE, TaskStatus.FAILED, TaskStatus.CANCELLED})
VALIDATOR_TASK_TYPES = frozenset({TaskType.TESTING, TaskType.REVIEW})
REJECTION_STATUSES = frozenset({TaskStatus.BLOCKED, TaskStatus.FAILED})

# Lower sorts first when picking an agent's current task
CURRENT_TASK_STATUS_ORDER = {
    TaskStatus.IN_PROGRESS: 0,
    TaskStatus.IN_REVIEW: 1,
    TaskStatus.READY: 2,
    TaskStatus.TODO: 3,
    TaskStatus.WAITING: 4,
    TaskStatus.BLOCKED: 5,
}


class Task(BaseModel):
    """A unit of work owned by exactly one agent."""
    id: str
    session_id: str
    agent_id: str
    parent_task_id: Optional[str] = None
    title: str
    goal: str
    description: str
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    task_type: TaskType = TaskType.OTHER
    scope_path: Optional[str] = None
    acceptance_criteria: Optional[str] = None
    blocking_reason: Optional[str] = None
    result_summary: Optional[str] = None
    created_by_agent_id: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TASK_STATUSES

    @property
    def is_validator(self) -> bool:
        return self.task_type in VALIDATOR_TASK_TYPES

    def to_record(self) -> "Task":
        """Strip view-only fields so the result can be persisted."""
        return Task.model_validate(self.model_dump(include=set(Task.model_fields)))


class TaskDependency(BaseModel):
    """Directed edge: ``task_id`` depends on ``depends_on_task_id``."""
    id: str
    session_id: str
    task_id: str
    depends_on_task_id: str
    dependency_type: DependencyType = DependencyType.BLOCKS
    created_at: datetime = Field(default_factory=utcnow)


class DependencyView(TaskDependency):
    """Dependency edge enriched with the upstream task's current state."""
    depends_on_task_title: Optional[str] = None
    depends_on_task_status: Optional[TaskStatus] = None
    depends_on_task_type: Optional[TaskType] = None
    depends_on_agent_id: Optional[str] = None


class AgentSummary(BaseModel):
    """Short description of a teammate shown alongside a task."""
    id: str
    name: str
    role: str
    status: str
    task_title: Optional[str] = None
    task_status: Optional[TaskStatus] = None


class TaskView(Task):
    """Task hydrated with its dependency state."""
    dependencies: List[DependencyView] = Field(default_factory=list)
    blocking_tasks: List[DependencyView] = Field(default_factory=list)
    wait_state: WaitState = WaitState.READY
    available_agents: List[AgentSummary] = Field(default_factory=list)


class TaskStatusHistoryEntry(BaseModel):
    """One recorded status transition. Never mutated."""
    id: str
    session_id: str
    task_id: str
    from_status: Optional[TaskStatus] = None
    to_status: TaskStatus
    changed_by_agent_id: Optional[str] = None
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class FinalizationOutcome(str, Enum):
    """Result of trying to finalize an in-review task."""
    FINALIZED = "finalized"
    CHANGES_REQUESTED = "changes_requested"
    WAITING = "waiting"
    NO_ACTION = "no_action"
    MISSING = "missing"


class Feedback(BaseModel):
    """Validator feedback carried back to an implementer."""
    task_id: str
    agent_id: str
    message: str


class FinalizationResult(BaseModel):
    """Outcome of a finalization attempt or a notify-done wait."""
    outcome: FinalizationOutcome
    task: Optional[TaskView] = None
    pending_dependent_task_ids: List[str] = Field(default_factory=list)
    feedback: List[Feedback] = Field(default_factory=list)


class TaskContext(BaseModel):
    """What an agent sees when it asks for its assignment."""
    agent: Agent
    task: Optional[TaskView] = None
