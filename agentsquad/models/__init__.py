"""Models for agentsquad."""

from .agent import Agent, AgentKind, AgentRun, AgentRunStatus, AgentStatus, ProviderMode
from .config import (
    AgentsquadConfig,
    OrchestratorSettings,
    ProviderConfig,
    ProviderProfile,
    TaskSettings,
    Transport,
    WorkingDirectoryMode,
)
from .message import DeliveryOutcome, DeliveryStatus, Message, MessageKind, SenderType
from .records import ActivityLogEntry, Artifact, ArtifactKind, Event, LogLevel
from .session import Session, SessionStatus
from .task import (
    AgentSummary,
    DependencyType,
    DependencyView,
    Feedback,
    FinalizationOutcome,
    FinalizationResult,
    Task,
    TaskContext,
    TaskDependency,
    TaskPriority,
    TaskStatus,
    TaskStatusHistoryEntry,
    TaskType,
    TaskView,
    WaitState,
)

__all__ = [
    'Agent',
    'AgentKind',
    'AgentRun',
    'AgentRunStatus',
    'AgentStatus',
    'ProviderMode',
    'AgentsquadConfig',
    'OrchestratorSettings',
    'ProviderConfig',
    'ProviderProfile',
    'TaskSettings',
    'Transport',
    'WorkingDirectoryMode',
    'DeliveryOutcome',
    'DeliveryStatus',
    'Message',
    'MessageKind',
    'SenderType',
    'ActivityLogEntry',
    'Artifact',
    'ArtifactKind',
    'Event',
    'LogLevel',
    'Session',
    'SessionStatus',
    'AgentSummary',
    'DependencyType',
    'DependencyView',
    'Feedback',
    'FinalizationOutcome',
    'FinalizationResult',
    'Task',
    'TaskContext',
    'TaskDependency',
    'TaskPriority',
    'TaskStatus',
    'TaskStatusHistoryEntry',
    'TaskType',
    'TaskView',
    'WaitState',
]
