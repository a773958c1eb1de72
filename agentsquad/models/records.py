"""Observational record models: events, activity logs and artifacts."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ..core.ids import utcnow


class Event(BaseModel):
    """Structured domain event such as ``task.status_changed``."""
    id: str
    session_id: str
    agent_id: Optional[str] = None
    type: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)


class LogLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityLogEntry(BaseModel):
    """Free-text activity line for humans and agents."""
    id: str
    session_id: str
    agent_id: Optional[str] = None
    level: LogLevel = LogLevel.INFO
    kind: str = "activity"
    message: str
    details: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=utcnow)


class ArtifactKind(str, Enum):
    FILE = "file"
    PLAN = "plan"
    REPORT = "report"
    PATCH = "patch"
    LOG = "log"
    OTHER = "other"


class Artifact(BaseModel):
    """A file or document produced while working on a task."""
    id: str
    session_id: str
    agent_id: Optional[str] = None
    task_id: Optional[str] = None
    kind: ArtifactKind = ArtifactKind.OTHER
    path: str
    title: Optional[str] = None
    summary: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
