"""Session model for agentsquad objectives."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..core.ids import utcnow


class SessionStatus(str, Enum):
    """Lifecycle of one objective."""
    PLANNING = "planning"
    ACTIVE = "active"
    BLOCKED = "blocked"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Session(BaseModel):
    """Aggregates the agents and tasks working on one objective."""

    id: str
    title: str
    goal: str
    status: SessionStatus = SessionStatus.ACTIVE
    manager_agent_id: Optional[str] = None
    provider_id: str
    root_workdir: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
