"""Message and delivery models."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..core.ids import utcnow


class MessageKind(str, Enum):
    INSTRUCTION = "instruction"
    QUESTION = "question"
    UPDATE = "update"
    REVIEW = "review"
    HANDOFF = "handoff"
    NOTE = "note"
    SYSTEM = "system"


class SenderType(str, Enum):
    USER = "user"
    AGENT = "agent"
    SYSTEM = "system"


class DeliveryStatus(str, Enum):
    QUEUED = "queued"
    DELIVERED = "delivered"
    FAILED = "failed"
    READ = "read"


class DeliveryOutcome(BaseModel):
    """Result of running a oneshot provider for one message."""
    ok: bool
    code: Optional[int] = None
    signal: Optional[str] = None
    transport: str = "stdin"


class Message(BaseModel):
    """A message from a user or agent to an agent.

    Only the delivery fields change after creation, and they change by
    appending a new snapshot version.
    """
    id: str
    session_id: str
    thread_id: Optional[str] = None
    from_agent_id: Optional[str] = None  # None means the user
    from_type: SenderType = SenderType.USER
    to_agent_id: str
    kind: MessageKind = MessageKind.INSTRUCTION
    text: str
    delivery_status: DeliveryStatus = DeliveryStatus.QUEUED
    delivery: Optional[DeliveryOutcome] = None
    related_task_id: Optional[str] = None
    reply_to_message_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    delivered_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
