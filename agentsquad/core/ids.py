"""Identifier and timestamp helpers."""
import uuid
from datetime import datetime, timezone


def create_id(prefix: str) -> str:
    """Create a short random id such as ``task-1a2b3c4d``."""
    return f"{prefix}-{str(uuid.uuid4())[:8]}"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
