"""Domain events and activity logs recorded in the session store."""
import logging
from typing import Any, Callable, Dict, List, Optional

from ..models.records import ActivityLogEntry, Event, LogLevel
from .ids import create_id
from .record_store import RecordStore

logger = logging.getLogger(__name__)

Reporter = Callable[[str, Optional[ActivityLogEntry]], None]


class EventLog:
    """Write-only journal of events and activity entries for a project.

    The engine never reads these back to make decisions; they are listed
    for humans and agents.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def emit(self, session_id: str, event_type: str, agent_id: Optional[str] = None,
             payload: Optional[Dict[str, Any]] = None) -> Event:
        """Append a structured event such as ``task.status_changed``."""
        event = Event(
            id=create_id("evt"),
            session_id=session_id,
            agent_id=agent_id,
            type=event_type,
            payload=payload or {},
        )
        self.store.append_record(session_id, "events", event)
        logger.debug(f"Event {event_type} in session {session_id}")
        return event

    def log_activity(self, session_id: str, message: str, agent_id: Optional[str] = None,
                     kind: str = "activity", level: LogLevel = LogLevel.INFO,
                     details: Optional[Dict[str, Any]] = None,
                     reporter: Optional[Reporter] = None) -> ActivityLogEntry:
        """Append a free-text activity entry.

        ``reporter`` receives the message and the entry once it is stored,
        so callers can echo activity to a console as it happens.
        """
        entry = ActivityLogEntry(
            id=create_id("log"),
            session_id=session_id,
            agent_id=agent_id,
            level=level,
            kind=kind,
            message=message,
            details=details,
        )
        self.store.append_record(session_id, "activity_logs", entry)
        if reporter is not None:
            reporter(entry.message, entry)
        return entry

    def list_events(self, session_id: str, agent_id: Optional[str] = None,
                    event_type: Optional[str] = None, limit: Optional[int] = None) -> List[Event]:
        """List events in append order.

        Args:
            session_id: Session to read
            agent_id: Only events attributed to this agent
            event_type: Exact type, or a prefix ending in ``.`` (``task.``)
            limit: Keep only the most recent entries

        Returns:
            Matching events, oldest first
        """
        events = [Event.model_validate(row) for row in self.store.read_records(session_id, "events")]
        if agent_id:
            events = [e for e in events if e.agent_id == agent_id]
        if event_type:
            if event_type.endswith("."):
                events = [e for e in events if e.type.startswith(event_type)]
            else:
                events = [e for e in events if e.type == event_type]
        if limit:
            events = events[-limit:]
        return events

    def list_activity(self, session_id: str, agent_id: Optional[str] = None,
                      limit: Optional[int] = None) -> List[ActivityLogEntry]:
        """List activity entries in append order, optionally for one agent."""
        entries = [
            ActivityLogEntry.model_validate(row)
            for row in self.store.read_records(session_id, "activity_logs")
        ]
        if agent_id:
            entries = [e for e in entries if e.agent_id == agent_id]
        if limit:
            entries = entries[-limit:]
        return entries
