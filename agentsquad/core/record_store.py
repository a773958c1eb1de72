"""Append-only record store backing every agentsquad session.

Each session owns a directory of JSON Lines files, one per collection.
Snapshot collections are an event-sourced log of full entity records;
readers fold the log to the latest record per id. Record collections are
plain ordered logs and are never projected.

The store offers per-append atomicity only. Concurrent writers appending
new versions of the same entity can lose updates (last write wins), which
is accepted. Callers needing a read-then-write critical section use
``session_lock``.
"""
import fcntl
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Union

from pydantic import BaseModel

from .constants import (
    AGENT_INBOX_FILE,
    AGENT_OUTBOX_FILE,
    AGENT_PID_FILE,
    AGENT_SNAPSHOT_FILE,
    AGENT_STDERR_FILE,
    AGENT_STDOUT_FILE,
    AGENTS_DIR_NAME,
    RECORD_COLLECTIONS,
    SENTINEL_KEY,
    SESSION_LOCK_FILE_NAME,
    SESSIONS_DIR_NAME,
    SNAPSHOT_COLLECTIONS,
    WORKSPACE_DIR_NAME,
)
from ..utils.jsonl import append_jsonl, read_jsonl, write_json

logger = logging.getLogger(__name__)

Document = Union[BaseModel, dict]


@dataclass
class AgentWorkspace:
    """Private files of one agent."""
    root: Path
    stdout_path: Path
    stderr_path: Path
    inbox_path: Path
    outbox_path: Path
    pid_path: Path
    agent_path: Path


def project_latest_by_id(rows: list[dict]) -> list[dict]:
    """Fold a snapshot log to the latest record per id.

    Ids keep the position of their first appearance. Rows without an id
    are not projected and come first, in append order. Sentinel rows are
    dropped.
    """
    ordered = []
    by_id: dict[str, dict] = {}

    for row in rows:
        if not isinstance(row, dict) or row.get(SENTINEL_KEY):
            continue
        if not row.get("id"):
            ordered.append(row)
            continue
        by_id[row["id"]] = row

    return ordered + list(by_id.values())


def _to_document(value: Document) -> dict:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return dict(value)


class RecordStore:
    """Manages the per-session JSON Lines collections of a project."""

    def __init__(self, project_root: Path):
        """Initialize the record store.

        Args:
            project_root: Directory holding the ``.agentsquad`` workspace
        """
        self.project_root = Path(project_root)
        self.workspace_root = self.project_root / WORKSPACE_DIR_NAME
        self.sessions_root = self.workspace_root / SESSIONS_DIR_NAME

    def session_dir(self, session_id: str) -> Path:
        return self.sessions_root / session_id

    def agents_root(self, session_id: str) -> Path:
        return self.session_dir(session_id) / AGENTS_DIR_NAME

    def _collection_path(self, session_id: str, collection: str, snapshot: bool) -> Path:
        files = SNAPSHOT_COLLECTIONS if snapshot else RECORD_COLLECTIONS
        if collection not in files:
            kind = "snapshot" if snapshot else "record"
            raise ValueError(f"Unknown {kind} collection: {collection}")
        return self.session_dir(session_id) / files[collection]

    def ensure_workspace(self, session_id: str) -> Path:
        """Ensure the workspace and session directories exist."""
        session_dir = self.session_dir(session_id)
        self.agents_root(session_id).mkdir(parents=True, exist_ok=True)
        return session_dir

    def ensure_session_store(self, session_id: str) -> None:
        """Create every collection file of a session with a sentinel line.

        After this call a collection that exists and one that was never
        written read the same way: empty.
        """
        session_dir = self.ensure_workspace(session_id)
        sentinel = {SENTINEL_KEY: True, "timestamp": datetime.fromtimestamp(0, timezone.utc).isoformat()}
        for file_name in list(SNAPSHOT_COLLECTIONS.values()) + list(RECORD_COLLECTIONS.values()):
            path = session_dir / file_name
            if not path.exists():
                append_jsonl(path, sentinel)

    def agent_workspace(self, session_id: str, agent_id: str, create: bool = True) -> AgentWorkspace:
        """Get the private file paths of an agent.

        Args:
            session_id: Owning session
            agent_id: Agent whose files to locate
            create: Create the agent directory if missing
        """
        root = self.agents_root(session_id) / agent_id
        if create:
            root.mkdir(parents=True, exist_ok=True)
        return AgentWorkspace(
            root=root,
            stdout_path=root / AGENT_STDOUT_FILE,
            stderr_path=root / AGENT_STDERR_FILE,
            inbox_path=root / AGENT_INBOX_FILE,
            outbox_path=root / AGENT_OUTBOX_FILE,
            pid_path=root / AGENT_PID_FILE,
            agent_path=root / AGENT_SNAPSHOT_FILE,
        )

    def append_snapshot(self, session_id: str, collection: str, value: Document) -> dict:
        """Append a full entity record to a snapshot collection.

        Args:
            session_id: Owning session
            collection: One of the snapshot collection names
            value: Model or dict carrying an ``id``

        Returns:
            The document as written
        """
        path = self._collection_path(session_id, collection, snapshot=True)
        self.ensure_session_store(session_id)
        document = _to_document(value)
        append_jsonl(path, document)
        logger.debug(f"Appended {collection} snapshot {document.get('id')} in session {session_id}")
        return document

    def save_agent(self, session_id: str, agent: Document) -> dict:
        """Append an agent snapshot and mirror it into the agent's own directory."""
        document = self.append_snapshot(session_id, "agents", agent)
        write_json(self.agent_workspace(session_id, document["id"]).agent_path, document)
        return document

    def read_snapshots(self, session_id: str, collection: str) -> list[dict]:
        """Read the latest record per id of a snapshot collection."""
        path = self._collection_path(session_id, collection, snapshot=True)
        return project_latest_by_id(read_jsonl(path))

    def append_record(self, session_id: str, collection: str, value: Document) -> dict:
        """Append a record to a pure append-only collection."""
        path = self._collection_path(session_id, collection, snapshot=False)
        self.ensure_session_store(session_id)
        document = _to_document(value)
        append_jsonl(path, document)
        return document

    def read_records(self, session_id: str, collection: str) -> list[dict]:
        """Read every record of an append-only collection in append order."""
        path = self._collection_path(session_id, collection, snapshot=False)
        return [
            row for row in read_jsonl(path)
            if isinstance(row, dict) and not row.get(SENTINEL_KEY)
        ]

    def read_session(self, session_id: str) -> Optional[dict]:
        """Get the latest session record, or None if never written."""
        rows = self.read_snapshots(session_id, "session")
        return rows[-1] if rows else None

    def list_sessions(self) -> list[dict]:
        """List session records, most recently updated first."""
        if not self.sessions_root.exists():
            return []

        sessions = []
        for entry in sorted(self.sessions_root.iterdir()):
            if not entry.is_dir():
                continue
            session = self.read_session(entry.name)
            if session:
                sessions.append(session)

        sessions.sort(key=lambda s: s.get("updated_at") or s.get("created_at") or "", reverse=True)
        return sessions

    def list_session_ids(self) -> list[str]:
        """List the ids of every session directory on disk."""
        if not self.sessions_root.exists():
            return []
        return sorted(entry.name for entry in self.sessions_root.iterdir() if entry.is_dir())

    @contextmanager
    def session_lock(self, session_id: str) -> Iterator[None]:
        """Hold an exclusive advisory lock on a session.

        Serializes read-then-write sequences between processes on the
        same machine.
        """
        lock_path = self.ensure_workspace(session_id) / SESSION_LOCK_FILE_NAME
        with open(lock_path, "a+") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
