"""Registry of files and documents produced by agents."""
import logging
from pathlib import Path
from typing import List, Optional

from ..models.records import Artifact, ArtifactKind
from .events import EventLog
from .ids import create_id
from .record_store import RecordStore

logger = logging.getLogger(__name__)


class ArtifactRegistry:
    def __init__(self, store: RecordStore, events: Optional[EventLog] = None):
        self.store = store
        self.events = events or EventLog(store)

    def register(self, session_id: str, path: str, kind: ArtifactKind = ArtifactKind.OTHER,
                 agent_id: Optional[str] = None, task_id: Optional[str] = None,
                 title: Optional[str] = None, summary: Optional[str] = None) -> Artifact:
        """Record an artifact; relative paths are taken from the project root."""
        resolved = Path(path)
        if not resolved.is_absolute():
            resolved = self.store.project_root / resolved

        artifact = Artifact(
            id=create_id("artifact"),
            session_id=session_id,
            agent_id=agent_id,
            task_id=task_id,
            kind=kind,
            path=str(resolved),
            title=title or resolved.name,
            summary=summary,
        )
        self.store.append_snapshot(session_id, "artifacts", artifact)
        self.events.emit(session_id, "artifact.registered", agent_id, {
            "artifact_id": artifact.id,
            "task_id": task_id,
            "path": artifact.path,
        })
        logger.info(f"Registered artifact {artifact.id} at {artifact.path}")
        return artifact

    def list(self, session_id: str, agent_id: Optional[str] = None,
             task_id: Optional[str] = None) -> List[Artifact]:
        artifacts = [Artifact.model_validate(row) for row in self.store.read_snapshots(session_id, "artifacts")]
        if agent_id:
            artifacts = [a for a in artifacts if a.agent_id == agent_id]
        if task_id:
            artifacts = [a for a in artifacts if a.task_id == task_id]
        return sorted(artifacts, key=lambda a: a.created_at)
