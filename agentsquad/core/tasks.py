"""Task engine: status state machine, dependencies and finalization.

Every operation re-reads the record store, so the engine holds no state
between calls and many short-lived processes can drive the same session.
Blocking operations are polling loops that sleep between reads.
"""
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from ..models.agent import Agent
from ..models.task import (
    CURRENT_TASK_STATUS_ORDER,
    REJECTION_STATUSES,
    TERMINAL_TASK_STATUSES,
    VALIDATOR_TASK_TYPES,
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
from ..services.exceptions import (
    DependencyCycleError,
    InvalidStatusTransitionError,
    TaskNotFoundError,
    WaitTimeoutError,
)
from .agent_naming import infer_task_type, resolve_agent_reference
from .constants import DEFAULT_POLL_INTERVAL_MS, MIN_POLL_INTERVAL_MS
from .context import CallerContext
from .events import EventLog, Reporter
from .ids import create_id, utcnow
from .record_store import RecordStore

logger = logging.getLogger(__name__)

# Marks an optional field the caller did not pass, as opposed to None
_UNSET: Any = object()

DEFAULT_FEEDBACK = "Changes requested by downstream validation."


def resolve_poll_interval(value: Optional[float]) -> int:
    """Normalize a poll interval in milliseconds, with a floor."""
    try:
        interval = float(value) if value is not None else DEFAULT_POLL_INTERVAL_MS
    except (TypeError, ValueError):
        return DEFAULT_POLL_INTERVAL_MS
    if interval <= 0:
        return DEFAULT_POLL_INTERVAL_MS
    return max(MIN_POLL_INTERVAL_MS, int(interval))


def is_dependency_satisfied(task_type: TaskType, upstream_status: Optional[TaskStatus]) -> bool:
    """Whether a ``blocks`` edge no longer holds its task back.

    Validators may start as soon as the upstream work is proposed for
    review; everything else waits for ``done``.
    """
    if upstream_status == TaskStatus.DONE:
        return True
    return task_type in VALIDATOR_TASK_TYPES and upstream_status == TaskStatus.IN_REVIEW


def normalize_dependencies(dependencies: Optional[Iterable[Any]]) -> List[Dict[str, Any]]:
    """Accept task ids or mappings and return ``depends_on_task_id``/``dependency_type`` dicts."""
    if dependencies is None:
        return []
    if isinstance(dependencies, (str, dict)):
        dependencies = [dependencies]

    normalized = []
    for entry in dependencies:
        if not entry:
            continue
        if isinstance(entry, str):
            normalized.append({"depends_on_task_id": entry, "dependency_type": DependencyType.BLOCKS})
            continue
        depends_on = entry.get("depends_on_task_id") or entry.get("task_id") or entry.get("id")
        if not depends_on:
            continue
        normalized.append({
            "depends_on_task_id": depends_on,
            "dependency_type": DependencyType(entry.get("dependency_type") or entry.get("type") or "blocks"),
        })
    return normalized


def _reaches(edges: Dict[str, Set[str]], start: str, target: str) -> bool:
    stack = [start]
    seen: Set[str] = set()
    while stack:
        current = stack.pop()
        if current == target:
            return True
        if current in seen:
            continue
        seen.add(current)
        stack.extend(edges.get(current, ()))
    return False


class TaskEngine:
    """Creates tasks and drives them through their lifecycle."""

    def __init__(self, store: RecordStore, events: Optional[EventLog] = None,
                 poll_interval_ms: Optional[float] = None,
                 wait_timeout: Optional[float] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize the engine.

        Args:
            store: Record store of the project
            events: Event log; one over ``store`` is created when omitted
            poll_interval_ms: Delay between polls of the blocking waits
            wait_timeout: Default deadline in seconds for the blocking waits,
                None waits forever
            sleep: Called with seconds between polls
            clock: Monotonic clock used for deadlines
        """
        self.store = store
        self.events = events or EventLog(store)
        self.poll_interval_ms = resolve_poll_interval(poll_interval_ms)
        self.wait_timeout = wait_timeout
        self.sleep = sleep
        self.clock = clock

    # Loading

    def _load_tasks(self, session_id: str) -> List[Task]:
        tasks = [Task.model_validate(row) for row in self.store.read_snapshots(session_id, "tasks")]
        return sorted(tasks, key=lambda t: t.created_at)

    def _load_dependencies(self, session_id: str) -> List[TaskDependency]:
        rows = self.store.read_records(session_id, "task_dependencies")
        return sorted((TaskDependency.model_validate(row) for row in rows), key=lambda d: d.created_at)

    def _load_agents(self, session_id: str) -> List[Agent]:
        agents = [Agent.model_validate(row) for row in self.store.read_snapshots(session_id, "agents")]
        return sorted(agents, key=lambda a: a.created_at)

    def _find_task_session(self, task_id: str, session_hint: Optional[str] = None) -> Optional[str]:
        if session_hint and any(t.id == task_id for t in self._load_tasks(session_hint)):
            return session_hint

        for session_id in self.store.list_session_ids():
            if session_id == session_hint:
                continue
            if any(t.id == task_id for t in self._load_tasks(session_id)):
                return session_id
        return None

    def _dependency_views(self, task_id: str, tasks: List[Task],
                          dependencies: List[TaskDependency]) -> List[DependencyView]:
        by_id = {t.id: t for t in tasks}
        views = []
        for dependency in dependencies:
            if dependency.task_id != task_id:
                continue
            upstream = by_id.get(dependency.depends_on_task_id)
            views.append(DependencyView(
                **dependency.model_dump(),
                depends_on_task_title=upstream.title if upstream else None,
                depends_on_task_status=upstream.status if upstream else None,
                depends_on_task_type=upstream.task_type if upstream else None,
                depends_on_agent_id=upstream.agent_id if upstream else None,
            ))
        return views

    def _hydrate(self, task: Task, tasks: List[Task], dependencies: List[TaskDependency]) -> TaskView:
        views = self._dependency_views(task.id, tasks, dependencies)
        blocking = [
            view for view in views
            if view.dependency_type == DependencyType.BLOCKS
            and not is_dependency_satisfied(task.task_type, view.depends_on_task_status)
        ]
        return TaskView(
            **task.to_record().model_dump(),
            dependencies=views,
            blocking_tasks=blocking,
            wait_state=WaitState.WAITING_FOR_DEPENDENCIES if blocking else WaitState.READY,
        )

    # Queries

    def get_task(self, task_id: str, session_id: Optional[str] = None) -> Optional[TaskView]:
        """Get a hydrated task, searching other sessions when not in ``session_id``."""
        found_session = self._find_task_session(task_id, session_id)
        if not found_session:
            return None

        tasks = self._load_tasks(found_session)
        task = next((t for t in tasks if t.id == task_id), None)
        if task is None:
            return None
        return self._hydrate(task, tasks, self._load_dependencies(found_session))

    def require_task(self, task_id: str, session_id: Optional[str] = None) -> TaskView:
        task = self.get_task(task_id, session_id)
        if task is None:
            raise TaskNotFoundError(f'No task found for "{task_id}".')
        return task

    def list_tasks(self, session_id: str, agent_id: Optional[str] = None,
                   status: Optional[TaskStatus] = None) -> List[TaskView]:
        """List hydrated tasks of a session in creation order."""
        tasks = self._load_tasks(session_id)
        dependencies = self._load_dependencies(session_id)
        selected = [
            t for t in tasks
            if (not agent_id or t.agent_id == agent_id) and (not status or t.status == status)
        ]
        return [self._hydrate(t, tasks, dependencies) for t in selected]

    def list_task_dependencies(self, task_id: str, session_id: Optional[str] = None) -> List[DependencyView]:
        """List the edges of a task enriched with each upstream task's state."""
        found_session = self._find_task_session(task_id, session_id)
        if not found_session:
            return []
        return self._dependency_views(
            task_id, self._load_tasks(found_session), self._load_dependencies(found_session)
        )

    def list_blocking_dependencies(self, task_id: str, session_id: Optional[str] = None) -> List[DependencyView]:
        task = self.get_task(task_id, session_id)
        return task.blocking_tasks if task else []

    def has_unresolved_blocking_dependencies(self, task_id: str, session_id: Optional[str] = None) -> bool:
        return bool(self.list_blocking_dependencies(task_id, session_id))

    def list_dependent_tasks(self, task_id: str, session_id: Optional[str] = None,
                             only_blocking: bool = True,
                             only_validator_types: bool = False) -> List[TaskView]:
        """List tasks holding an edge onto ``task_id``.

        Args:
            task_id: Upstream task
            session_id: Session hint
            only_blocking: Only follow ``blocks`` edges
            only_validator_types: Only return testing and review tasks

        Returns:
            Hydrated dependents in creation order
        """
        found_session = self._find_task_session(task_id, session_id)
        if not found_session:
            return []

        tasks = self._load_tasks(found_session)
        dependencies = self._load_dependencies(found_session)
        dependent_ids = {
            d.task_id for d in dependencies
            if d.depends_on_task_id == task_id
            and (not only_blocking or d.dependency_type == DependencyType.BLOCKS)
        }
        dependents = [t for t in tasks if t.id in dependent_ids]
        if only_validator_types:
            dependents = [t for t in dependents if t.is_validator]
        return [self._hydrate(t, tasks, dependencies) for t in dependents]

    def list_status_history(self, session_id: str, task_id: Optional[str] = None) -> List[TaskStatusHistoryEntry]:
        """List recorded status transitions in append order."""
        entries = [
            TaskStatusHistoryEntry.model_validate(row)
            for row in self.store.read_records(session_id, "task_status_history")
        ]
        if task_id:
            entries = [e for e in entries if e.task_id == task_id]
        return entries

    def get_current_task(self, session_id: str, agent_id: str) -> Optional[TaskView]:
        """Pick the task an agent should be working on.

        Tasks are ranked in_progress, in_review, ready, todo, waiting,
        blocked, then anything else; ties go to the most recently created.
        The result also lists the other agents of the session.
        """
        tasks = self._load_tasks(session_id)
        owned = [t for t in tasks if t.agent_id == agent_id]
        if not owned:
            return None

        owned.sort(key=lambda t: t.created_at, reverse=True)
        owned.sort(key=lambda t: CURRENT_TASK_STATUS_ORDER.get(t.status, len(CURRENT_TASK_STATUS_ORDER)))
        current = owned[0]

        by_id = {t.id: t for t in tasks}
        teammates = []
        for agent in self._load_agents(session_id):
            if agent.id == agent_id:
                continue
            teammate_task = by_id.get(agent.current_task_id) if agent.current_task_id else None
            teammates.append(AgentSummary(
                id=agent.id,
                name=agent.name,
                role=agent.role,
                status=agent.status.value,
                task_title=teammate_task.title if teammate_task else None,
                task_status=teammate_task.status if teammate_task else None,
            ))
        teammates.sort(key=lambda a: f"{a.role}:{a.id}")

        view = self._hydrate(current, tasks, self._load_dependencies(session_id))
        view.available_agents = teammates
        return view

    # Mutations

    def create_task(self, session_id: str, agent_id: str, description: Optional[str] = None,
                    title: Optional[str] = None, goal: Optional[str] = None,
                    status: TaskStatus = TaskStatus.TODO,
                    priority: TaskPriority = TaskPriority.MEDIUM,
                    task_type: TaskType = TaskType.OTHER,
                    acceptance_criteria: Optional[str] = None,
                    scope_path: Optional[str] = None,
                    parent_task_id: Optional[str] = None,
                    created_by_agent_id: Optional[str] = None,
                    dependencies: Optional[Iterable[Any]] = None,
                    reporter: Optional[Reporter] = None) -> TaskView:
        """Create a task, bind it to its agent and promote it if unblocked.

        Returns:
            The task as stored after promotion
        """
        task = Task(
            id=create_id("task"),
            session_id=session_id,
            agent_id=agent_id,
            parent_task_id=parent_task_id,
            title=title or description or "Assigned task",
            goal=goal or "Support the project objective",
            description=description or title or "No task description provided.",
            status=status,
            priority=priority,
            task_type=task_type,
            scope_path=scope_path,
            acceptance_criteria=acceptance_criteria,
            created_by_agent_id=created_by_agent_id,
        )

        self.store.append_snapshot(session_id, "tasks", task)
        self.store.append_record(session_id, "task_status_history", TaskStatusHistoryEntry(
            id=create_id("taskstatus"),
            session_id=session_id,
            task_id=task.id,
            from_status=None,
            to_status=task.status,
            changed_by_agent_id=created_by_agent_id,
            note="Task created",
            created_at=task.created_at,
        ))

        normalized = normalize_dependencies(dependencies)
        if normalized:
            self.create_task_dependencies(session_id, task.id, normalized, changed_by_agent_id=created_by_agent_id)

        self._bind_agent_task(session_id, agent_id, task.id)
        self.events.emit(session_id, "task.assigned", agent_id, {"task_id": task.id, "status": task.status.value})
        self.events.log_activity(
            session_id,
            f"{agent_id} assigned: {task.title}",
            agent_id=agent_id,
            kind="task.assignment",
            details={
                "status": task.status.value,
                "priority": task.priority.value,
                "dependencies": [entry["depends_on_task_id"] for entry in normalized],
            },
            reporter=reporter,
        )
        logger.info(f"Created task {task.id} for {agent_id}")

        self.promote_task_to_ready_if_unblocked(task.id, session_id, changed_by_agent_id=created_by_agent_id)
        return self.require_task(task.id, session_id)

    def assign_task(self, session_id: str, agent_ref: str, description: str,
                    title: Optional[str] = None, goal: Optional[str] = None,
                    priority: TaskPriority = TaskPriority.MEDIUM,
                    task_type: Optional[TaskType] = None,
                    acceptance_criteria: Optional[str] = None,
                    depends_on: Optional[Iterable[str]] = None,
                    created_by_agent_id: Optional[str] = None,
                    reporter: Optional[Reporter] = None) -> TaskView:
        """Create a task for an existing agent referenced by id or name.

        When no task type is given it is inferred from the agent's role.
        """
        agent = resolve_agent_reference(self._load_agents(session_id), agent_ref)
        return self.create_task(
            session_id,
            agent.id,
            description=description,
            title=title,
            goal=goal or agent.goal,
            priority=priority,
            task_type=task_type or infer_task_type(agent.role),
            acceptance_criteria=acceptance_criteria,
            created_by_agent_id=created_by_agent_id,
            dependencies=depends_on,
            reporter=reporter,
        )

    def create_task_dependencies(self, session_id: str, task_id: str, dependencies: Iterable[Any],
                                 changed_by_agent_id: Optional[str] = None) -> List[DependencyView]:
        """Add edges from ``task_id`` onto other tasks.

        Duplicate edges are skipped. No edge is written if any ``blocks``
        edge of the batch would close a cycle.

        Raises:
            DependencyCycleError: If the blocking graph would become cyclic
        """
        normalized = normalize_dependencies(dependencies)
        if not normalized:
            return []

        existing = self._load_dependencies(session_id)
        edges: Dict[str, Set[str]] = {}
        for dependency in existing:
            if dependency.dependency_type == DependencyType.BLOCKS:
                edges.setdefault(dependency.task_id, set()).add(dependency.depends_on_task_id)

        seen = {(d.task_id, d.depends_on_task_id, d.dependency_type) for d in existing}
        to_write = []
        for entry in normalized:
            key = (task_id, entry["depends_on_task_id"], entry["dependency_type"])
            if key in seen:
                continue
            if entry["dependency_type"] == DependencyType.BLOCKS:
                if _reaches(edges, entry["depends_on_task_id"], task_id):
                    raise DependencyCycleError(
                        f"{task_id} cannot depend on {entry['depends_on_task_id']}: "
                        f"the blocking dependencies would form a cycle."
                    )
                edges.setdefault(task_id, set()).add(entry["depends_on_task_id"])
            seen.add(key)
            to_write.append(entry)

        now = utcnow()
        for entry in to_write:
            self.store.append_record(session_id, "task_dependencies", TaskDependency(
                id=create_id("taskdep"),
                session_id=session_id,
                task_id=task_id,
                depends_on_task_id=entry["depends_on_task_id"],
                dependency_type=entry["dependency_type"],
                created_at=now,
            ))

        payload = [
            {"depends_on_task_id": e["depends_on_task_id"], "dependency_type": e["dependency_type"].value}
            for e in normalized
        ]
        self.events.emit(session_id, "task.dependencies_created", changed_by_agent_id,
                         {"task_id": task_id, "dependencies": payload})
        self.events.log_activity(
            session_id,
            f"{task_id} dependencies updated",
            agent_id=changed_by_agent_id,
            kind="task.dependencies",
            details={"task_id": task_id, "dependencies": payload},
        )
        return self.list_task_dependencies(task_id, session_id)

    def _bind_agent_task(self, session_id: str, agent_id: str, task_id: str) -> None:
        agent = next((a for a in self._load_agents(session_id) if a.id == agent_id), None)
        if agent is None:
            return
        self.store.save_agent(session_id, agent.model_copy(update={
            "current_task_id": task_id,
            "updated_at": utcnow(),
        }))

    def _record_status_change(self, task: Task, next_status: TaskStatus,
                              changed_by_agent_id: Optional[str] = None,
                              note: Optional[str] = None,
                              blocking_reason: Optional[str] = _UNSET,
                              result_summary: Optional[str] = _UNSET) -> TaskView:
        next_status = TaskStatus(next_status)
        now = utcnow()

        started_at = task.started_at
        if next_status == TaskStatus.IN_PROGRESS and not started_at:
            started_at = now

        if next_status == TaskStatus.DONE:
            completed_at = now
        elif next_status in TERMINAL_TASK_STATUSES:
            completed_at = task.completed_at or now
        else:
            completed_at = None

        updated = task.to_record().model_copy(update={
            "status": next_status,
            "blocking_reason": task.blocking_reason if blocking_reason is _UNSET else blocking_reason,
            "result_summary": task.result_summary if result_summary is _UNSET else result_summary,
            "started_at": started_at,
            "completed_at": completed_at,
            "updated_at": now,
        })

        self.store.append_snapshot(task.session_id, "tasks", updated)
        self.store.append_record(task.session_id, "task_status_history", TaskStatusHistoryEntry(
            id=create_id("taskstatus"),
            session_id=task.session_id,
            task_id=task.id,
            from_status=task.status,
            to_status=next_status,
            changed_by_agent_id=changed_by_agent_id,
            note=note,
            created_at=now,
        ))
        self.events.emit(task.session_id, "task.status_changed", task.agent_id, {
            "task_id": task.id,
            "from": task.status.value,
            "to": next_status.value,
        })
        self.events.log_activity(
            task.session_id,
            f"{task.agent_id} status: {task.status.value} -> {next_status.value}",
            agent_id=task.agent_id,
            kind="task.status",
            details={"task_id": task.id, "note": note},
        )
        logger.info(f"Task {task.id}: {task.status.value} -> {next_status.value}")

        return self.require_task(task.id, task.session_id)

    def promote_task_to_ready_if_unblocked(self, task_id: str, session_id: Optional[str] = None,
                                           changed_by_agent_id: Optional[str] = None,
                                           note: Optional[str] = None) -> Optional[TaskView]:
        """Move a task to ``waiting`` or ``ready`` according to its dependencies.

        Terminal, in-review and in-progress tasks are left alone. Calling
        this repeatedly without other changes is a no-op after the first
        call.
        """
        task = self.get_task(task_id, session_id)
        if task is None or task.is_terminal or task.status in (TaskStatus.IN_REVIEW, TaskStatus.IN_PROGRESS):
            return task

        if task.blocking_tasks:
            if task.status != TaskStatus.WAITING:
                return self._record_status_change(
                    task, TaskStatus.WAITING,
                    changed_by_agent_id=changed_by_agent_id,
                    note=note or "Waiting for dependencies",
                )
            return task

        if task.status in (TaskStatus.TODO, TaskStatus.WAITING):
            promoted = self._record_status_change(
                task, TaskStatus.READY,
                changed_by_agent_id=changed_by_agent_id,
                note=note or "Dependencies satisfied",
                blocking_reason=None,
            )
            self.events.emit(task.session_id, "task.unblocked", task.agent_id, {"task_id": task.id})
            return promoted

        return task

    def refresh_dependent_tasks(self, task_id: str, session_id: Optional[str] = None,
                                changed_by_agent_id: Optional[str] = None,
                                note: Optional[str] = None) -> List[Optional[TaskView]]:
        """Re-evaluate every task holding a blocking edge onto ``task_id``."""
        return [
            self.promote_task_to_ready_if_unblocked(
                dependent.id, dependent.session_id,
                changed_by_agent_id=changed_by_agent_id,
                note=note,
            )
            for dependent in self.list_dependent_tasks(task_id, session_id, only_blocking=True)
        ]

    def reopen_upstream_tasks_from_feedback(self, feedback_task: Task,
                                            changed_by_agent_id: Optional[str] = None,
                                            note: Optional[str] = None,
                                            result_summary: Optional[str] = None) -> List[TaskView]:
        """Push the upstream work a validator rejected back to ``in_progress``.

        Only upstream tasks in ``in_review`` or ``done`` are reopened; the
        feedback text becomes their blocking reason.
        """
        feedback = (
            note
            or result_summary
            or feedback_task.result_summary
            or feedback_task.blocking_reason
            or DEFAULT_FEEDBACK
        )

        reopened = []
        for dependency in self.list_task_dependencies(feedback_task.id, feedback_task.session_id):
            if dependency.dependency_type != DependencyType.BLOCKS:
                continue
            upstream = self.get_task(dependency.depends_on_task_id, feedback_task.session_id)
            if upstream is None or upstream.status not in (TaskStatus.IN_REVIEW, TaskStatus.DONE):
                continue

            reopened.append(self._record_status_change(
                upstream, TaskStatus.IN_PROGRESS,
                changed_by_agent_id=changed_by_agent_id,
                note=f"Reopened after feedback from {feedback_task.id}",
                blocking_reason=feedback,
                result_summary=None,
            ))
            self.events.emit(upstream.session_id, "task.changes_requested", feedback_task.agent_id, {
                "task_id": upstream.id,
                "feedback_task_id": feedback_task.id,
                "feedback": feedback,
            })
        return reopened

    def finalize_task_if_downstream_accepted(self, task_id: str, session_id: Optional[str] = None,
                                             changed_by_agent_id: Optional[str] = None,
                                             note: Optional[str] = None,
                                             result_summary: Optional[str] = _UNSET) -> FinalizationResult:
        """Close an in-review task once every validator depending on it is done.

        Returns:
            ``finalized`` when the task moved to done, ``changes_requested``
            when a validator rejected it, ``waiting`` while validators are
            pending, ``no_action`` when the task is not in review and
            ``missing`` when it does not exist
        """
        task = self.get_task(task_id, session_id)
        if task is None:
            return FinalizationResult(outcome=FinalizationOutcome.MISSING)
        if task.status != TaskStatus.IN_REVIEW:
            return FinalizationResult(outcome=FinalizationOutcome.NO_ACTION, task=task)

        validators = self.list_dependent_tasks(task.id, task.session_id, only_blocking=True, only_validator_types=True)
        pending_ids = [v.id for v in validators if v.status != TaskStatus.DONE]
        rejecting = [v for v in validators if v.status in REJECTION_STATUSES]

        if rejecting:
            feedback = [
                Feedback(
                    task_id=v.id,
                    agent_id=v.agent_id,
                    message=v.blocking_reason or v.result_summary or "Changes requested.",
                )
                for v in rejecting
            ]
            reopened = self.reopen_upstream_tasks_from_feedback(
                rejecting[0],
                changed_by_agent_id=changed_by_agent_id,
                note="\n".join(entry.message for entry in feedback),
            )
            current = next((t for t in reopened if t.id == task.id), None) or self.get_task(task.id, task.session_id)
            return FinalizationResult(
                outcome=FinalizationOutcome.CHANGES_REQUESTED,
                task=current,
                pending_dependent_task_ids=pending_ids,
                feedback=feedback,
            )

        if pending_ids:
            self.events.emit(task.session_id, "task.finalization_waiting", task.agent_id, {
                "task_id": task.id,
                "pending_dependent_task_ids": pending_ids,
            })
            return FinalizationResult(
                outcome=FinalizationOutcome.WAITING,
                task=task,
                pending_dependent_task_ids=pending_ids,
            )

        done = self._record_status_change(
            task, TaskStatus.DONE,
            changed_by_agent_id=changed_by_agent_id,
            note=note or "All downstream validations completed",
            result_summary=task.result_summary if result_summary is _UNSET else result_summary,
            blocking_reason=None,
        )
        self.events.emit(task.session_id, "task.finalized", done.agent_id, {"task_id": done.id})
        self.refresh_dependent_tasks(task.id, task.session_id, changed_by_agent_id=changed_by_agent_id)
        return FinalizationResult(outcome=FinalizationOutcome.FINALIZED, task=done)

    def update_task_status(self, task_id: str, status: TaskStatus, session_id: Optional[str] = None,
                           changed_by_agent_id: Optional[str] = None,
                           note: Optional[str] = None,
                           blocking_reason: Optional[str] = _UNSET,
                           result_summary: Optional[str] = _UNSET) -> TaskView:
        """Change a task's status and propagate the consequences.

        Dependents are re-evaluated. A validator moving to blocked or
        failed reopens its upstream tasks; a validator moving to done tries
        to finalize them.

        Raises:
            TaskNotFoundError: If the task does not exist
            InvalidStatusTransitionError: If the task is already terminal
        """
        status = TaskStatus(status)
        task = self.require_task(task_id, session_id)
        if task.is_terminal:
            if status == task.status:
                return task
            raise InvalidStatusTransitionError(
                f"{task.id} is {task.status.value}; it cannot move to {status.value}."
            )

        if blocking_reason is _UNSET:
            blocking_reason = (note or task.blocking_reason) if status == TaskStatus.BLOCKED else task.blocking_reason

        updated = self._record_status_change(
            task, status,
            changed_by_agent_id=changed_by_agent_id,
            note=note,
            blocking_reason=blocking_reason,
            result_summary=task.result_summary if result_summary is _UNSET else result_summary,
        )
        self.refresh_dependent_tasks(updated.id, updated.session_id, changed_by_agent_id=changed_by_agent_id)

        if updated.is_validator and status in REJECTION_STATUSES:
            self.reopen_upstream_tasks_from_feedback(
                updated,
                changed_by_agent_id=changed_by_agent_id,
                note=note or updated.blocking_reason,
                result_summary=updated.result_summary,
            )

        if updated.is_validator and status == TaskStatus.DONE:
            for dependency in self.list_task_dependencies(updated.id, updated.session_id):
                if dependency.dependency_type != DependencyType.BLOCKS:
                    continue
                self.finalize_task_if_downstream_accepted(
                    dependency.depends_on_task_id, updated.session_id,
                    changed_by_agent_id=changed_by_agent_id,
                    note=note,
                )

        return self.require_task(task.id, task.session_id)

    def notify_task_done(self, task_id: str, session_id: Optional[str] = None,
                         changed_by_agent_id: Optional[str] = None,
                         note: Optional[str] = None,
                         result_summary: Optional[str] = _UNSET,
                         timeout: Optional[float] = None) -> FinalizationResult:
        """Submit a task for validation and block until it is accepted or rejected.

        Raises:
            TaskNotFoundError: If the task disappears
            InvalidStatusTransitionError: If the task already failed or was cancelled
            WaitTimeoutError: If the deadline passes first
        """
        task = self.require_task(task_id, session_id)
        if task.is_terminal and task.status != TaskStatus.DONE:
            raise InvalidStatusTransitionError(
                f"{task.id} is {task.status.value}; it cannot be submitted for review."
            )

        if task.status not in (TaskStatus.IN_REVIEW, TaskStatus.DONE):
            task = self._record_status_change(
                task, TaskStatus.IN_REVIEW,
                changed_by_agent_id=changed_by_agent_id,
                note=note or "Waiting for downstream validation",
                result_summary=task.result_summary if result_summary is _UNSET else result_summary,
                blocking_reason=None,
            )
            self.events.emit(task.session_id, "task.finalization_started", task.agent_id, {"task_id": task.id})
            self.refresh_dependent_tasks(
                task.id, task.session_id,
                changed_by_agent_id=changed_by_agent_id,
                note="Upstream implementation ready for validation",
            )

        return self.wait_for_task_finalization(
            task.id, task.session_id,
            changed_by_agent_id=changed_by_agent_id,
            timeout=timeout,
        )

    # Blocking waits

    def _deadline(self, timeout: Optional[float]) -> Optional[float]:
        if timeout is None:
            timeout = self.wait_timeout
        return None if timeout is None else self.clock() + timeout

    def _pause(self, deadline: Optional[float], task_id: str, waiting_for: str) -> None:
        if deadline is not None and self.clock() >= deadline:
            raise WaitTimeoutError(f"Timed out waiting for {task_id} {waiting_for}.")
        logger.debug(f"Waiting {self.poll_interval_ms}ms for {task_id} {waiting_for}")
        self.sleep(self.poll_interval_ms / 1000)

    def wait_for_task_availability(self, task_id: str, session_id: Optional[str] = None,
                                   changed_by_agent_id: Optional[str] = None,
                                   timeout: Optional[float] = None) -> TaskView:
        """Poll until a task has no unmet blocking dependency or is terminal.

        Raises:
            TaskNotFoundError: If the task disappears
            WaitTimeoutError: If the deadline passes first
        """
        deadline = self._deadline(timeout)
        while True:
            self.require_task(task_id, session_id)
            self.promote_task_to_ready_if_unblocked(task_id, session_id, changed_by_agent_id=changed_by_agent_id)
            task = self.require_task(task_id, session_id)
            if not task.blocking_tasks or task.is_terminal:
                return task

            self.events.emit(task.session_id, "task.waiting_for_dependencies", task.agent_id, {
                "task_id": task.id,
                "depends_on_task_ids": [d.depends_on_task_id for d in task.blocking_tasks],
            })
            self._pause(deadline, task_id, "to be unblocked")

    def wait_for_task_finalization(self, task_id: str, session_id: Optional[str] = None,
                                   changed_by_agent_id: Optional[str] = None,
                                   timeout: Optional[float] = None) -> FinalizationResult:
        """Poll until an in-review task is finalized or sent back with feedback.

        Raises:
            TaskNotFoundError: If the task disappears
            WaitTimeoutError: If the deadline passes first
        """
        deadline = self._deadline(timeout)
        while True:
            task = self.require_task(task_id, session_id)

            if task.status == TaskStatus.DONE:
                return FinalizationResult(outcome=FinalizationOutcome.FINALIZED, task=task)

            if task.status == TaskStatus.IN_PROGRESS and task.blocking_reason:
                return FinalizationResult(
                    outcome=FinalizationOutcome.CHANGES_REQUESTED,
                    task=task,
                    feedback=[Feedback(task_id=task.id, agent_id=task.agent_id, message=task.blocking_reason)],
                )

            result = self.finalize_task_if_downstream_accepted(
                task_id, task.session_id, changed_by_agent_id=changed_by_agent_id
            )
            if result.outcome != FinalizationOutcome.WAITING:
                return result

            self._pause(deadline, task_id, "to be finalized")

    # Caller-facing

    def get_task_context(self, caller: CallerContext, session_id: str,
                         wait: Optional[bool] = None,
                         timeout: Optional[float] = None) -> TaskContext:
        """Resolve the caller's agent and its current task.

        In wait mode the call blocks until that task is unblocked.

        Raises:
            AgentIdRequiredError: If the caller has no agent identity
            AgentNotFoundError: If the agent does not exist in the session
        """
        agent_ref = caller.require_agent_id()
        agent = resolve_agent_reference(self._load_agents(session_id), agent_ref)

        task = self.get_current_task(session_id, agent.id)
        if task is not None and caller.resolve_wait_mode(wait):
            ready = self.wait_for_task_availability(
                task.id, session_id, changed_by_agent_id=agent.id, timeout=timeout
            )
            ready.available_agents = task.available_agents
            task = ready

        return TaskContext(agent=agent, task=task)
