"""Sending messages to agents and delivering them through providers."""
import logging
import re
from pathlib import Path
from typing import Callable, List, Optional

from ..models.agent import Agent, AgentRunStatus, AgentStatus, ProviderMode
from ..models.message import DeliveryOutcome, DeliveryStatus, Message, MessageKind, SenderType
from ..models.records import LogLevel
from ..providers.registry import merge_provider_config
from ..services.exceptions import MessageEmptyError
from ..utils.jsonl import append_jsonl, read_jsonl
from .agents import AgentManager
from .events import EventLog, Reporter
from .ids import create_id, utcnow

logger = logging.getLogger(__name__)

_EXIT_LINE = re.compile(r"\bexited\s+[1-9]", re.IGNORECASE)
_ERROR_LINE = re.compile(r"error|failed|exception|exited\s+[1-9]", re.IGNORECASE)


def resolve_message_text(text: Optional[str] = None, file_path: Optional[str] = None) -> str:
    """Get message text from inline text, else from a file.

    Raises:
        MessageEmptyError: If neither yields any text
    """
    if text:
        return text
    if file_path:
        content = Path(file_path).read_text(encoding="utf-8")
        if content:
            return content
    raise MessageEmptyError("Message text is empty. Pass text or a file.")


def format_provider_stream_line(agent: Agent, provider_id: str, stream: str, line: str) -> Optional[str]:
    """Prefix one provider output line with the agent id, or None if blank.

    Codex writes its progress to stderr, so its stderr reads as ``log``.
    """
    line = line.strip()
    if not line:
        return None
    label = "log" if provider_id == "codex" and stream == "stderr" else stream
    return f"{agent.id} {label}: {line}"


def summarize_delivery_failure(provider_id: str, lines: List[str]) -> Optional[str]:
    """Pick the most telling line of a failed delivery's output."""
    cleaned = [line.strip() for line in lines if line and line.strip()]
    if not cleaned:
        return None

    if provider_id == "codex":
        joined = "\n".join(cleaned)
        if "&&" in joined and re.search(r"separator|séparateur", joined, re.IGNORECASE):
            return ("Provider ran a shell command chained with '&&', which PowerShell rejects. "
                    "Use ';' or separate commands.")
        if re.search(r"ParserError|InvalidEndOfLine", joined):
            return "Provider ran a shell command with invalid syntax for the current shell."

    for line in cleaned:
        if _EXIT_LINE.search(line):
            return f"Provider command failed: {line}"

    for line in cleaned:
        if _ERROR_LINE.search(line):
            return line
    return cleaned[0]


class MessageService:
    """Queues messages in agent inboxes and runs oneshot deliveries."""

    def __init__(self, agents: AgentManager, events: Optional[EventLog] = None):
        self.agents = agents
        self.store = agents.store
        self.events = events or agents.events

    def _load_messages(self, session_id: str) -> List[Message]:
        return [Message.model_validate(row) for row in self.store.read_snapshots(session_id, "messages")]

    def get_message(self, session_id: str, message_id: str) -> Optional[Message]:
        for message in self._load_messages(session_id):
            if message.id == message_id:
                return message
        return None

    def send_message(self, session_id: str, to_agent_ref: str, text: Optional[str] = None,
                     file_path: Optional[str] = None, from_agent_ref: Optional[str] = None,
                     kind: MessageKind = MessageKind.INSTRUCTION,
                     related_task_id: Optional[str] = None,
                     reply_to_message_id: Optional[str] = None,
                     thread_id: Optional[str] = None,
                     reporter: Optional[Reporter] = None) -> Message:
        """Queue a message for an agent and deliver it if its provider is oneshot.

        Args:
            session_id: Session of both agents
            to_agent_ref: Target agent id or name
            text: Inline message text
            file_path: File to read the text from when ``text`` is empty
            from_agent_ref: Sending agent id or name; None means the user
            kind: Message kind
            related_task_id: Task the message is about
            reply_to_message_id: Message being answered
            thread_id: Conversation thread
            reporter: Receives activity lines as they are logged

        Returns:
            The latest stored version of the message

        Raises:
            MessageEmptyError: If there is no text
            AgentNotFoundError: If either agent cannot be resolved
        """
        body = resolve_message_text(text, file_path)
        target = self.agents.resolve_agent(session_id, to_agent_ref)
        source = self.agents.resolve_agent(session_id, from_agent_ref) if from_agent_ref else None

        message = Message(
            id=create_id("msg"),
            session_id=session_id,
            thread_id=thread_id,
            from_agent_id=source.id if source else None,
            from_type=SenderType.AGENT if source else SenderType.USER,
            to_agent_id=target.id,
            kind=kind,
            text=body,
            related_task_id=related_task_id,
            reply_to_message_id=reply_to_message_id,
        )
        document = self.store.append_snapshot(session_id, "messages", message)
        workspace = self.agents.workspace(target)
        append_jsonl(workspace.inbox_path, document)

        self.events.emit(session_id, "message.queued", target.id, {
            "message_id": message.id,
            "from": message.from_agent_id,
        })
        sender = source.id if source else "user"
        self.events.log_activity(
            session_id,
            f"{sender} -> {target.id}: {kind.value}",
            agent_id=target.id,
            kind="message.queue",
            reporter=reporter,
        )

        provider_config = merge_provider_config(self.agents.config, target.provider_id, target.profile)
        adapter = self.agents.registry.resolve(target.provider_id, provider_config)

        if provider_config.mode != ProviderMode.ONESHOT:
            self.events.emit(session_id, "message.deferred", target.id, {"message_id": message.id})
            logger.info(f"Queued {message.id} for detached agent {target.id}")
            return message

        return self._deliver(target, provider_config, adapter, message, reporter)

    def _stream_handler(self, agent: Agent, stream: str, collected: List[str],
                        reporter: Optional[Reporter]) -> Callable[[str], None]:
        level = LogLevel.WARNING if stream == "stderr" else LogLevel.INFO
        verb = "error" if stream == "stderr" else "output"

        def handle(line: str) -> None:
            collected.append(line)
            formatted = format_provider_stream_line(agent, agent.provider_id, stream, line)
            if formatted is None:
                return
            self.events.log_activity(
                agent.session_id,
                f"{agent.id} {verb}: {line.strip()}",
                agent_id=agent.id,
                kind=f"agent.{stream}",
                level=level,
            )
            if reporter is not None:
                reporter(formatted, None)

        return handle

    def _deliver(self, target: Agent, provider_config, adapter, message: Message,
                 reporter: Optional[Reporter]) -> Message:
        session_id = message.session_id
        workspace = self.agents.workspace(target)
        collected: List[str] = []

        started_at = utcnow()
        target = self.agents.save(self.agents.get_record(session_id, target.id), status=AgentStatus.RUNNING)
        try:
            outcome = adapter.deliver_message(
                target,
                provider_config,
                message,
                workspace,
                on_stdout=self._stream_handler(target, "stdout", collected, reporter),
                on_stderr=self._stream_handler(target, "stderr", collected, reporter),
            )
        except Exception as e:
            logger.error(f"Provider {target.provider_id} raised while delivering {message.id}: {e}")
            collected.append(f"{type(e).__name__}: {e}")
            failed = DeliveryOutcome(ok=False, transport=provider_config.transport.value)
            self._finish_delivery(target, provider_config, workspace, message, failed,
                                  started_at, collected, reporter)
            raise
        finally:
            self.agents.save(self.agents.get_record(session_id, target.id), status=AgentStatus.IDLE)

        return self._finish_delivery(target, provider_config, workspace, message, outcome,
                                     started_at, collected, reporter)

    def _finish_delivery(self, target: Agent, provider_config, workspace, message: Message,
                         outcome: DeliveryOutcome, started_at, collected: List[str],
                         reporter: Optional[Reporter]) -> Message:
        """Record the run and the message's delivery result."""
        session_id = message.session_id
        self.agents.record_run(
            target, provider_config,
            status=AgentRunStatus.COMPLETED if outcome.ok else AgentRunStatus.FAILED,
            exit_code=outcome.code,
            exit_signal=outcome.signal,
            started_at=started_at,
            ended_at=utcnow(),
        )

        message = message.model_copy(update={
            "delivery_status": DeliveryStatus.DELIVERED if outcome.ok else DeliveryStatus.FAILED,
            "delivery": outcome,
            "delivered_at": utcnow(),
        })
        self.store.append_snapshot(session_id, "messages", message)
        append_jsonl(workspace.outbox_path, {
            "id": create_id("delivery"),
            "message_id": message.id,
            "timestamp": utcnow().isoformat(),
            **outcome.model_dump(mode="json"),
        })

        self.events.emit(
            session_id,
            "message.delivered" if outcome.ok else "message.delivery_failed",
            target.id,
            {
                "message_id": message.id,
                "provider_id": target.provider_id,
                "code": outcome.code,
                "signal": outcome.signal,
            },
        )
        if outcome.ok:
            activity = f"{target.id} received: {message.kind.value}"
        else:
            activity = f"{target.id} failed delivery: {message.kind.value}"
        self.events.log_activity(
            session_id,
            activity,
            agent_id=target.id,
            kind="message.delivery",
            level=LogLevel.INFO if outcome.ok else LogLevel.ERROR,
            reporter=reporter,
        )

        if not outcome.ok:
            summary = summarize_delivery_failure(target.provider_id, collected)
            logger.warning(f"Delivery of {message.id} to {target.id} failed: {summary}")
            if summary and reporter is not None:
                reporter(f"{target.id} failure reason: {summary}", None)

        return message

    def list_messages(self, session_id: str, agent_ref: Optional[str] = None) -> List[Message]:
        """List messages sent to or from an agent, oldest first."""
        messages = self._load_messages(session_id)
        if agent_ref:
            agent_id = self.agents.resolve_agent(session_id, agent_ref).id
            messages = [m for m in messages if agent_id in (m.to_agent_id, m.from_agent_id)]
        return sorted(messages, key=lambda m: m.created_at)

    def read_inbox(self, session_id: str, agent_ref: str, mark_read: bool = True) -> List[Message]:
        """Get the messages queued in an agent's inbox.

        Unread messages are marked read by appending a new version.
        """
        agent = self.agents.resolve_agent(session_id, agent_ref)
        inbox_ids = [
            row.get("id") for row in read_jsonl(self.store.agent_workspace(session_id, agent.id, create=False).inbox_path)
            if isinstance(row, dict)
        ]
        latest = {m.id: m for m in self._load_messages(session_id)}

        inbox = []
        for message_id in dict.fromkeys(inbox_ids):
            message = latest.get(message_id)
            if message is None:
                continue
            if mark_read and message.read_at is None:
                message = message.model_copy(update={"read_at": utcnow()})
                if message.delivery_status == DeliveryStatus.QUEUED:
                    message = message.model_copy(update={"delivery_status": DeliveryStatus.READ})
                self.store.append_snapshot(session_id, "messages", message)
            inbox.append(message)
        return inbox
