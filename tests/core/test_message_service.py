"""Tests for message queueing and oneshot delivery."""

import json
import os
import signal

import pytest

from agentsquad.core.messages import (
    format_provider_stream_line,
    resolve_message_text,
    summarize_delivery_failure,
)
from agentsquad.core.process_manager import read_pid
from agentsquad.models.agent import Agent, AgentRunStatus, AgentStatus
from agentsquad.models.message import DeliveryStatus, MessageKind, SenderType
from agentsquad.models.records import LogLevel
from agentsquad.services.exceptions import AgentNotFoundError, MessageEmptyError

SESSION = "s1"


def make_agent(agent_id="agent-max-dev"):
    return Agent(id=agent_id, name="max", provider_id="codex", session_id=SESSION, workdir="/tmp")


class TestHelpers:
    """Test text resolution and output formatting."""

    def test_resolve_text_prefers_inline(self, tmp_path):
        note = tmp_path / "note.txt"
        note.write_text("from file")

        assert resolve_message_text("inline", str(note)) == "inline"
        assert resolve_message_text(None, str(note)) == "from file"

    def test_resolve_text_empty(self, tmp_path):
        empty = tmp_path / "empty.txt"
        empty.write_text("")

        with pytest.raises(MessageEmptyError):
            resolve_message_text("", None)
        with pytest.raises(MessageEmptyError):
            resolve_message_text(None, str(empty))

    def test_format_stream_line(self):
        agent = make_agent()

        assert format_provider_stream_line(agent, "codex", "stdout", "  done  ") == "agent-max-dev stdout: done"
        assert format_provider_stream_line(agent, "codex", "stderr", "thinking") == "agent-max-dev log: thinking"
        assert format_provider_stream_line(agent, "claude", "stderr", "oops") == "agent-max-dev stderr: oops"
        assert format_provider_stream_line(agent, "codex", "stdout", "   ") is None

    def test_summarize_failure_prefers_exit_line(self):
        lines = ["starting", "Error: bad input", "command exited 2 in 0.1s"]

        assert summarize_delivery_failure("claude", lines) == "Provider command failed: command exited 2 in 0.1s"

    def test_summarize_failure_error_line_then_first(self):
        assert summarize_delivery_failure("claude", ["hello", "Traceback: Exception raised"]) == \
            "Traceback: Exception raised"
        assert summarize_delivery_failure("claude", ["", "just output"]) == "just output"
        assert summarize_delivery_failure("claude", []) is None

    def test_summarize_codex_shell_errors(self):
        chained = ["Le jeton « && » n'est pas un séparateur d'instruction valide."]
        parser = ["ParserError: InvalidEndOfLine"]

        assert "&&" in summarize_delivery_failure("codex", chained)
        assert "invalid syntax" in summarize_delivery_failure("codex", parser)
        assert summarize_delivery_failure("claude", parser) == "ParserError: InvalidEndOfLine"


class TestSendMessage:
    """Test message delivery through real processes."""

    @pytest.fixture
    def dev(self, agents):
        return agents.spawn(SESSION, "generic", name="dev", role="developer")

    def test_oneshot_delivery_with_cat(self, agents, messages, events, dev):
        reported = []

        message = messages.send_message(
            SESSION, "dev", text="Implement the parser",
            reporter=lambda line, entry: reported.append(line),
        )

        assert message.delivery_status == DeliveryStatus.DELIVERED
        assert message.delivery.ok is True
        assert message.delivery.code == 0
        assert message.delivery.transport == "stdin"
        assert message.delivered_at is not None
        assert message.from_type == SenderType.USER

        workspace = agents.workspace(dev)
        stdout = workspace.stdout_path.read_text()
        assert "[message]" in stdout
        assert f"id: {message.id}" in stdout
        assert "from: user" in stdout
        assert "Implement the parser" in stdout

        inbox = [json.loads(line) for line in workspace.inbox_path.read_text().splitlines()]
        assert inbox[0]["id"] == message.id
        outbox = [json.loads(line) for line in workspace.outbox_path.read_text().splitlines()]
        assert outbox[0]["message_id"] == message.id
        assert outbox[0]["ok"] is True

        assert [e.type for e in events.list_events(SESSION, event_type="message.")] == [
            "message.queued", "message.delivered",
        ]
        kinds = [e.kind for e in events.list_activity(SESSION, agent_id=dev.id)]
        assert "message.queue" in kinds
        assert "agent.stdout" in kinds
        assert kinds[-1] == "message.delivery"

        assert reported[0] == f"user -> {dev.id}: instruction"
        assert f"{dev.id} stdout: Implement the parser" in reported
        assert reported[-1] == f"{dev.id} received: instruction"

        assert agents.get_record(SESSION, dev.id).status == AgentStatus.IDLE
        runs = agents.list_runs(SESSION, dev.id)
        assert runs[-1].status == AgentRunStatus.COMPLETED
        assert runs[-1].exit_code == 0

    def test_latest_snapshot_is_delivered(self, messages, dev):
        message = messages.send_message(SESSION, dev.id, text="hi")

        stored = messages.get_message(SESSION, message.id)
        assert stored.delivery_status == DeliveryStatus.DELIVERED

    def test_failed_delivery(self, agents, messages, events):
        target = agents.spawn(SESSION, "failing", name="flaky", role="developer")
        reported = []

        message = messages.send_message(
            SESSION, "flaky", text="Try", kind=MessageKind.QUESTION,
            reporter=lambda line, entry: reported.append(line),
        )

        assert message.delivery_status == DeliveryStatus.FAILED
        assert message.delivery.code == 3
        failed = events.list_events(SESSION, event_type="message.delivery_failed")
        assert failed[0].payload["code"] == 3
        assert failed[0].payload["provider_id"] == "failing"

        activity = events.list_activity(SESSION, agent_id=target.id)
        delivery = [e for e in activity if e.kind == "message.delivery"][0]
        assert delivery.level == LogLevel.ERROR
        assert delivery.message == f"{target.id} failed delivery: question"
        stderr_entries = [e for e in activity if e.kind == "agent.stderr"]
        assert stderr_entries[0].level == LogLevel.WARNING
        assert stderr_entries[0].message == f"{target.id} error: boom: something failed"

        assert reported[-1] == f"{target.id} failure reason: boom: something failed"
        assert agents.list_runs(SESSION, target.id)[-1].status == AgentRunStatus.FAILED

    def test_missing_command_is_failed_delivery(self, agents, messages, config):
        config.providers["ghost"] = config.providers["generic"].model_copy(update={"command": "agentsquad-no-such-binary"})
        target = agents.spawn(SESSION, "ghost", name="ghost", role="developer")

        message = messages.send_message(SESSION, "ghost", text="anyone?")

        assert message.delivery_status == DeliveryStatus.FAILED
        assert message.delivery.code == 127
        assert "Failed to start" in agents.workspace(target).stderr_path.read_text()

    def test_adapter_error_leaves_agent_idle(self, agents, messages, events, dev):
        class RaisingAdapter:
            def deliver_message(self, agent, provider_config, message, workspace,
                                on_stdout=None, on_stderr=None):
                on_stdout("partial output")
                raise RuntimeError("adapter crashed")

        agents.registry.register("generic-cli", RaisingAdapter())

        with pytest.raises(RuntimeError):
            messages.send_message(SESSION, "dev", text="Implement the parser")

        assert agents.get_record(SESSION, dev.id).status == AgentStatus.IDLE
        stored = messages.list_messages(SESSION, dev.id)[-1]
        assert stored.delivery_status == DeliveryStatus.FAILED
        assert stored.delivery.ok is False
        assert agents.list_runs(SESSION, dev.id)[-1].status == AgentRunStatus.FAILED
        failed = events.list_events(SESSION, event_type="message.delivery_failed")
        assert failed[0].payload["message_id"] == stored.id

    def test_sender_from_agent(self, messages, agents, dev):
        agents.spawn(SESSION, "generic", name="lead", role="planner")

        message = messages.send_message(SESSION, "dev", text="Go", from_agent_ref="lead")

        assert message.from_agent_id == "agent-lead-planner"
        assert message.from_type == SenderType.AGENT

    def test_detached_target_is_deferred(self, agents, messages, events):
        target = agents.spawn(SESSION, "sleeper", name="bg", role="worker")
        try:
            message = messages.send_message(SESSION, "bg", text="Queued work")

            assert message.delivery_status == DeliveryStatus.QUEUED
            assert events.list_events(SESSION, event_type="message.deferred")[0].payload["message_id"] == message.id
            assert not agents.workspace(target).outbox_path.exists()
        finally:
            pid_meta = read_pid(agents.workspace(target).pid_path)
            if pid_meta:
                os.kill(pid_meta["pid"], signal.SIGKILL)

    def test_empty_and_unknown_target(self, messages, dev):
        with pytest.raises(MessageEmptyError):
            messages.send_message(SESSION, "dev", text="")
        with pytest.raises(AgentNotFoundError):
            messages.send_message(SESSION, "ghost", text="hello")


class TestListAndInbox:
    """Test reading messages back."""

    def test_list_filters_by_agent(self, agents, messages):
        agents.spawn(SESSION, "generic", name="dev", role="developer")
        agents.spawn(SESSION, "generic", name="qa", role="tester")
        agents.spawn(SESSION, "generic", name="ops", role="operator")
        first = messages.send_message(SESSION, "dev", text="one")
        second = messages.send_message(SESSION, "qa", text="two", from_agent_ref="dev")
        messages.send_message(SESSION, "ops", text="three")

        assert [m.id for m in messages.list_messages(SESSION, "dev")] == [first.id, second.id]
        assert len(messages.list_messages(SESSION)) == 3

    def test_read_inbox_marks_read(self, agents, messages):
        agents.spawn(SESSION, "generic", name="dev", role="developer")
        sent = messages.send_message(SESSION, "dev", text="one")

        peek = messages.read_inbox(SESSION, "dev", mark_read=False)
        assert [m.id for m in peek] == [sent.id]
        assert peek[0].read_at is None

        read = messages.read_inbox(SESSION, "dev")
        assert read[0].read_at is not None
        assert read[0].delivery_status == DeliveryStatus.DELIVERED

        again = messages.read_inbox(SESSION, "dev")
        assert again[0].read_at == read[0].read_at
