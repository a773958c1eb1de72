"""Tests for the event and activity journal."""

from agentsquad.models.records import LogLevel


class TestEventLog:
    """Test EventLog recording and filtering."""

    def test_emit_and_filter(self, events):
        events.emit("s1", "task.assigned", "agent-a", {"task_id": "t1"})
        events.emit("s1", "task.status_changed", "agent-b", {"task_id": "t2"})
        events.emit("s1", "message.queued", "agent-a")

        assert [e.type for e in events.list_events("s1")] == [
            "task.assigned", "task.status_changed", "message.queued",
        ]
        assert [e.type for e in events.list_events("s1", event_type="task.")] == [
            "task.assigned", "task.status_changed",
        ]
        assert [e.type for e in events.list_events("s1", event_type="task")] == []
        assert [e.type for e in events.list_events("s1", agent_id="agent-a")] == [
            "task.assigned", "message.queued",
        ]
        assert [e.type for e in events.list_events("s1", limit=1)] == ["message.queued"]

    def test_event_ids_and_payload(self, events):
        event = events.emit("s1", "agent.spawned", "agent-a", {"mode": "oneshot"})

        assert event.id.startswith("evt-")
        assert events.list_events("s1")[0].payload == {"mode": "oneshot"}

    def test_activity_reporter_receives_entry(self, events):
        reported = []

        entry = events.log_activity(
            "s1", "agent-a output: hello", agent_id="agent-a",
            kind="agent.stdout", level=LogLevel.WARNING,
            reporter=lambda message, logged: reported.append((message, logged.id)),
        )

        assert entry.id.startswith("log-")
        assert reported == [("agent-a output: hello", entry.id)]
        stored = events.list_activity("s1", agent_id="agent-a")
        assert stored[0].level == LogLevel.WARNING
        assert stored[0].kind == "agent.stdout"
        assert events.list_activity("s1", agent_id="agent-b") == []
