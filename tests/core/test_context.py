"""Tests for caller identity resolution."""

import pytest

from agentsquad.core.context import CallerContext
from agentsquad.services.exceptions import AgentIdRequiredError


class TestCallerContext:
    """Test CallerContext construction and wait mode."""

    def test_identity_from_environment(self):
        caller = CallerContext.from_env(environ={
            "AGENTSQUAD_AGENT_ID": "agent-a",
            "AGENTSQUAD_SESSION_ID": "s9",
        })

        assert caller.agent_id == "agent-a"
        assert caller.session_id == "s9"
        assert caller.identity_from_env is True
        assert caller.resolve_wait_mode() is True

    def test_explicit_reference_wins(self):
        caller = CallerContext.from_env(agent_ref="qa", session_id="s1", environ={"AGENTSQUAD_AGENT_ID": "agent-a"})

        assert caller.agent_id == "qa"
        assert caller.session_id == "s1"
        assert caller.identity_from_env is False
        assert caller.resolve_wait_mode() is False

    def test_explicit_wait_overrides_default(self):
        operator = CallerContext(agent_id="qa")
        agent = CallerContext(agent_id="agent-a", identity_from_env=True)

        assert operator.resolve_wait_mode(True) is True
        assert agent.resolve_wait_mode(False) is False

    def test_empty_environment(self):
        caller = CallerContext.from_env(environ={"AGENTSQUAD_AGENT_ID": ""})

        assert caller.agent_id is None
        assert caller.resolve_wait_mode() is False
        with pytest.raises(AgentIdRequiredError):
            caller.require_agent_id()
