"""Tests for the generic command-line adapter."""

import pytest

from agentsquad.core.record_store import RecordStore
from agentsquad.models.agent import Agent
from agentsquad.models.config import ProviderConfig, Transport, WorkingDirectoryMode
from agentsquad.models.message import Message
from agentsquad.providers.generic_cli import GenericCliAdapter, build_env, format_message, resolve_cwd


@pytest.fixture
def agent(tmp_path):
    return Agent(
        id="agent-max-dev",
        name="max",
        role="developer",
        provider_id="generic",
        session_id="s1",
        workdir=str(tmp_path),
        current_task_id="task-1",
        env={"AGENTSQUAD_WORKSPACE_ROOT": "/project", "EXTRA": "agent"},
    )


@pytest.fixture
def message():
    return Message(id="msg-1", session_id="s1", to_agent_id="agent-max-dev", text="Do the thing")


@pytest.fixture
def workspace(tmp_path):
    return RecordStore(tmp_path).agent_workspace("s1", "agent-max-dev")


class TestFormatting:
    def test_format_message(self, message):
        assert format_message(message) == (
            "[message]\nid: msg-1\nfrom: user\nto: agent-max-dev\nsession: s1\n\nDo the thing\n"
        )

    def test_build_env_identifies_agent(self, agent):
        env = build_env(agent, ProviderConfig(command="cat", env={"EXTRA": "provider", "ONLY": "provider"}))

        assert env["AGENTSQUAD_AGENT_ID"] == "agent-max-dev"
        assert env["AGENTSQUAD_SESSION_ID"] == "s1"
        assert env["AGENTSQUAD_AGENT_ROLE"] == "developer"
        assert env["AGENTSQUAD_TASK_ID"] == "task-1"
        assert env["AGENTSQUAD_WORKSPACE_ROOT"] == "/project"
        assert env["EXTRA"] == "agent"
        assert env["ONLY"] == "provider"

    def test_resolve_cwd(self, agent, tmp_path):
        fixed = tmp_path / "fixed"

        assert resolve_cwd(agent, ProviderConfig(command="cat")) == agent.workdir
        assert resolve_cwd(agent, ProviderConfig(
            command="cat", working_directory_mode=WorkingDirectoryMode.FIXED, cwd=str(fixed),
        )) == str(fixed.resolve())


class TestMessageArgs:
    """Test the three message transports."""

    def test_stdin(self, message, workspace):
        adapter = GenericCliAdapter("generic-cli")

        args, stdin_text = adapter.build_message_args(ProviderConfig(command="cat", args=["-"]), message, workspace)

        assert args == ["-"]
        assert stdin_text == format_message(message)

    def test_args_with_prompt_flag(self, message, workspace):
        adapter = GenericCliAdapter("generic-cli")
        config = ProviderConfig(command="vibe", transport=Transport.ARGS, prompt_flag="--prompt")

        args, stdin_text = adapter.build_message_args(config, message, workspace)

        assert args == ["--prompt", format_message(message)]
        assert stdin_text is None

    def test_file_transport_writes_payload(self, message, workspace):
        adapter = GenericCliAdapter("generic-cli")
        config = ProviderConfig(command="tool", transport=Transport.FILE, message_file_flag="--input")

        args, stdin_text = adapter.build_message_args(config, message, workspace)

        payload_path = workspace.root / "msg-1.txt"
        assert args == ["--input", str(payload_path)]
        assert payload_path.read_text() == format_message(message)
        assert stdin_text is None

    def test_deliver_with_args_transport(self, agent, message, workspace):
        adapter = GenericCliAdapter("generic-cli")
        lines = []

        outcome = adapter.deliver_message(
            agent, ProviderConfig(command="echo", transport=Transport.ARGS), message, workspace,
            on_stdout=lines.append,
        )

        assert outcome.ok is True
        assert outcome.transport == "args"
        assert "Do the thing" in lines

    def test_spawn_invocation(self, agent):
        adapter = GenericCliAdapter("generic-cli")

        invocation = adapter.create_spawn_invocation(agent, ProviderConfig(command="sleep", args=["5"]))

        assert invocation.command == "sleep"
        assert invocation.args == ["5"]
        assert invocation.cwd == agent.workdir
        assert invocation.env["AGENTSQUAD_AGENT_ID"] == agent.id
