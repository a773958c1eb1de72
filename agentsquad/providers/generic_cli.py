"""Adapter for agent binaries driven through a plain command line."""
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from ..core.constants import (
    ENV_AGENT_ID,
    ENV_AGENT_ROLE,
    ENV_SESSION_ID,
    ENV_TASK_ID,
    ENV_WORKSPACE_ROOT,
)
from ..core.process_manager import run_oneshot_process
from ..core.record_store import AgentWorkspace
from ..models.agent import Agent
from ..models.config import ProviderConfig, Transport, WorkingDirectoryMode
from ..models.message import DeliveryOutcome, Message
from .base import LineCallback, SpawnInvocation

logger = logging.getLogger(__name__)

# Shell convention for "command not found"
COMMAND_NOT_FOUND_EXIT_CODE = 127


def format_message(message: Message) -> str:
    """Render a message as the plain-text envelope handed to providers."""
    return "\n".join([
        "[message]",
        f"id: {message.id}",
        f"from: {message.from_agent_id or 'user'}",
        f"to: {message.to_agent_id}",
        f"session: {message.session_id}",
        "",
        message.text,
        "",
    ])


def build_env(agent: Agent, provider_config: ProviderConfig) -> Dict[str, str]:
    """Environment of a provider process, identifying the agent it runs as."""
    env = dict(os.environ)
    env.update(provider_config.env)
    env.update(agent.env)
    env.update({
        ENV_AGENT_ID: agent.id,
        ENV_SESSION_ID: agent.session_id,
        ENV_AGENT_ROLE: agent.role or "",
        ENV_TASK_ID: agent.current_task_id or "",
        ENV_WORKSPACE_ROOT: agent.env.get(ENV_WORKSPACE_ROOT) or os.environ.get(ENV_WORKSPACE_ROOT, ""),
    })
    return env


def resolve_cwd(agent: Agent, provider_config: ProviderConfig) -> str:
    if provider_config.working_directory_mode == WorkingDirectoryMode.FIXED and provider_config.cwd:
        return str(Path(provider_config.cwd).resolve())
    return agent.workdir


class GenericCliAdapter:
    """Runs the configured command, passing messages by args, stdin or file."""

    def __init__(self, name: str):
        self.name = name

    def create_spawn_invocation(self, agent: Agent, provider_config: ProviderConfig) -> SpawnInvocation:
        return SpawnInvocation(
            command=provider_config.command,
            args=list(provider_config.args),
            cwd=resolve_cwd(agent, provider_config),
            env=build_env(agent, provider_config),
        )

    def build_message_args(self, provider_config: ProviderConfig, message: Message,
                           workspace: AgentWorkspace) -> tuple[List[str], Optional[str]]:
        """Get the argument list and stdin text for one delivery.

        Returns:
            Tuple of (args, stdin_text)
        """
        args = list(provider_config.args)
        payload = format_message(message)

        if provider_config.transport == Transport.ARGS:
            if provider_config.prompt_flag:
                args.append(provider_config.prompt_flag)
            args.append(payload)
            return args, None

        if provider_config.transport == Transport.FILE:
            if provider_config.message_file_flag:
                payload_path = workspace.root / f"{message.id}.txt"
                payload_path.write_text(payload, encoding="utf-8")
                args.extend([provider_config.message_file_flag, str(payload_path)])
            else:
                args.append(payload)
            return args, None

        return args, payload

    def deliver_message(self, agent: Agent, provider_config: ProviderConfig, message: Message,
                        workspace: AgentWorkspace,
                        on_stdout: Optional[LineCallback] = None,
                        on_stderr: Optional[LineCallback] = None) -> DeliveryOutcome:
        """Run the provider once for ``message``.

        A command that cannot be started is reported as a failed outcome,
        with the error written to the agent's stderr log.
        """
        args, stdin_text = self.build_message_args(provider_config, message, workspace)
        transport = provider_config.transport.value

        try:
            result = run_oneshot_process(
                provider_config.command,
                args,
                cwd=resolve_cwd(agent, provider_config),
                env=build_env(agent, provider_config),
                stdout_path=workspace.stdout_path,
                stderr_path=workspace.stderr_path,
                stdin_text=stdin_text,
                on_stdout=on_stdout,
                on_stderr=on_stderr,
            )
        except OSError as e:
            error_line = f"Failed to start {provider_config.command}: {e}"
            logger.warning(error_line)
            with open(workspace.stderr_path, 'a') as err_file:
                err_file.write(error_line + "\n")
            if on_stderr is not None:
                on_stderr(error_line)
            code = COMMAND_NOT_FOUND_EXIT_CODE if isinstance(e, FileNotFoundError) else None
            return DeliveryOutcome(ok=False, code=code, transport=transport)

        return DeliveryOutcome(ok=result.ok, code=result.code, signal=result.signal, transport=transport)
