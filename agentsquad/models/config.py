"""Configuration models for agentsquad."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.constants import (
    DEFAULT_MANAGER_ROLE,
    DEFAULT_ORCHESTRATOR_PROVIDER,
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_SESSION_ID,
)
from .agent import ProviderMode


class Transport(str, Enum):
    """How a oneshot provider receives the message text."""
    ARGS = "args"
    STDIN = "stdin"
    FILE = "file"


class WorkingDirectoryMode(str, Enum):
    INHERIT = "inherit"
    FIXED = "fixed"


class ProviderProfile(BaseModel):
    """Named overlay of extra args, env and cwd for a provider."""

    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    cwd: Optional[str] = None


class ProviderConfig(BaseModel):
    """Configuration for a single provider."""

    adapter: str = Field("generic-cli", description="Registered adapter implementing the provider")
    command: str = Field(..., description="Executable to launch")
    args: List[str] = Field(default_factory=list, description="Arguments placed before the message")
    mode: ProviderMode = ProviderMode.ONESHOT
    transport: Transport = Transport.STDIN
    prompt_flag: Optional[str] = Field(None, description="Flag preceding the message for args transport")
    message_file_flag: Optional[str] = Field(None, description="Flag preceding the message file for file transport")
    message_format: str = "plain"
    working_directory_mode: WorkingDirectoryMode = WorkingDirectoryMode.INHERIT
    cwd: Optional[str] = None
    env: Dict[str, str] = Field(default_factory=dict)
    profiles: Dict[str, ProviderProfile] = Field(default_factory=dict)


class OrchestratorSettings(BaseModel):
    provider: str = DEFAULT_ORCHESTRATOR_PROVIDER
    manager_role_name: str = DEFAULT_MANAGER_ROLE


class TaskSettings(BaseModel):
    """Polling behaviour of blocking task commands."""

    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    wait_timeout_seconds: Optional[float] = Field(
        None, description="Give up waiting after this many seconds; None waits forever"
    )


class AgentsquadConfig(BaseModel):
    """Project configuration stored in agentsquad.config.json."""

    default_session: str = DEFAULT_SESSION_ID
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)
    tasks: TaskSettings = Field(default_factory=TaskSettings)
    providers: Dict[str, ProviderConfig] = Field(default_factory=dict)

    def provider_names(self) -> List[str]:
        """Get list of all provider ids."""
        return list(self.providers.keys())
