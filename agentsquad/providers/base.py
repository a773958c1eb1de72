"""Provider adapter interface."""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol

from ..core.record_store import AgentWorkspace
from ..models.agent import Agent
from ..models.config import ProviderConfig
from ..models.message import DeliveryOutcome, Message

LineCallback = Callable[[str], None]


@dataclass
class SpawnInvocation:
    """Command line and environment used to launch a provider process."""
    command: str
    args: List[str] = field(default_factory=list)
    cwd: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)


class ProviderAdapter(Protocol):
    """Protocol implemented by provider adapters."""

    name: str

    def create_spawn_invocation(self, agent: Agent, provider_config: ProviderConfig) -> SpawnInvocation:
        """Describe how to start a long-running process for ``agent``."""

    def deliver_message(self, agent: Agent, provider_config: ProviderConfig, message: Message,
                        workspace: AgentWorkspace,
                        on_stdout: Optional[LineCallback] = None,
                        on_stderr: Optional[LineCallback] = None) -> DeliveryOutcome:
        """Run the provider once with ``message`` and report how it exited."""
