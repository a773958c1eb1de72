"""Caller identity resolved once at the process boundary."""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ..services.exceptions import AgentIdRequiredError
from .constants import ENV_AGENT_ID, ENV_SESSION_ID


@dataclass(frozen=True)
class CallerContext:
    """Who issued the current invocation.

    ``identity_from_env`` is True when the agent id came from the
    environment of a spawned agent rather than an explicit reference
    typed by an operator.
    """
    agent_id: Optional[str] = None
    session_id: Optional[str] = None
    identity_from_env: bool = False

    @classmethod
    def from_env(cls, agent_ref: Optional[str] = None, session_id: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None) -> "CallerContext":
        """Build the context from explicit options, falling back to the environment."""
        environ = os.environ if environ is None else environ
        env_agent = environ.get(ENV_AGENT_ID) or None
        env_session = environ.get(ENV_SESSION_ID) or None

        if agent_ref:
            return cls(agent_id=agent_ref, session_id=session_id or env_session, identity_from_env=False)
        return cls(agent_id=env_agent, session_id=session_id or env_session, identity_from_env=env_agent is not None)

    def require_agent_id(self) -> str:
        if not self.agent_id:
            raise AgentIdRequiredError(
                f"No agent given. Pass an agent id or set {ENV_AGENT_ID}."
            )
        return self.agent_id

    def resolve_wait_mode(self, wait: Optional[bool] = None) -> bool:
        """Decide whether a task lookup should block.

        An explicit choice always wins. Otherwise agents calling from their
        own environment wait and operators naming an agent do not.
        """
        if wait is not None:
            return wait
        return self.identity_from_env and self.agent_id is not None
