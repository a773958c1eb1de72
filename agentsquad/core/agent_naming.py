"""Human-readable agent names and ids."""
import re
import time
import unicodedata
from typing import List, Optional

from ..models.agent import Agent
from ..models.task import TaskType
from ..services.exceptions import AgentNotFoundError, AmbiguousAgentNameError
from .constants import AGENT_NAME_POOL


def slugify(value: Optional[str]) -> str:
    """Lowercase ASCII slug with single dashes, e.g. ``"Léo Dev"`` -> ``"leo-dev"``."""
    text = unicodedata.normalize("NFKD", str(value or ""))
    text = re.sub(r"[^\w\s-]", "", text, flags=re.ASCII).strip().lower()
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def generate_agent_name(seed: Optional[int] = None) -> str:
    """Pick a name from the pool; defaults to a clock-based seed."""
    if seed is None:
        seed = int(time.time() * 1000)
    return AGENT_NAME_POOL[seed % len(AGENT_NAME_POOL)]


def build_agent_id(name: Optional[str], role: Optional[str], collision_index: int = 0) -> str:
    """Build ``agent-<name>-<role>``, suffixed ``-2``, ``-3``... on collision."""
    base = f"agent-{slugify(name) or 'worker'}-{slugify(role) or 'worker'}"
    if collision_index > 0:
        return f"{base}-{collision_index + 1}"
    return base


def resolve_agent_reference(agents: List[Agent], agent_ref: str) -> Agent:
    """Find an agent by exact id, then by unique name.

    Raises:
        AmbiguousAgentNameError: If several agents share the name
        AgentNotFoundError: If nothing matches
    """
    for agent in agents:
        if agent.id == agent_ref:
            return agent

    by_name = [agent for agent in agents if agent.name == agent_ref]
    if len(by_name) > 1:
        raise AmbiguousAgentNameError(f'Multiple agents match "{agent_ref}". Use the id instead.')
    if by_name:
        return by_name[0]

    raise AgentNotFoundError(f'No agent found for "{agent_ref}".')


def infer_task_type(role: Optional[str]) -> TaskType:
    """Guess the kind of work from an agent's role."""
    normalized = (role or "").lower()
    if "plan" in normalized:
        return TaskType.PLANNING
    if "test" in normalized:
        return TaskType.TESTING
    if "review" in normalized:
        return TaskType.REVIEW
    if "dev" in normalized:
        return TaskType.IMPLEMENTATION
    return TaskType.OTHER
