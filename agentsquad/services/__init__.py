"""Service layer errors shared by the engine and the CLI."""

from .exceptions import (
    ServiceError,
    AgentsquadError,
    AgentNotFoundError,
    AmbiguousAgentNameError,
    AgentNotRunningError,
    AgentIdRequiredError,
    TaskNotFoundError,
    InvalidStatusTransitionError,
    DependencyCycleError,
    WaitTimeoutError,
    MessageEmptyError,
    ProviderUnknownError,
    ProfileUnknownError,
    ConfigNotFoundError,
    ConfigInvalidError,
)

__all__ = [
    "ServiceError",
    "AgentsquadError",
    "AgentNotFoundError",
    "AmbiguousAgentNameError",
    "AgentNotRunningError",
    "AgentIdRequiredError",
    "TaskNotFoundError",
    "InvalidStatusTransitionError",
    "DependencyCycleError",
    "WaitTimeoutError",
    "MessageEmptyError",
    "ProviderUnknownError",
    "ProfileUnknownError",
    "ConfigNotFoundError",
    "ConfigInvalidError",
]
