"""Custom exceptions for the agentsquad service layer."""


class ServiceError(Exception):
    """Base exception for all service-related errors."""

    pass


class AgentsquadError(ServiceError):
    """Engine failure carrying a machine-readable code.

    The CLI boundary maps ``exit_code`` to the process exit status.
    """

    code = "AGENTSQUAD_ERROR"

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code

    def __str__(self) -> str:
        return self.message


class AgentNotFoundError(AgentsquadError):
    """Raised when an agent reference matches no agent."""

    code = "AGENT_NOT_FOUND"


class AmbiguousAgentNameError(AgentsquadError):
    """Raised when a name matches more than one agent."""

    code = "AMBIGUOUS_AGENT_NAME"


class AgentNotRunningError(AgentsquadError):
    """Raised when stopping an agent that is not a detached process."""

    code = "AGENT_NOT_RUNNING"


class AgentIdRequiredError(AgentsquadError):
    """Raised when no caller identity can be resolved."""

    code = "AGENT_ID_REQUIRED"


class TaskNotFoundError(AgentsquadError):
    """Raised when a task id matches no task."""

    code = "TASK_NOT_FOUND"


class InvalidStatusTransitionError(AgentsquadError):
    """Raised when a task would leave a terminal status."""

    code = "INVALID_STATUS_TRANSITION"


class DependencyCycleError(AgentsquadError):
    """Raised when a blocking dependency would close a cycle."""

    code = "DEPENDENCY_CYCLE"


class WaitTimeoutError(AgentsquadError):
    """Raised when a polling wait exceeds its deadline."""

    code = "WAIT_TIMEOUT"


class MessageEmptyError(AgentsquadError):
    """Raised when a message has neither text nor file content."""

    code = "MESSAGE_EMPTY"


class ProviderUnknownError(AgentsquadError):
    """Raised for provider ids or adapters that are not configured."""

    code = "PROVIDER_UNKNOWN"


class ProfileUnknownError(AgentsquadError):
    """Raised for provider profiles that are not configured."""

    code = "PROFILE_UNKNOWN"


class ConfigNotFoundError(AgentsquadError):
    """Raised when the project has no configuration file."""

    code = "CONFIG_NOT_FOUND"


class ConfigInvalidError(AgentsquadError):
    """Raised when the configuration file does not validate."""

    code = "CONFIG_INVALID"
