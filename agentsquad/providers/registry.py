"""Provider lookup and per-profile configuration."""
import shutil
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..models.config import AgentsquadConfig, ProviderConfig
from ..services.exceptions import ProfileUnknownError, ProviderUnknownError
from .base import ProviderAdapter
from .generic_cli import GenericCliAdapter

GENERIC_CLI_ADAPTER = "generic-cli"


@dataclass
class ProviderStatus:
    """Whether a configured provider can be launched on this machine."""
    id: str
    command: str
    mode: str
    transport: str
    available: bool


def merge_provider_config(config: AgentsquadConfig, provider_id: str,
                          profile_name: Optional[str] = None) -> ProviderConfig:
    """Layer a named profile's args, env and cwd over a provider's settings.

    Raises:
        ProviderUnknownError: If the provider is not configured
        ProfileUnknownError: If the profile is not configured for it
    """
    provider = config.providers.get(provider_id)
    if provider is None:
        raise ProviderUnknownError(f'Provider "{provider_id}" is not configured.')

    if not profile_name:
        return provider.model_copy(deep=True)

    profile = provider.profiles.get(profile_name)
    if profile is None:
        raise ProfileUnknownError(f'Profile "{profile_name}" is not configured for "{provider_id}".')

    return provider.model_copy(deep=True, update={
        "args": [*provider.args, *profile.args],
        "env": {**provider.env, **profile.env},
        "cwd": profile.cwd or provider.cwd,
    })


class ProviderRegistry:
    """Maps adapter names to adapter implementations."""

    def __init__(self):
        self._adapters: Dict[str, ProviderAdapter] = {}
        self.register(GENERIC_CLI_ADAPTER, GenericCliAdapter(GENERIC_CLI_ADAPTER))

    def register(self, name: str, adapter: ProviderAdapter) -> None:
        self._adapters[name] = adapter

    def adapter_names(self) -> List[str]:
        return sorted(self._adapters)

    def resolve(self, provider_id: str, provider_config: ProviderConfig) -> ProviderAdapter:
        """Get the adapter implementing a configured provider.

        Raises:
            ProviderUnknownError: If the provider names an unregistered adapter
        """
        adapter = self._adapters.get(provider_config.adapter)
        if adapter is None:
            raise ProviderUnknownError(
                f'Provider "{provider_id}" uses unknown adapter "{provider_config.adapter}".'
            )
        return adapter


def resolve_provider_statuses(config: AgentsquadConfig) -> List[ProviderStatus]:
    """Report each configured provider and whether its command is on PATH."""
    return [
        ProviderStatus(
            id=provider_id,
            command=provider.command,
            mode=provider.mode.value,
            transport=provider.transport.value,
            available=shutil.which(provider.command) is not None,
        )
        for provider_id, provider in config.providers.items()
    ]
