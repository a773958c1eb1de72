"""Provider adapters that run agent binaries."""

from .base import ProviderAdapter, SpawnInvocation
from .generic_cli import GenericCliAdapter, format_message
from .registry import (
    ProviderRegistry,
    ProviderStatus,
    merge_provider_config,
    resolve_provider_statuses,
)

__all__ = [
    'ProviderAdapter',
    'SpawnInvocation',
    'GenericCliAdapter',
    'format_message',
    'ProviderRegistry',
    'ProviderStatus',
    'merge_provider_config',
    'resolve_provider_statuses',
]
