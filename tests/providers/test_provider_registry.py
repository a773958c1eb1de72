"""Tests for provider lookup and profile merging."""

from unittest.mock import patch

import pytest

from agentsquad.models.config import AgentsquadConfig, ProviderConfig, ProviderProfile
from agentsquad.providers.generic_cli import GenericCliAdapter
from agentsquad.providers.registry import (
    ProviderRegistry,
    merge_provider_config,
    resolve_provider_statuses,
)
from agentsquad.services.exceptions import ProfileUnknownError, ProviderUnknownError


@pytest.fixture
def provider_config():
    return AgentsquadConfig(providers={
        "codex": ProviderConfig(
            command="codex",
            args=["exec"],
            env={"A": "1"},
            profiles={"fast": ProviderProfile(args=["--model", "mini"], env={"B": "2"}, cwd="/srv")},
        ),
    })


class TestMergeProviderConfig:
    """Test profile layering."""

    def test_without_profile_returns_copy(self, provider_config):
        merged = merge_provider_config(provider_config, "codex")
        merged.args.append("--oops")

        assert provider_config.providers["codex"].args == ["exec"]

    def test_profile_is_layered(self, provider_config):
        merged = merge_provider_config(provider_config, "codex", "fast")

        assert merged.args == ["exec", "--model", "mini"]
        assert merged.env == {"A": "1", "B": "2"}
        assert merged.cwd == "/srv"

    def test_unknown_provider_and_profile(self, provider_config):
        with pytest.raises(ProviderUnknownError):
            merge_provider_config(provider_config, "vibe")
        with pytest.raises(ProfileUnknownError):
            merge_provider_config(provider_config, "codex", "slow")


class TestProviderRegistry:
    """Test adapter registration."""

    def test_generic_cli_is_registered(self, provider_config):
        registry = ProviderRegistry()

        adapter = registry.resolve("codex", provider_config.providers["codex"])

        assert isinstance(adapter, GenericCliAdapter)
        assert registry.adapter_names() == ["generic-cli"]

    def test_unknown_adapter_raises(self):
        registry = ProviderRegistry()

        with pytest.raises(ProviderUnknownError):
            registry.resolve("custom", ProviderConfig(adapter="http", command="x"))

    def test_custom_adapter(self):
        registry = ProviderRegistry()
        custom = GenericCliAdapter("http")
        registry.register("http", custom)

        assert registry.resolve("custom", ProviderConfig(adapter="http", command="x")) is custom

    @patch('agentsquad.providers.registry.shutil.which')
    def test_statuses(self, mock_which, provider_config):
        mock_which.return_value = None

        statuses = resolve_provider_statuses(provider_config)

        assert len(statuses) == 1
        assert statuses[0].id == "codex"
        assert statuses[0].available is False
        assert statuses[0].mode == "oneshot"
        mock_which.assert_called_once_with("codex")
