"""Configuration management utilities."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from ..core.constants import CONFIG_FILE_NAME
from ..models.config import AgentsquadConfig, ProviderConfig, Transport
from ..services.exceptions import ConfigInvalidError, ConfigNotFoundError

logger = logging.getLogger(__name__)


def default_config() -> AgentsquadConfig:
    """Configuration written by ``agentsquad init``."""
    return AgentsquadConfig(providers={
        "codex": ProviderConfig(command="codex", args=["exec"], transport=Transport.ARGS),
        "claude": ProviderConfig(command="claude", args=["-p"], transport=Transport.ARGS),
        "vibe": ProviderConfig(command="vibe", args=["--prompt"], transport=Transport.ARGS),
        "generic": ProviderConfig(command="cat", transport=Transport.STDIN),
    })


class ConfigManager:
    """Manages the project configuration file."""

    def __init__(self, project_root: Path):
        """Initialize config manager."""
        self.project_root = Path(project_root)
        self.config_file = self.project_root / CONFIG_FILE_NAME

    def config_exists(self) -> bool:
        return self.config_file.exists()

    def load_config(self) -> AgentsquadConfig:
        """Load and validate the project configuration.

        Raises:
            ConfigNotFoundError: If the file does not exist
            ConfigInvalidError: If the file is not valid JSON or fails validation
        """
        if not self.config_exists():
            raise ConfigNotFoundError(
                f'No {CONFIG_FILE_NAME} found in {self.project_root}. Run "agentsquad init" first.'
            )

        try:
            data = json.loads(self.config_file.read_text())
        except json.JSONDecodeError as e:
            raise ConfigInvalidError(f"{self.config_file} is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise ConfigInvalidError(f"{self.config_file} must contain an object.")

        try:
            return AgentsquadConfig(**data)
        except ValidationError as e:
            raise ConfigInvalidError(f"{self.config_file} is invalid: {e}")

    def save_config(self, config: AgentsquadConfig) -> Path:
        """Write the configuration, replacing any existing file."""
        self.config_file.write_text(config.model_dump_json(indent=2) + "\n")
        logger.debug(f"Wrote configuration to {self.config_file}")
        return self.config_file
