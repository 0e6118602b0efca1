"""Configuration loader for VoiceSketch."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import ruamel.yaml

from voicesketch.utils.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = "config.yml"


class ConfigLoader:
    """Loads and manages application configuration from YAML files."""

    def __init__(self, config_path: Optional[str] = None) -> None:
        """Initialize the configuration loader.

        Args:
            config_path: Path to the main configuration file. Falls back to
                ``VOICESKETCH_CONFIG`` and then ``config.yml``.
        """
        if config_path is None:
            config_path = os.environ.get("VOICESKETCH_CONFIG", DEFAULT_CONFIG_PATH)
        self.config_path = Path(config_path)
        self.config: Dict[str, Any] = {}
        self.validated_config = None
        self.load()

    def load(self) -> None:
        """Load configuration from YAML and fill in schema defaults.

        A missing file is not an error: every setting has a default.
        """
        raw: Dict[str, Any] = {}
        if self.config_path.exists():
            yaml_loader = ruamel.yaml.YAML(typ="safe")
            try:
                with open(self.config_path, "r") as f:
                    raw = yaml_loader.load(f) or {}
            except (OSError, ruamel.yaml.YAMLError) as e:
                raise ConfigurationError(
                    f"Failed to read config file {self.config_path}: {e}"
                ) from e

        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Config file {self.config_path} must contain a mapping"
            )

        self._validate_config(raw)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., "audio.channels" or "asr.model_path").
            default: Default value if key not found.

        Returns:
            Configuration value or default.
        """
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., "audio.channels").
            value: Value to set.
        """
        keys = key.split(".")
        config_ref = self.config

        # Navigate to the parent of the target key
        for k in keys[:-1]:
            if k not in config_ref:
                config_ref[k] = {}
            config_ref = config_ref[k]

        config_ref[keys[-1]] = value

    def get_all(self) -> Dict[str, Any]:
        """Get the entire configuration dictionary.

        Returns:
            Complete configuration dictionary.
        """
        return self.config.copy()

    def _validate_config(self, raw: Dict[str, Any]) -> None:
        """Validate the loaded configuration using Pydantic schemas."""
        from .validators import validate_config

        try:
            self.validated_config = validate_config(raw)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        self.config = self.validated_config.model_dump()


# Global config instance
config = ConfigLoader()
