"""
Configuration
-------------
YAML configuration with environment variable overrides, validated into
MatcherSettings before it reaches the registry.

Example config.yaml:

    matcher:
      prefix: "!"
      option_prefixes: ["-", "--"]
      default_type: string
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from cmdmatch.core.errors import ConfigError
from cmdmatch.infra.logging import get_logger

ENV_PREFIX = "CMDMATCH_"
DEFAULT_OPTION_PREFIXES = ["-", "--"]


class MatcherSettings(BaseModel):
    """Registry-wide matcher settings."""
    prefix: Optional[str] = Field(None, description="Default command prefix, e.g. '!'")
    option_prefixes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_OPTION_PREFIXES),
        description="Prefixes that mark a token as an option",
    )
    default_type: str = Field("string", description="Type used when a parameter names none")

    @field_validator("option_prefixes")
    @classmethod
    def _check_option_prefixes(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("at least one option prefix is required")
        if any(prefix == "" for prefix in value):
            raise ValueError("option prefixes must not be empty")
        return value

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "MatcherSettings":
        """Validate raw settings, raising ConfigError on bad input."""
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise ConfigError(f"Invalid matcher settings: {e}") from e


class ConfigManager:
    """
    Centralized configuration management.
    Loads configuration from YAML with environment variable overrides.
    """

    def __init__(self, config_path: str = "config.yaml"):
        self._config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._logger = get_logger("infra.config")

        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file."""
        if not self._config_path.exists():
            self._logger.warning(f"Config file not found: {self._config_path}")
            self._config = {}
            return

        with open(self._config_path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self._config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping: {self._config_path}")

        self._config = data
        self._logger.info(f"Loaded config from {self._config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.
        Supports dot notation: 'section.key'
        Environment variables override file config.
        """
        env_key = f"{ENV_PREFIX}{key.upper().replace('.', '_')}"
        env_value = os.getenv(env_key)
        if env_value is not None:
            return env_value

        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value (runtime only, not persisted)."""
        parts = key.split(".")
        config = self._config

        for part in parts[:-1]:
            if not isinstance(config.get(part), dict):
                config[part] = {}
            config = config[part]

        config[parts[-1]] = value

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get an entire configuration section."""
        value = self._config.get(section, {})
        return value if isinstance(value, dict) else {}

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def matcher_settings(self) -> MatcherSettings:
        """Build validated MatcherSettings from the 'matcher' section."""
        data: Dict[str, Any] = {}

        for key in ("prefix", "default_type"):
            value = self.get(f"matcher.{key}")
            if value is not None:
                data[key] = value

        option_prefixes = self.get("matcher.option_prefixes")
        if isinstance(option_prefixes, str):
            option_prefixes = [p.strip() for p in option_prefixes.split(",") if p.strip()]
        if option_prefixes is not None:
            data["option_prefixes"] = option_prefixes

        return MatcherSettings.from_mapping(data)
