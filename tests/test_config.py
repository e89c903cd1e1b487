"""
Configuration Tests
-------------------
Tests for ConfigManager, env overrides and MatcherSettings validation.
"""

import pytest

from cmdmatch.core.errors import ConfigError
from cmdmatch.commands.registry import CommandRegistry
from cmdmatch.infra.config import ConfigManager, MatcherSettings


CONFIG = """
matcher:
  prefix: "!"
  option_prefixes: ["-", "--"]
  default_type: number
"""


class TestConfigManager:
    """YAML loading and lookups."""

    def test_dot_notation(self, write_yaml):
        """Nested keys are reachable with dots."""
        manager = ConfigManager(str(write_yaml(CONFIG, "config.yaml")))
        assert manager.get("matcher.prefix") == "!"
        assert manager.get("matcher.missing", "fallback") == "fallback"
        assert manager.get("nope.deeper") is None

    def test_missing_file_is_empty(self, tmp_path):
        """A missing config file gives an empty config."""
        manager = ConfigManager(str(tmp_path / "absent.yaml"))
        assert manager.get_section("matcher") == {}

    def test_missing_file_logs_warning(self, tmp_path, caplog):
        """The fallback is logged."""
        with caplog.at_level("WARNING", logger="cmdmatch"):
            ConfigManager(str(tmp_path / "absent.yaml"))
        assert "Config file not found" in caplog.text

    def test_invalid_yaml(self, write_yaml):
        """Malformed YAML is a ConfigError."""
        path = write_yaml("matcher: [unclosed", "config.yaml")
        with pytest.raises(ConfigError):
            ConfigManager(str(path))

    def test_non_mapping_root(self, write_yaml):
        """The root must be a mapping."""
        path = write_yaml("- just\n- a list\n", "config.yaml")
        with pytest.raises(ConfigError):
            ConfigManager(str(path))

    def test_env_override(self, write_yaml, monkeypatch):
        """CMDMATCH_* variables win over the file."""
        manager = ConfigManager(str(write_yaml(CONFIG, "config.yaml")))
        monkeypatch.setenv("CMDMATCH_MATCHER_PREFIX", "?")
        assert manager.get("matcher.prefix") == "?"

    def test_set_and_section(self, tmp_path):
        """Runtime values land in nested sections."""
        manager = ConfigManager(str(tmp_path / "absent.yaml"))
        manager.set("matcher.prefix", ".")
        assert manager.get_section("matcher") == {"prefix": "."}

    def test_reload(self, write_yaml):
        """reload() picks up file changes and drops runtime values."""
        path = write_yaml(CONFIG, "config.yaml")
        manager = ConfigManager(str(path))
        manager.set("matcher.prefix", "?")
        path.write_text('matcher:\n  prefix: "$"\n', encoding="utf-8")
        manager.reload()
        assert manager.get("matcher.prefix") == "$"


class TestMatcherSettings:
    """Validated matcher settings."""

    def test_defaults(self):
        """Defaults match the registry's defaults."""
        settings = MatcherSettings()
        assert settings.prefix is None
        assert settings.option_prefixes == ["-", "--"]
        assert settings.default_type == "string"

    def test_from_config(self, write_yaml):
        """The matcher section is validated."""
        settings = ConfigManager(str(write_yaml(CONFIG, "config.yaml"))).matcher_settings()
        assert settings.prefix == "!"
        assert settings.default_type == "number"

    def test_env_option_prefixes(self, tmp_path, monkeypatch):
        """Option prefixes from the environment are comma separated."""
        monkeypatch.setenv("CMDMATCH_MATCHER_OPTION_PREFIXES", "/, --")
        settings = ConfigManager(str(tmp_path / "absent.yaml")).matcher_settings()
        assert settings.option_prefixes == ["/", "--"]

    @pytest.mark.parametrize("prefixes", [[], ["-", ""]])
    def test_bad_option_prefixes(self, prefixes):
        """Empty lists and empty prefixes are rejected."""
        with pytest.raises(ConfigError):
            MatcherSettings.from_mapping({"option_prefixes": prefixes})

    def test_wrong_type(self):
        """Type errors become ConfigErrors."""
        with pytest.raises(ConfigError):
            MatcherSettings.from_mapping({"option_prefixes": 5})


class TestRegistryFromConfig:
    """Building a registry from configuration."""

    @pytest.mark.asyncio
    async def test_from_config(self, write_yaml):
        """Prefix and default type come from the file."""
        registry = CommandRegistry.from_config(str(write_yaml(CONFIG, "config.yaml")))
        assert registry.original_default_prefix == "!"
        assert registry.default_type == "number"

        registry.add("add", "<a> <b>")
        result = await registry.find_matching_command("!add 1 2")
        assert result.get("a") == 1
        assert result.get("b") == 2

    def test_unknown_default_type(self, write_yaml):
        """A default type missing from the table fails at construction."""
        path = write_yaml("matcher:\n  default_type: nope\n", "config.yaml")
        with pytest.raises(ConfigError):
            CommandRegistry.from_config(str(path))

    def test_missing_config_uses_defaults(self, tmp_path):
        """No file means no default prefix."""
        registry = CommandRegistry.from_config(str(tmp_path / "absent.yaml"))
        assert registry.default_prefix is None
        assert registry.option_prefixes == ["--", "-"]
