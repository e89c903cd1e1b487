"""
Command Map Loader Tests
------------------------
Tests for registering commands from YAML.
"""

import pytest

from cmdmatch.core.errors import ConfigError
from cmdmatch.commands.loader import load_command_map


COMMANDS = """
commands:
  - trigger: add
    signature: "<first:number> <second:number>"
  - trigger: [echo, say]
    signature: "<text$>"
  - trigger: ban
    signature:
      - "<user> <days:number> [reason$]"
      - "<user> [reason$]"
  - trigger: help
    prefix: null
"""


class TestLoading:
    """Well-formed command maps."""

    def test_definitions_in_file_order(self, registry, write_yaml):
        """Entries register in order and are returned."""
        definitions = load_command_map(registry, write_yaml(COMMANDS))
        assert [d.original_triggers for d in definitions] == [
            ["add"], ["echo", "say"], ["ban"], ["help"],
        ]
        assert registry.get_all() == definitions

    def test_overloads(self, registry, write_yaml):
        """A signature list gives overloads."""
        definitions = registry.load(write_yaml(COMMANDS))
        assert len(definitions[2].signatures) == 2

    def test_null_prefix(self, registry, write_yaml):
        """prefix: null disables the registry prefix."""
        definitions = registry.load(write_yaml(COMMANDS))
        assert definitions[3].prefix_matcher is None
        assert definitions[0].original_prefix == "!"

    @pytest.mark.asyncio
    async def test_loaded_commands_match(self, registry, write_yaml):
        """Loaded commands behave like programmatic ones."""
        registry.load(write_yaml(COMMANDS))
        result = await registry.find_matching_command("!ban alice 3 spamming links")
        assert result.get("days") == 3
        assert result.get("reason") == "spamming links"

        result = await registry.find_matching_command("!say hi there")
        assert result.get("text") == "hi there"

        assert await registry.find_matching_command("help") is not None

    def test_empty_file(self, registry, write_yaml):
        """An empty file registers nothing."""
        assert load_command_map(registry, write_yaml("")) == []


class TestErrors:
    """Malformed command maps."""

    def test_missing_file(self, registry, tmp_path):
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_command_map(registry, tmp_path / "nope.yaml")

    @pytest.mark.parametrize("text", [
        "commands: [unclosed",
        "- trigger: add",
        "commands: add",
        "commands:\n  - add",
        "commands:\n  - signature: '<a>'",
        "commands:\n  - trigger: add\n    aliases: [plus]",
        "commands:\n  - trigger: 5",
        "commands:\n  - trigger: add\n    signature: {a: b}",
        "commands:\n  - trigger: add\n    prefix: 5",
        "commands:\n  - trigger: add\n    signature: '[a] <b>'",
    ])
    def test_rejected(self, registry, write_yaml, text):
        """Every malformed entry is a ConfigError."""
        with pytest.raises(ConfigError):
            load_command_map(registry, write_yaml(text))
