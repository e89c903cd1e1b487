"""
Command Map Loader
------------------
Registers commands described in a YAML file.

Example commands.yaml:

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

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Union

import yaml

from cmdmatch.core.errors import ConfigError
from cmdmatch.commands.models import CommandConfig, CommandDefinition
from cmdmatch.infra.logging import get_logger

if TYPE_CHECKING:
    from cmdmatch.commands.registry import CommandRegistry

ENTRY_FIELDS = {"trigger", "signature", "prefix"}

logger = get_logger("commands.loader")


def load_command_map(
    registry: "CommandRegistry",
    path: Union[str, Path],
) -> List[CommandDefinition]:
    """
    Load command definitions from a YAML file into `registry`.

    Returns the created definitions in file order.

    Raises:
        FileNotFoundError: if the file does not exist
        ConfigError: on malformed YAML or entries
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Command map not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Command map root must be a mapping: {path}")

    commands = data.get("commands", [])
    if not isinstance(commands, list):
        raise ConfigError(f"'commands' must be a list in {path}")

    definitions = [
        _add_entry(registry, entry, index)
        for index, entry in enumerate(commands)
    ]

    logger.info(f"Loaded {len(definitions)} commands from {path}")
    return definitions


def _add_entry(registry: "CommandRegistry", entry: Any, index: int) -> CommandDefinition:
    if not isinstance(entry, dict):
        raise ConfigError(f"Command #{index} must be a mapping")

    unknown = set(entry) - ENTRY_FIELDS
    if unknown:
        raise ConfigError(f"Command #{index} has unknown fields: {', '.join(sorted(unknown))}")

    if "trigger" not in entry:
        raise ConfigError(f"Command #{index} is missing 'trigger'")

    trigger = entry["trigger"]
    triggers = trigger if isinstance(trigger, list) else [trigger]
    if not triggers or not all(isinstance(t, str) for t in triggers):
        raise ConfigError(f"Command #{index} triggers must be strings")

    signature = entry.get("signature")
    signatures = signature if isinstance(signature, list) else ([] if signature is None else [signature])
    if not all(isinstance(s, str) for s in signatures):
        raise ConfigError(f"Command #{index} signatures must be strings")

    config_fields: Dict[str, Any] = {}
    if "prefix" in entry:
        prefix = entry["prefix"]
        if prefix is not None and not isinstance(prefix, str):
            raise ConfigError(f"Command #{index} prefix must be a string or null")
        config_fields["prefix"] = prefix

    config = CommandConfig(**config_fields) if config_fields else None
    return registry.add(triggers, signatures, config)
