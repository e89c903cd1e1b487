"""
Command Registry
----------------
Ordered, in-memory collection of command definitions.

Registration validates and normalizes triggers, prefixes and signatures up
front, so every configuration mistake surfaces as a ConfigError from add()
rather than as odd behaviour at match time. Matching is delegated to the
Matcher.

The registry does no locking. Adding or removing commands while a
find_matching_command() call is in flight is the caller's responsibility.
"""

import dataclasses
import re
from pathlib import Path
from types import MappingProxyType
from typing import (
    Any, Dict, List, Mapping, Optional, Pattern, Sequence, Union,
)

from cmdmatch.core.errors import ConfigError, MatchError
from cmdmatch.commands.converters import DEFAULT_TYPE_CONVERTERS, to_bool
from cmdmatch.commands.loader import load_command_map
from cmdmatch.commands.matcher import Matcher
from cmdmatch.commands.models import (
    UNSET, CommandConfig, CommandDefinition, MatchResult, OptionSpec,
    ParameterSpec, SignatureMap, Spec, TypeConverter,
)
from cmdmatch.commands.signature import parse_signature
from cmdmatch.infra.config import DEFAULT_OPTION_PREFIXES, ConfigManager, MatcherSettings
from cmdmatch.infra.logging import get_logger

Trigger = Union[str, Pattern]
SignatureInput = Union[str, Mapping[str, Any]]

PARAMETER_FIELDS = {"type", "required", "default", "rest", "catch_all"}
OPTION_FIELDS = {"type", "shortcut", "is_switch", "default", "required"}


class CommandRegistry:
    """
    Registry of text commands with prefix/trigger/signature matching.

    Example:
        registry = CommandRegistry(prefix="!")
        registry.add("add", "<first:number> <second:number>")
        registry.add(["echo", "say"], {"text": string(catch_all=True)})

        result = await registry.find_matching_command("!add 1 2")
    """

    def __init__(
        self,
        prefix: Union[str, Pattern, None] = None,
        option_prefixes: Optional[Sequence[str]] = None,
        types: Optional[Mapping[str, TypeConverter]] = None,
        default_type: str = "string",
    ):
        self._commands: List[CommandDefinition] = []
        self._command_id = 0
        self._logger = get_logger("commands.registry")

        self._types: Dict[str, TypeConverter] = dict(
            types if types is not None else DEFAULT_TYPE_CONVERTERS
        )
        if default_type not in self._types:
            raise ConfigError(f'Default type "{default_type}" not found in types')
        self._default_type = default_type

        prefixes = list(option_prefixes if option_prefixes is not None else DEFAULT_OPTION_PREFIXES)
        if not prefixes or any(not p for p in prefixes):
            raise ConfigError("Option prefixes must be a non-empty list of non-empty strings")

        self._original_default_prefix = prefix
        self._default_prefix = self._compile_prefix(prefix) if prefix is not None else None

        self._matcher = Matcher(prefixes, default_converter=self._types[default_type])

    @classmethod
    def from_settings(
        cls,
        settings: MatcherSettings,
        types: Optional[Mapping[str, TypeConverter]] = None,
    ) -> "CommandRegistry":
        """Build a registry from validated settings."""
        return cls(
            prefix=settings.prefix,
            option_prefixes=settings.option_prefixes,
            types=types,
            default_type=settings.default_type,
        )

    @classmethod
    def from_config(
        cls,
        config_path: str = "config.yaml",
        types: Optional[Mapping[str, TypeConverter]] = None,
    ) -> "CommandRegistry":
        """Build a registry from the 'matcher' section of a YAML config file."""
        return cls.from_settings(ConfigManager(config_path).matcher_settings(), types)

    # -- properties ----------------------------------------------------

    @property
    def default_prefix(self) -> Optional[Pattern]:
        """Compiled default prefix applied to commands without their own."""
        return self._default_prefix

    @property
    def original_default_prefix(self) -> Union[str, Pattern, None]:
        """The default prefix as it was passed in."""
        return self._original_default_prefix

    @property
    def option_prefixes(self) -> List[str]:
        """Option prefixes, longest first."""
        return list(self._matcher.option_prefixes)

    @property
    def types(self) -> Dict[str, TypeConverter]:
        return dict(self._types)

    @property
    def default_type(self) -> str:
        return self._default_type

    # -- registration --------------------------------------------------

    def add(
        self,
        trigger: Union[Trigger, Sequence[Trigger]],
        signature: Union[SignatureInput, Sequence[SignatureInput], None] = None,
        config: Union[CommandConfig, Mapping[str, Any], None] = None,
    ) -> CommandDefinition:
        """
        Register a command and return its definition.

        Args:
            trigger: Command name, regex, or a list of either (aliases)
            signature: A signature map or grammar string, or a list of them
                (overloads, tried in order)
            config: CommandConfig or a mapping of its fields

        Raises:
            ConfigError: on any invalid trigger, signature or config
        """
        command_config = self._normalize_config(config)

        prefix_matcher = self._default_prefix
        original_prefix = self._original_default_prefix
        if command_config is not None and command_config.prefix is not UNSET:
            original_prefix = command_config.prefix
            prefix_matcher = (
                self._compile_prefix(command_config.prefix)
                if command_config.prefix is not None else None
            )

        triggers = self._as_list(trigger)
        if not triggers:
            raise ConfigError("At least one trigger is required")
        trigger_matchers = [self._compile_trigger(t) for t in triggers]

        signatures = [self._normalize_signature(s) for s in self._as_list(signature)]
        for sig in signatures:
            self._validate_signature(sig)

        self._command_id += 1
        definition = CommandDefinition(
            id=self._command_id,
            trigger_matchers=trigger_matchers,
            original_triggers=triggers,
            prefix_matcher=prefix_matcher,
            original_prefix=original_prefix,
            signatures=signatures,
            pre_filters=list(command_config.pre_filters) if command_config else [],
            post_filters=list(command_config.post_filters) if command_config else [],
            config=command_config,
        )

        self._commands.append(definition)
        self._logger.info(
            f"Registered command {definition.id}: {triggers!r}",
            extra={"command_id": definition.id},
        )

        return definition

    def remove(self, definition_or_id: Union[CommandDefinition, int]) -> None:
        """Remove a command by definition or id. Unknown commands are ignored."""
        for index, definition in enumerate(self._commands):
            if isinstance(definition_or_id, CommandDefinition):
                found = definition is definition_or_id
            else:
                found = definition.id == definition_or_id

            if found:
                del self._commands[index]
                self._logger.info(
                    f"Removed command {definition.id}",
                    extra={"command_id": definition.id},
                )
                return

    def get(self, command_id: int) -> Optional[CommandDefinition]:
        """Get a command definition by id."""
        for definition in self._commands:
            if definition.id == command_id:
                return definition
        return None

    def get_all(self) -> List[CommandDefinition]:
        """Snapshot of all definitions in registration order."""
        return list(self._commands)

    def load(self, path: Union[str, Path]) -> List[CommandDefinition]:
        """Register every command in a YAML command map."""
        return load_command_map(self, path)

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, item: Union[CommandDefinition, int]) -> bool:
        if isinstance(item, CommandDefinition):
            return any(d is item for d in self._commands)
        return self.get(item) is not None

    # -- matching ------------------------------------------------------

    async def find_matching_command(
        self,
        text: str,
        context: Any = None,
    ) -> Union[MatchResult, MatchError, None]:
        """
        Find the first registered command matching `text`.

        Returns:
            MatchResult on success; the last MatchError if every command
            that reached argument binding failed; None if no command's
            prefix and trigger matched.
        """
        return await self._matcher.find(self.get_all(), text, context)

    async def try_matching_command(
        self,
        definition: CommandDefinition,
        text: str,
        context: Any = None,
    ) -> Union[MatchResult, MatchError, None]:
        """Match one definition without filters, for custom orchestration."""
        return await self._matcher.try_matching(definition, text, context)

    # -- normalization -------------------------------------------------

    @staticmethod
    def _as_list(value: Any) -> List[Any]:
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return list(value)
        return [value]

    @staticmethod
    def _compile_prefix(prefix: Union[str, Pattern]) -> Pattern:
        if isinstance(prefix, str):
            return re.compile(re.escape(prefix), re.IGNORECASE)
        if isinstance(prefix, re.Pattern):
            return re.compile(f"(?:{prefix.pattern})", prefix.flags)
        raise ConfigError(f"Prefix must be a string or compiled regex, got {prefix!r}")

    @staticmethod
    def _compile_trigger(trigger: Trigger) -> Pattern:
        # The trigger must end at whitespace or end of input, so "s" never matches "suspend"
        if isinstance(trigger, str):
            if not trigger:
                raise ConfigError("Trigger must not be empty")
            return re.compile(rf"{re.escape(trigger)}(?=\s|$)", re.IGNORECASE)
        if isinstance(trigger, re.Pattern):
            return re.compile(rf"(?:{trigger.pattern})(?=\s|$)", trigger.flags)
        raise ConfigError(f"Trigger must be a string or compiled regex, got {trigger!r}")

    @staticmethod
    def _normalize_config(
        config: Union[CommandConfig, Mapping[str, Any], None],
    ) -> Optional[CommandConfig]:
        if config is None or isinstance(config, CommandConfig):
            return config
        if isinstance(config, Mapping):
            try:
                return CommandConfig(**config)
            except TypeError as e:
                raise ConfigError(f"Invalid command config: {e}") from e
        raise ConfigError(f"Invalid command config: {config!r}")

    def _normalize_signature(self, signature: SignatureInput) -> SignatureMap:
        if isinstance(signature, str):
            parsed = parse_signature(signature, self._types, self._default_type)
        elif isinstance(signature, Mapping):
            parsed = {}
            for name, spec in signature.items():
                if not isinstance(name, str) or not name:
                    raise ConfigError(f"Invalid parameter name: {name!r}")
                parsed[name] = self._normalize_spec(name, spec)
        else:
            raise ConfigError(f"Signature must be a string or mapping, got {signature!r}")

        return MappingProxyType(parsed)

    def _normalize_spec(self, name: str, spec: Any) -> Spec:
        if isinstance(spec, Mapping):
            spec = self._spec_from_mapping(name, spec)
        elif not isinstance(spec, (ParameterSpec, OptionSpec)):
            raise ConfigError(f"Invalid spec for {name}: {spec!r}")

        if spec.type is None:
            if spec.kind == "option" and spec.is_switch:
                converter = to_bool
            else:
                converter = self._types[self._default_type]
            spec = dataclasses.replace(spec, type=converter)
        elif not callable(spec.type):
            raise ConfigError(f"Type of {name} is not callable: {spec.type!r}")

        return spec

    def _spec_from_mapping(self, name: str, data: Mapping[str, Any]) -> Spec:
        fields = dict(data)
        is_option = bool(fields.pop("option", False))
        allowed = OPTION_FIELDS if is_option else PARAMETER_FIELDS

        unknown = set(fields) - allowed
        if unknown:
            raise ConfigError(f"Unknown fields for {name}: {', '.join(sorted(unknown))}")

        if isinstance(fields.get("type"), str):
            type_name = fields["type"]
            if type_name not in self._types:
                raise ConfigError(f"Unknown type: {type_name}")
            fields["type"] = self._types[type_name]

        if is_option:
            # Like the grammar, an option with an explicit type takes a value
            fields.setdefault("is_switch", fields.get("type") is None)
            return OptionSpec(**fields)

        return ParameterSpec(**fields)

    @staticmethod
    def _validate_signature(signature: SignatureMap) -> None:
        had_optional = False
        had_rest = False
        had_catch_all = False

        for name, spec in signature.items():
            if spec.kind != "parameter":
                continue

            if not spec.required:
                if had_optional:
                    raise ConfigError("Can only have 1 optional parameter to avoid ambiguity")
                had_optional = True
            elif had_optional:
                raise ConfigError(f"Optional parameter must come last (found {name} after it)")

            if had_rest:
                raise ConfigError("Rest parameter must come last")
            if had_catch_all:
                raise ConfigError("Catch-all parameter must come last")

            if spec.rest and spec.catch_all:
                raise ConfigError(f"Parameter {name} can't be both rest and catch-all")

            had_rest = had_rest or spec.rest
            had_catch_all = had_catch_all or spec.catch_all
