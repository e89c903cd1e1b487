"""
Signature Parser
----------------
Parses the compact signature grammar into a SignatureMap.

Grammar:
    <name>              required parameter
    [name]              optional parameter
    <name:type>         typed parameter
    <name=default>      parameter with a raw default value
    <name...>           rest parameter, collects remaining tokens
    <name$>             catch-all parameter, captures the remaining raw text
    -name               switch option
    -name|n             option with a one-character shortcut
    -name:type=default  valued option with a default

Quoted spans ('...' or "...") are literal, so defaults and type names may
contain spaces or metacharacters. Example:

    parse_signature("<user> [reason='no reason given'] -silent|s -days:number=7")
"""

from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

from cmdmatch.core.errors import ConfigError
from cmdmatch.commands.converters import DEFAULT_TYPE_CONVERTERS
from cmdmatch.commands.models import OptionSpec, ParameterSpec, Spec, TypeConverter

QUOTE_CHARS = ("'", '"')
REST_MARKER = "..."
CLOSERS = {"<": ">", "[": "]"}


class ScanState(Enum):
    """What the literal being accumulated will become when flushed."""
    NONE = "none"
    NAME = "name"
    TYPE = "type"
    VALUE = "value"
    SHORTCUT = "shortcut"


class ItemKind(Enum):
    PARAMETER = "parameter"
    OPTION = "option"


class _SignatureScanner:
    """Single-pass character scanner. One instance per parse."""

    def __init__(self, text: str, types: Mapping[str, TypeConverter], default_type: str):
        self.text = text
        self.chars = list(text)
        self.types = types
        self.default_type = default_type

        self.result: Dict[str, Spec] = {}
        self.state = ScanState.NONE
        self.item: Optional[ItemKind] = None
        self.closer: Optional[str] = None
        self.fields: Dict[str, object] = {}
        self.name = ""
        self.literal: List[str] = []
        self.quote: Optional[str] = None
        self.pos = 0

        self._dispatch: Dict[str, Callable[[str], None]] = {
            "<": self._open_parameter,
            "[": self._open_parameter,
            ">": self._close_parameter,
            "]": self._close_parameter,
            "-": self._open_option,
            "|": self._start_shortcut,
            ":": self._start_type,
            "=": self._start_value,
            "$": self._mark_catch_all,
            ".": self._maybe_mark_rest,
        }

    # -- driver --------------------------------------------------------

    def run(self) -> Dict[str, Spec]:
        while self.pos < len(self.chars):
            char = self.chars[self.pos]

            if self.quote is not None:
                if char == self.quote:
                    self.quote = None
                else:
                    self.literal.append(char)
            elif char in QUOTE_CHARS:
                if self.item is None:
                    self._unexpected(char)
                self.quote = char
            elif char.isspace():
                self._whitespace(char)
            else:
                self._dispatch.get(char, self._literal)(char)

            self.pos += 1

        if self.quote is not None:
            raise ConfigError(f"Unterminated quote at the end of '{self.text}'")

        if self.item is ItemKind.OPTION:
            self._flush()
            self._save_option()
        elif self.item is ItemKind.PARAMETER:
            raise ConfigError(f"Unterminated parameter at the end of '{self.text}'")

        return self.result

    # -- handlers ------------------------------------------------------

    def _literal(self, char: str) -> None:
        if self.item is None:
            self._unexpected(char)
        self.literal.append(char)

    def _whitespace(self, char: str) -> None:
        if self.item is ItemKind.OPTION:
            self._flush()
            self._save_option()
        elif self.item is ItemKind.PARAMETER:
            self.literal.append(char)

    def _open_parameter(self, char: str) -> None:
        if self.item is not None:
            self._unexpected(char)
        self.item = ItemKind.PARAMETER
        self.state = ScanState.NAME
        self.closer = CLOSERS[char]
        self.fields = {"required": char == "<"}

    def _close_parameter(self, char: str) -> None:
        if self.item is not ItemKind.PARAMETER or char != self.closer:
            self._unexpected(char)
        self._flush()
        self._save_parameter()

    def _open_option(self, char: str) -> None:
        if self.item is not None:
            # Inside an item a dash is ordinary text, e.g. <dry-run> or =-1
            self.literal.append(char)
            return
        self.item = ItemKind.OPTION
        self.state = ScanState.NAME
        self.fields = {}

    def _start_shortcut(self, char: str) -> None:
        if self.item is not ItemKind.OPTION or self.state is not ScanState.NAME:
            self._literal(char)
            return
        self._flush()
        self.state = ScanState.SHORTCUT

    def _start_type(self, char: str) -> None:
        if self.item is None:
            self._unexpected(char)
        self._flush()
        self.state = ScanState.TYPE
        if self.item is ItemKind.OPTION:
            self.fields["is_switch"] = False

    def _start_value(self, char: str) -> None:
        if self.item is None:
            self._unexpected(char)
        self._flush()
        self.state = ScanState.VALUE

    def _mark_catch_all(self, char: str) -> None:
        if self.item is not ItemKind.PARAMETER:
            self._unexpected(char)
        self._flush()
        self.fields["catch_all"] = True

    def _maybe_mark_rest(self, char: str) -> None:
        if "".join(self.chars[self.pos:self.pos + len(REST_MARKER)]) != REST_MARKER:
            self._literal(char)
            return
        if self.item is not ItemKind.PARAMETER:
            self._unexpected(char)
        self._flush()
        self.fields["rest"] = True
        self.pos += len(REST_MARKER) - 1

    # -- helpers -------------------------------------------------------

    def _unexpected(self, char: str) -> None:
        raise ConfigError(f"Unexpected '{char}' at position {self.pos} in '{self.text}'")

    def _flush(self) -> None:
        if not self.literal:
            return

        literal = "".join(self.literal)
        self.literal = []

        if self.state is ScanState.NAME:
            self.name = literal
        elif self.state is ScanState.TYPE:
            if literal not in self.types:
                raise ConfigError(f"Unknown type: {literal}")
            self.fields["type"] = self.types[literal]
        elif self.state is ScanState.VALUE:
            self.fields["default"] = literal
        elif self.state is ScanState.SHORTCUT:
            self.fields["shortcut"] = literal
        else:
            raise ConfigError(f"Can't flush '{literal}' outside a parameter or option")

    def _store(self, spec: Spec) -> None:
        if not self.name:
            raise ConfigError(f"Missing name near position {self.pos} in '{self.text}'")
        if self.name in self.result:
            raise ConfigError(f"Duplicate name in signature: {self.name}")

        self.result[self.name] = spec

        self.name = ""
        self.fields = {}
        self.item = None
        self.closer = None
        self.state = ScanState.NONE

    def _save_parameter(self) -> None:
        fields = {"type": self.types[self.default_type], **self.fields}
        self._store(ParameterSpec(**fields))

    def _save_option(self) -> None:
        is_switch = self.fields.get("is_switch", True)
        base_type = DEFAULT_TYPE_CONVERTERS["bool"] if is_switch else self.types[self.default_type]
        fields = {"type": base_type, "is_switch": True, **self.fields}
        self._store(OptionSpec(**fields))


def parse_signature(
    text: str,
    types: Optional[Mapping[str, TypeConverter]] = None,
    default_type: str = "string",
) -> Dict[str, Spec]:
    """
    Parse a signature string into an ordered name -> spec mapping.

    Raises:
        ConfigError: unknown type, default type missing from `types`,
            unterminated parameter or quote, stray characters.
    """
    if types is None:
        types = DEFAULT_TYPE_CONVERTERS

    if default_type not in types:
        raise ConfigError(f"Default type does not exist: {default_type}")

    return _SignatureScanner(text, types, default_type).run()
