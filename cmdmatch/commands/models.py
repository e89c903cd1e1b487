"""
Command Data Model
------------------
Plain data shared by the tokenizer, signature parser, registry and matcher.

Parameters and options form a tagged union: both carry a `kind` tag so the
binder can dispatch without probing optional fields.
"""

from dataclasses import dataclass, field
from typing import (
    Any, Awaitable, Callable, ClassVar, Dict, List, Mapping, Optional, Pattern,
    Union,
)

TypeConverter = Callable[[Any, Any], Any]
PreFilter = Callable[["CommandDefinition", Any], Union[bool, Awaitable[bool]]]
PostFilter = Callable[["MatchResult", Any], Union[bool, Awaitable[bool]]]


class _Unset:
    """Marker for a config field that was not given at all."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass(frozen=True)
class Token:
    """One positional token cut from an input string."""
    offset: int        # Code point index into the tokenized string
    text: str
    was_quoted: bool = False


@dataclass(frozen=True)
class ParameterSpec:
    """A positional parameter."""
    kind: ClassVar[str] = "parameter"

    type: Optional[TypeConverter] = None  # None until the registry applies its default type
    required: bool = True
    default: Any = None
    rest: bool = False
    catch_all: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not None


@dataclass(frozen=True)
class OptionSpec:
    """
    A -name option.

    Switches never take a value; their presence binds True. Other options take
    their value inline (-name=value) or from the following token.
    """
    kind: ClassVar[str] = "option"

    type: Optional[TypeConverter] = None
    shortcut: Optional[str] = None
    is_switch: bool = True
    default: Any = None
    required: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not None


Spec = Union[ParameterSpec, OptionSpec]
SignatureMap = Mapping[str, Spec]


@dataclass
class CommandConfig:
    """
    Per-command configuration passed to CommandRegistry.add().

    `prefix` left UNSET uses the registry's default prefix; None disables the
    prefix for this command.
    """
    prefix: Union[str, Pattern, None, _Unset] = UNSET
    pre_filters: List[PreFilter] = field(default_factory=list)
    post_filters: List[PostFilter] = field(default_factory=list)
    extra: Any = None


@dataclass(eq=False)
class CommandDefinition:
    """A registered command. Compared by identity."""
    id: int
    trigger_matchers: List[Pattern]
    original_triggers: List[Union[str, Pattern]]
    prefix_matcher: Optional[Pattern]
    original_prefix: Union[str, Pattern, None]
    signatures: List[SignatureMap]
    pre_filters: List[PreFilter] = field(default_factory=list)
    post_filters: List[PostFilter] = field(default_factory=list)
    config: Optional[CommandConfig] = None

    @property
    def extra(self) -> Any:
        return self.config.extra if self.config else None

    def __repr__(self) -> str:
        return f"CommandDefinition(id={self.id}, triggers={self.original_triggers!r})"


@dataclass
class MatchedValue:
    """A bound argument or option value."""
    source: Spec
    value: Any
    used_default: bool = False

    @property
    def is_argument(self) -> bool:
        return self.source.kind == "parameter"


@dataclass
class MatchResult:
    """Successful match of an input against one definition."""
    definition: CommandDefinition
    values: Dict[str, MatchedValue]

    @property
    def arguments(self) -> Dict[str, MatchedValue]:
        return {name: v for name, v in self.values.items() if v.is_argument}

    @property
    def options(self) -> Dict[str, MatchedValue]:
        return {name: v for name, v in self.values.items() if not v.is_argument}

    def get(self, name: str, default: Any = None) -> Any:
        """Converted value for `name`, or `default` if it was not bound."""
        matched = self.values.get(name)
        return matched.value if matched is not None else default

    def __repr__(self) -> str:
        shown = {name: v.value for name, v in self.values.items()}
        return f"MatchResult(id={self.definition.id}, values={shown})"
