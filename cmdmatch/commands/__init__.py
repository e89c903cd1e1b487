# Commands module - Tokenizer, signature grammar, registry and matcher
# This module does NOT execute commands, only matches them

from .models import (
    Token, ParameterSpec, OptionSpec, CommandConfig, CommandDefinition,
    MatchedValue, MatchResult, UNSET,
)
from .tokenizer import tokenize
from .signature import parse_signature
from .converters import (
    DEFAULT_TYPE_CONVERTERS, create_type_helper, string, number, bool_,
    switch_option,
)
from .matcher import Matcher
from .registry import CommandRegistry
from .loader import load_command_map

__all__ = [
    "Token", "ParameterSpec", "OptionSpec", "CommandConfig",
    "CommandDefinition", "MatchedValue", "MatchResult", "UNSET",
    "tokenize", "parse_signature",
    "DEFAULT_TYPE_CONVERTERS", "create_type_helper", "string", "number",
    "bool_", "switch_option",
    "Matcher", "CommandRegistry", "load_command_map",
]
