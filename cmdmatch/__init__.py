# cmdmatch - Text command matching for chat bots and dispatchers
# Matches a line of text against registered commands and extracts typed
# arguments and options. Commands are never executed here.

from .core import (
    ErrorCategory, CommandManagerError, ConfigError, TypeConversionError,
    MatchError, is_error,
)
from .commands import (
    Token, ParameterSpec, OptionSpec, CommandConfig, CommandDefinition,
    MatchedValue, MatchResult, tokenize, parse_signature,
    DEFAULT_TYPE_CONVERTERS, create_type_helper, string, number, bool_,
    switch_option, CommandRegistry, load_command_map,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "ErrorCategory", "CommandManagerError", "ConfigError",
    "TypeConversionError", "MatchError", "is_error",
    # Model
    "Token", "ParameterSpec", "OptionSpec", "CommandConfig",
    "CommandDefinition", "MatchedValue", "MatchResult",
    # Engine
    "tokenize", "parse_signature", "CommandRegistry", "load_command_map",
    # Types
    "DEFAULT_TYPE_CONVERTERS", "create_type_helper", "string", "number",
    "bool_", "switch_option",
]
