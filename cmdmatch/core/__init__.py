# Core module - Error taxonomy shared by every layer
# Configuration errors are raised, match errors are returned

from .errors import (
    ErrorCategory, CommandManagerError, ConfigError, TypeConversionError,
    MatchError, is_error,
)

__all__ = [
    "ErrorCategory", "CommandManagerError", "ConfigError",
    "TypeConversionError", "MatchError", "is_error",
]
