"""
Error Handling Module
---------------------
Two disjoint error tiers for the command engine.

- Configuration errors are programmer mistakes. They are raised synchronously
  from registration and grammar parsing and must never be absorbed.
- Match errors are input-driven. They are returned as data from the matcher,
  never raised, so one failing candidate cannot abort the search.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from cmdmatch.commands.models import CommandDefinition


class ErrorCategory(Enum):
    """Categories of errors for handling decisions."""
    CONFIGURATION = auto()         # Invalid registration or grammar
    UNKNOWN_OPTION = auto()        # -name not declared by the signature
    SWITCH_WITH_VALUE = auto()     # -switch=value
    MISSING_OPTION_VALUE = auto()  # -option at end of input
    TOO_MANY_ARGUMENTS = auto()    # More positionals than parameters
    MISSING_ARGUMENT = auto()      # Required parameter never bound
    MISSING_OPTION = auto()        # Required option never bound
    CONVERSION_FAILED = auto()     # Converter raised TypeConversionError


class CommandManagerError(Exception):
    """Base class for every error the engine raises."""

    category: ErrorCategory = ErrorCategory.CONFIGURATION


class ConfigError(CommandManagerError, ValueError):
    """
    Invalid configuration.

    Raised for unknown type names, ambiguous optional parameters, misplaced
    rest/catch-all parameters and unterminated grammar text.
    """


class TypeConversionError(CommandManagerError):
    """
    Raised by a type converter when a raw value cannot be converted.

    This is the only converter failure the matcher recovers from. Any other
    exception raised by a converter propagates to the caller.
    """

    category = ErrorCategory.CONVERSION_FAILED


@dataclass
class MatchError:
    """
    Soft, returned error describing why an input did not bind.

    `definition` is filled in by the matcher once the error leaves the binder.
    """
    message: str
    category: ErrorCategory
    definition: Optional["CommandDefinition"] = None
    field: Optional[str] = None

    def with_definition(self, definition: "CommandDefinition") -> "MatchError":
        """Return a copy attributed to the given definition."""
        return MatchError(
            message=self.message,
            category=self.category,
            definition=definition,
            field=self.field,
        )

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"MatchError({self.category.name}: {self.message})"


def is_error(result: Any) -> bool:
    """Check whether a match result is a MatchError."""
    return isinstance(result, MatchError)


# Convenience functions

def unknown_option_error(prefix: str, name: str) -> MatchError:
    """Create an unknown option error."""
    return MatchError(
        message=f"Unknown option: {prefix}{name}",
        category=ErrorCategory.UNKNOWN_OPTION,
        field=name,
    )


def switch_with_value_error(prefix: str, name: str) -> MatchError:
    """Create an error for a switch that was given a value."""
    return MatchError(
        message=f"Switch options can't have values: {prefix}{name}",
        category=ErrorCategory.SWITCH_WITH_VALUE,
        field=name,
    )


def missing_option_value_error(prefix: str, name: str) -> MatchError:
    """Create an error for a valued option with nothing after it."""
    return MatchError(
        message=f"No value for option: {prefix}{name}",
        category=ErrorCategory.MISSING_OPTION_VALUE,
        field=name,
    )


def too_many_arguments_error(expected: int) -> MatchError:
    """Create a too-many-arguments error."""
    return MatchError(
        message=f"Too many arguments, expected {expected}",
        category=ErrorCategory.TOO_MANY_ARGUMENTS,
    )


def missing_argument_error(name: str) -> MatchError:
    """Create a missing required argument error."""
    return MatchError(
        message=f"Missing required argument: {name}",
        category=ErrorCategory.MISSING_ARGUMENT,
        field=name,
    )


def missing_option_error(name: str) -> MatchError:
    """Create a missing required option error."""
    return MatchError(
        message=f"Missing required option: {name}",
        category=ErrorCategory.MISSING_OPTION,
        field=name,
    )


def conversion_error(kind: str, name: str, exception: Exception) -> MatchError:
    """Create a conversion error from a TypeConversionError."""
    return MatchError(
        message=f"Could not convert {kind} {name}'s type: {exception}",
        category=ErrorCategory.CONVERSION_FAILED,
        field=name,
    )
