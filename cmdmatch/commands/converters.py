"""
Default Type Converters
-----------------------
Converters turn a raw token string into a typed value. Each one is called as
converter(value, context) and may be a plain function or a coroutine
function. Raising TypeConversionError marks the input as unconvertible; any
other exception is treated as a bug and propagates.
"""

import math
from typing import Any, Callable, Dict

from cmdmatch.core.errors import TypeConversionError
from cmdmatch.commands.models import OptionSpec, ParameterSpec, TypeConverter


def to_string(value: Any, context: Any = None) -> str:
    return str(value)


def to_number(value: Any, context: Any = None) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise TypeConversionError("Value is not a number") from None

    if math.isnan(result):
        raise TypeConversionError("Value is not a number")

    return result


def to_bool(value: Any, context: Any = None) -> bool:
    return value == "true" or value == "1"


DEFAULT_TYPE_CONVERTERS: Dict[str, TypeConverter] = {
    "string": to_string,
    "number": to_number,
    "bool": to_bool,
}


def create_type_helper(converter: TypeConverter) -> Callable[..., ParameterSpec]:
    """
    Build a helper that creates ParameterSpecs of one type.

    Example:
        integer = create_type_helper(lambda value, ctx: int(value))
        registry.add("roll", {"sides": integer(required=False)})
    """
    def helper(**kwargs: Any) -> ParameterSpec:
        return ParameterSpec(type=converter, **kwargs)

    return helper


string = create_type_helper(to_string)
number = create_type_helper(to_number)
bool_ = create_type_helper(to_bool)


def switch_option(**kwargs: Any) -> OptionSpec:
    """Create a switch option."""
    return OptionSpec(type=to_bool, is_switch=True, **kwargs)
