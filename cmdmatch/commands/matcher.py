"""
Command Matcher
---------------
Matches one input string against registered command definitions.

Per definition: pre-filters -> prefix -> trigger -> tokenize -> bind each
signature overload in order -> post-filters. The first definition that binds
and passes its post-filters wins.

Match errors are returned, never raised. The only awaits are filter calls and
type converter calls, and they run strictly one after another so the first
conversion failure stops later conversions.
"""

import inspect
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from cmdmatch.core.errors import (
    MatchError, TypeConversionError, conversion_error, missing_argument_error,
    missing_option_error, missing_option_value_error, switch_with_value_error,
    too_many_arguments_error, unknown_option_error,
)
from cmdmatch.commands.converters import to_bool, to_string
from cmdmatch.commands.models import (
    CommandDefinition, MatchedValue, MatchResult, OptionSpec, ParameterSpec,
    SignatureMap, Token, TypeConverter,
)
from cmdmatch.commands.tokenizer import tokenize
from cmdmatch.infra.logging import MatchContext, get_logger

# name[=value] after the option prefix
OPTION_BODY_PATTERN = re.compile(r"(\S*?)(?:=(.+))?", re.DOTALL)

BindResult = Union[Dict[str, MatchedValue], MatchError]


async def resolve(value: Any) -> Any:
    """Await `value` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


class Matcher:
    """
    Stateless matching engine. The registry owns one per option prefix set.
    """

    def __init__(
        self,
        option_prefixes: Sequence[str],
        default_converter: TypeConverter = to_string,
    ):
        # Longest first, so "--" wins over "-" for "--name"
        self.option_prefixes: List[str] = sorted(option_prefixes, key=len, reverse=True)
        self.default_converter = default_converter
        self._logger = get_logger("commands.matcher")

    async def find(
        self,
        definitions: Iterable[CommandDefinition],
        text: str,
        context: Any = None,
    ) -> Union[MatchResult, MatchError, None]:
        """
        Find the first definition matching `text`.

        Returns the MatchResult, or the last MatchError if every definition
        that got as far as binding failed, or None if nothing matched at all.
        """
        with MatchContext():
            only_errors = True
            last_error: Optional[MatchError] = None

            for definition in definitions:
                if not await self._run_filters(definition.pre_filters, definition, context):
                    self._logger.debug(
                        f"Pre-filter rejected command {definition.id}",
                        extra={"command_id": definition.id},
                    )
                    continue

                result = await self.try_matching(definition, text, context)
                if result is None:
                    continue

                if isinstance(result, MatchError):
                    last_error = result
                    continue

                only_errors = False

                if not await self._run_filters(definition.post_filters, result, context):
                    self._logger.debug(
                        f"Post-filter rejected command {definition.id}",
                        extra={"command_id": definition.id},
                    )
                    continue

                self._logger.info(
                    f"Matched command {definition.id}",
                    extra={"command_id": definition.id},
                )
                return result

            if only_errors and last_error is not None:
                return last_error

            return None

    async def try_matching(
        self,
        definition: CommandDefinition,
        text: str,
        context: Any = None,
    ) -> Union[MatchResult, MatchError, None]:
        """
        Match `text` against one definition, without running its filters.

        Returns None when the prefix or trigger does not match.
        """
        remaining = text

        if definition.prefix_matcher is not None:
            prefix_match = definition.prefix_matcher.match(remaining)
            if not prefix_match:
                return None
            remaining = remaining[prefix_match.end():]

        for trigger in definition.trigger_matchers:
            trigger_match = trigger.match(remaining)
            if trigger_match:
                remaining = remaining[trigger_match.end():]
                break
        else:
            return None

        tokens = tokenize(remaining)
        signatures: Sequence[SignatureMap] = definition.signatures or [{}]

        result: BindResult = {}
        for index, signature in enumerate(signatures):
            result = await self.bind(signature, tokens, remaining, context)
            if not isinstance(result, MatchError):
                break
            self._logger.debug(
                f"Command {definition.id} overload {index} failed: {result.message}",
                extra={
                    "command_id": definition.id,
                    "error_category": result.category.name,
                    "field": result.field,
                },
            )

        if isinstance(result, MatchError):
            return result.with_definition(definition)

        return MatchResult(definition=definition, values=result)

    async def bind(
        self,
        signature: SignatureMap,
        tokens: Sequence[Token],
        text: str,
        context: Any = None,
    ) -> BindResult:
        """
        Bind tokens to one signature and convert the bound values.

        `text` is the string the tokens were cut from; catch-all parameters
        slice it from their first token's offset.
        """
        parameters: List[Tuple[str, ParameterSpec]] = []
        options: List[Tuple[str, OptionSpec]] = []
        for name, spec in signature.items():
            if spec.kind == "option":
                options.append((name, spec))
            else:
                parameters.append((name, spec))

        values: Dict[str, MatchedValue] = {}
        param_index = 0
        i = 0

        while i < len(tokens):
            token = tokens[i]
            next_param = parameters[param_index][1] if param_index < len(parameters) else None

            if not token.was_quoted:
                parsed = self._parse_option(token.text)
                if parsed is not None:
                    prefix, opt_name, inline_value = parsed
                    found = self._find_option(options, opt_name)

                    if found is not None:
                        name, option = found
                        if option.is_switch:
                            if inline_value is not None:
                                return switch_with_value_error(prefix, name)
                            value: Any = True
                        elif inline_value is None:
                            if i + 1 >= len(tokens):
                                return missing_option_value_error(prefix, name)
                            # Consume the next token as the value
                            i += 1
                            value = tokens[i].text
                        else:
                            value = inline_value

                        values[name] = MatchedValue(source=option, value=value)
                        i += 1
                        continue

                    # Unknown option text is only absorbable by a rest or catch-all tail
                    if next_param is None or not (next_param.rest or next_param.catch_all):
                        return unknown_option_error(prefix, opt_name)

            if next_param is None:
                return too_many_arguments_error(len(parameters))

            name = parameters[param_index][0]

            if next_param.rest:
                values[name] = MatchedValue(
                    source=next_param,
                    value=[t.text for t in tokens[i:]],
                )
                break

            if next_param.catch_all:
                values[name] = MatchedValue(source=next_param, value=text[token.offset:])
                break

            values[name] = MatchedValue(source=next_param, value=token.text)
            param_index += 1
            i += 1

        for name, option in options:
            if name in values:
                continue
            if option.has_default:
                values[name] = MatchedValue(source=option, value=option.default, used_default=True)
            elif option.required:
                return missing_option_error(name)

        for name, param in parameters:
            if name in values:
                continue
            if param.has_default:
                values[name] = MatchedValue(source=param, value=param.default, used_default=True)
            elif param.required:
                return missing_argument_error(name)

        return await self._convert(values, context)

    async def _convert(self, values: Dict[str, MatchedValue], context: Any) -> BindResult:
        """Run converters in binding order, stopping at the first failure."""
        for name, matched in values.items():
            if matched.used_default:
                continue

            source = matched.source
            if source.kind == "option" and source.is_switch:
                continue

            converter = source.type or self._fallback_converter(source)
            kind = "argument" if matched.is_argument else "option"

            try:
                if source.kind == "parameter" and source.rest:
                    converted = []
                    for raw in matched.value:
                        converted.append(await resolve(converter(raw, context)))
                    matched.value = converted
                else:
                    matched.value = await resolve(converter(matched.value, context))
            except TypeConversionError as e:
                return conversion_error(kind, name, e)

        return values

    def _fallback_converter(self, source: Union[ParameterSpec, OptionSpec]) -> TypeConverter:
        if source.kind == "option" and source.is_switch:
            return to_bool
        return self.default_converter

    def _parse_option(self, text: str) -> Optional[Tuple[str, str, Optional[str]]]:
        """Split option-looking text into (prefix, name, inline value)."""
        for prefix in self.option_prefixes:
            if text.startswith(prefix):
                body = OPTION_BODY_PATTERN.fullmatch(text[len(prefix):])
                if body is None:
                    return None
                return prefix, body.group(1), body.group(2)
        return None

    @staticmethod
    def _find_option(
        options: Sequence[Tuple[str, OptionSpec]],
        name: str,
    ) -> Optional[Tuple[str, OptionSpec]]:
        for option_name, option in options:
            if option_name == name or option.shortcut == name:
                return option_name, option
        return None

    @staticmethod
    async def _run_filters(filters: Sequence[Any], subject: Any, context: Any) -> bool:
        for filter_fn in filters:
            if not await resolve(filter_fn(subject, context)):
                return False
        return True
