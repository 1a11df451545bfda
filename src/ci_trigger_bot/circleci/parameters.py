"""Command text -> CircleCI trigger parameters.

Command arguments look like fastlane options::

    ui_tests device:iPhone5s verbose branch:develop

The first token names the pipeline (or lane). Every other token is either a
``key:value`` pair or a bare flag. Tokens with more than one ``:`` cannot be
split unambiguously and are dropped.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from ci_trigger_bot.errors import MalformedInvocation

OPTION_SEPARATOR = ":"

BRANCH_OPTION = "branch"
VERSION_OPTION = "version"


@dataclass(frozen=True, slots=True)
class BoolParameter:
    value: bool

    def to_json(self) -> bool:
        return self.value

    def to_text(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True, slots=True)
class StringParameter:
    value: str

    def to_json(self) -> str:
        return self.value

    def to_text(self) -> str:
        return self.value


Parameter = BoolParameter | StringParameter
ParameterSet = dict[str, Parameter]


@dataclass(frozen=True, slots=True)
class ParsedArguments:
    """A command's arguments split into a name and its options."""

    name: str
    options: tuple[str, ...] = ()
    parameters: Mapping[str, Parameter] = field(default_factory=dict)

    def option(self, key: str) -> str | None:
        """Return the string value of a ``key:value`` option, if given."""

        parameter = self.parameters.get(key)
        if isinstance(parameter, StringParameter) and parameter.value:
            return parameter.value
        return None

    @property
    def raw_options(self) -> str:
        return " ".join(self.options)


def parse_option(token: str) -> tuple[str, Parameter] | None:
    """Parse one option token; ``None`` means the token is dropped."""

    separators = token.count(OPTION_SEPARATOR)
    if separators == 0:
        return token, BoolParameter(True)
    if separators == 1:
        key, value = token.split(OPTION_SEPARATOR)
        return key, StringParameter(value)
    return None


def parse_arguments(tokens: Sequence[str]) -> ParsedArguments:
    """Split argument tokens into the pipeline/lane name and its parameters.

    Raises:
        MalformedInvocation: If there is no name token.
    """

    if not tokens or not tokens[0].strip():
        raise MalformedInvocation("a pipeline or lane name is required")

    name, *rest = tokens
    parameters: ParameterSet = {}
    for token in rest:
        parsed = parse_option(token)
        if parsed is None:
            continue
        key, parameter = parsed
        parameters[key] = parameter

    return ParsedArguments(name=name, options=tuple(rest), parameters=parameters)


def pipeline_parameters(arguments: ParsedArguments) -> ParameterSet:
    """Parameters for a pipeline-mode trigger.

    The CircleCI config declares one boolean per invocable pipeline, so the
    pipeline's own name is set to ``true``. ``push`` is always disabled.
    """

    parameters: ParameterSet = dict(arguments.parameters)
    parameters["push"] = BoolParameter(False)
    parameters[arguments.name] = BoolParameter(True)
    return parameters


def lane_parameters(arguments: ParsedArguments) -> ParameterSet:
    """Parameters for a legacy lane-mode trigger.

    The lane runner takes its options as one unparsed string, so only three
    keys are ever sent.
    """

    return {
        "push": BoolParameter(False),
        "lane": StringParameter(arguments.name),
        "options": StringParameter(arguments.raw_options),
    }


def serialize_parameters(parameters: Mapping[str, Parameter]) -> dict[str, bool | str]:
    return {key: parameter.to_json() for key, parameter in parameters.items()}


def stringify_parameters(parameters: Mapping[str, Parameter | str]) -> dict[str, str]:
    """Flatten parameters for the v1.1 job API, which only accepts strings."""

    return {
        key: value if isinstance(value, str) else value.to_text()
        for key, value in parameters.items()
    }
