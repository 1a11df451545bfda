"""CircleCI trigger parameters, branch resolution and API client."""

from __future__ import annotations

from ci_trigger_bot.circleci.client import (
    CircleCIClient,
    PipelineHandle,
    PipelineStatus,
    TriggerRequest,
    TriggerResult,
)
from ci_trigger_bot.circleci.parameters import (
    BoolParameter,
    Parameter,
    ParameterSet,
    ParsedArguments,
    StringParameter,
)

__all__ = [
    "BoolParameter",
    "CircleCIClient",
    "Parameter",
    "ParameterSet",
    "ParsedArguments",
    "PipelineHandle",
    "PipelineStatus",
    "StringParameter",
    "TriggerRequest",
    "TriggerResult",
]
