from __future__ import annotations

from ci_trigger_bot.commands.invocation import CommandInvocation
from ci_trigger_bot.commands.registry import CommandDescriptor, CommandRegistry, build_commands
from ci_trigger_bot.commands.trigger import BuildCommands, TriggerMode, build_trigger_request

__all__ = [
    "BuildCommands",
    "CommandDescriptor",
    "CommandInvocation",
    "CommandRegistry",
    "TriggerMode",
    "build_commands",
    "build_trigger_request",
]
