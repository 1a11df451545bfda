"""Slash command table.

Commands are plain immutable descriptors selected by name; there is no
per-command subclassing. A descriptor may list sub-commands, which are reached
as ``/<command> <sub-command> ...``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ci_trigger_bot.commands.invocation import CommandInvocation
from ci_trigger_bot.commands.trigger import BuildCommands
from ci_trigger_bot.config import RepositoryConfig
from ci_trigger_bot.errors import MalformedInvocation
from ci_trigger_bot.replies import ChatMessage, DeferredReply

logger = logging.getLogger(__name__)

Handler = Callable[[CommandInvocation], DeferredReply]

HELP_KEYWORD = "help"


@dataclass(frozen=True, slots=True)
class CommandDescriptor:
    name: str
    help: str
    handler: Handler
    allowed_channels: frozenset[str] = frozenset()
    subcommands: tuple[CommandDescriptor, ...] = ()

    def allows(self, channel_name: str) -> bool:
        return not self.allowed_channels or channel_name in self.allowed_channels

    def subcommand(self, name: str) -> CommandDescriptor | None:
        for sub in self.subcommands:
            if sub.name == name:
                return sub
        return None


def _ephemeral(text: str) -> DeferredReply:
    return DeferredReply.resolved(ChatMessage(text, response_type="ephemeral"))


class CommandRegistry:
    def __init__(self, descriptors: Iterable[CommandDescriptor]) -> None:
        self._commands: dict[str, CommandDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in self._commands:
                raise ValueError(f"Duplicate command: {descriptor.name}")
            self._commands[descriptor.name] = descriptor

    @property
    def names(self) -> list[str]:
        return sorted(self._commands)

    def get(self, name: str) -> CommandDescriptor | None:
        return self._commands.get(name.lstrip("/"))

    def dispatch(self, invocation: CommandInvocation) -> DeferredReply:
        descriptor = self.get(invocation.name)
        if descriptor is None:
            return _ephemeral(f"Unknown command `{invocation.command}`.")
        return self._dispatch(descriptor, invocation)

    def _dispatch(self, descriptor: CommandDescriptor, invocation: CommandInvocation) -> DeferredReply:
        tokens = invocation.tokens
        if tokens and tokens[0] == HELP_KEYWORD:
            return _ephemeral(descriptor.help)

        if tokens:
            sub = descriptor.subcommand(tokens[0])
            if sub is not None:
                rest = invocation.text.split(None, 1)[1:] or [""]
                return self._dispatch(
                    sub, invocation.rewritten(command=f"/{sub.name}", text=rest[0])
                )

        if not descriptor.allows(invocation.channel_name):
            channels = ", ".join(f"#{c}" for c in sorted(descriptor.allowed_channels))
            logger.info(
                "Command refused in channel",
                extra={"command": descriptor.name, "channel": invocation.channel_name},
            )
            return _ephemeral(f"`/{descriptor.name}` can only be used in {channels}.")

        try:
            return descriptor.handler(invocation)
        except MalformedInvocation as e:
            return _ephemeral(f"Invalid command: {e}.\n\n{descriptor.help}")


def build_commands(commands: BuildCommands, repository: RepositoryConfig) -> list[CommandDescriptor]:
    """The bot's command table."""

    base = repository.base_branch
    channels = repository.build_channels

    fastlane = CommandDescriptor(
        name="fastlane",
        help=(
            "Invokes specified lane on specified branch.\n"
            "Provide options the same way as when invoking lane locally.\n\n"
            "Parameters:\n"
            "- name of the lane to run\n"
            "- list of lane options in the fastlane format (e.g. `device:iPhone5s`)\n"
            f"- `branch`: name of the branch to run the lane on. Default is `{base}`\n\n"
            "Example:\n"
            "`/fastlane test_babylon branch:develop`"
        ),
        handler=commands.run_lane,
        allowed_channels=channels,
    )
    testflight = CommandDescriptor(
        name="testflight",
        help=(
            "Makes a new release candidate for Testflight. Shorthand for `/fastlane testflight`.\n\n"
            "Parameters:\n"
            "- name of the target (as in the project)\n"
            "- `version`: version of the app\n"
            "- `branch`: release branch name. Default is `release/<name.lowercase()>/<version>`\n\n"
            "Example:\n"
            "`/testflight Babylon version:3.13.0`"
        ),
        handler=commands.testflight,
        allowed_channels=channels,
    )
    hockeyapp = CommandDescriptor(
        name="hockeyapp",
        help=(
            "Makes a new beta build for HockeyApp. Shorthand for `/fastlane hockeyapp`.\n\n"
            "Parameters:\n"
            "- name of the target (as in the project)\n"
            f"- `branch`: name of the branch to run the lane on. Default is `{base}`\n\n"
            "Example:\n"
            "`/hockeyapp Babylon branch:develop`"
        ),
        handler=commands.hockeyapp,
        allowed_channels=channels,
    )
    stevenson = CommandDescriptor(
        name="stevenson",
        help=(
            "Invokes lane, beta or AppStore build or runs arbitrary workflow.\n\n"
            "Parameters:\n"
            "- name of the workflow to run\n"
            "- list of workflow parameters in the fastlane format (e.g. `param:value`)\n"
            f"- `branch`: name of the branch to run the lane on. Default is `{base}`\n\n"
            "Example:\n"
            "`/stevenson ui_tests param:value branch:develop`"
        ),
        handler=commands.run_pipeline,
        subcommands=(fastlane, testflight, hockeyapp),
    )
    return [stevenson, fastlane, testflight, hockeyapp]
