"""Build-triggering command handlers.

Every handler turns an invocation into a :class:`TriggerRequest`, then hands
the CircleCI call to the deferred reply dispatcher so the chat platform gets
its acknowledgment immediately.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

from ci_trigger_bot.circleci.branches import release_branch_name, resolve_branch
from ci_trigger_bot.circleci.client import CircleCIClient, TriggerRequest, TriggerResult
from ci_trigger_bot.circleci.parameters import (
    ParsedArguments,
    lane_parameters,
    parse_arguments,
    pipeline_parameters,
)
from ci_trigger_bot.commands.invocation import CommandInvocation
from ci_trigger_bot.config import RepositoryConfig
from ci_trigger_bot.replies import ChatMessage, DeferredReply, DeferredReplyDispatcher

logger = logging.getLogger(__name__)

LANE_COMMAND = "/fastlane"


class TriggerMode(str, Enum):
    PIPELINE = "pipeline"
    LANE = "lane"


def build_trigger_request(
    tokens: Sequence[str],
    *,
    mode: TriggerMode,
    repository: RepositoryConfig,
    derived_branch: str | None = None,
    override_branch: str | None = None,
) -> tuple[ParsedArguments, TriggerRequest]:
    """Parse argument tokens and assemble the request for ``mode``."""

    arguments = parse_arguments(tokens)
    if mode is TriggerMode.LANE:
        parameters = lane_parameters(arguments)
    else:
        parameters = pipeline_parameters(arguments)

    branch = resolve_branch(
        arguments,
        default=repository.base_branch,
        derived=derived_branch,
        override=override_branch,
    )
    return arguments, TriggerRequest(
        project=repository.full_name, branch=branch, parameters=parameters
    )


def success_message(invocation: CommandInvocation, name: str, result: TriggerResult) -> ChatMessage:
    return ChatMessage(
        f"You asked me: `{invocation.source_text}`.\n"
        f"🚀 Triggered `{name}` on the `{result.branch}` branch.\n"
        f"{result.build_url}"
    )


def failure_message(invocation: CommandInvocation, name: str, error: Exception) -> ChatMessage:
    return ChatMessage(
        f"You asked me: `{invocation.source_text}`.\n"
        f"❌ Failed to trigger `{name}`: {error}"
    )


class BuildCommands:
    """Handlers for the pipeline, lane and release shorthand commands."""

    def __init__(
        self,
        *,
        ci: CircleCIClient,
        repository: RepositoryConfig,
        replies: DeferredReplyDispatcher,
    ) -> None:
        self._ci = ci
        self._repository = repository
        self._replies = replies

    def run_pipeline(
        self, invocation: CommandInvocation, *, branch: str | None = None
    ) -> DeferredReply:
        return self._run(invocation, mode=TriggerMode.PIPELINE, derived_branch=branch)

    def run_lane(self, invocation: CommandInvocation, *, branch: str | None = None) -> DeferredReply:
        return self._run(invocation, mode=TriggerMode.LANE, derived_branch=branch)

    def testflight(self, invocation: CommandInvocation) -> DeferredReply:
        """Release candidate: ``fastlane testflight target:<App>`` on the release branch."""

        branch = None
        if invocation.tokens:
            branch = release_branch_name(parse_arguments(invocation.tokens))
        lane = invocation.rewritten(
            command=LANE_COMMAND, text=f"testflight target:{invocation.text}"
        )
        return self.run_lane(lane, branch=branch)

    def hockeyapp(self, invocation: CommandInvocation) -> DeferredReply:
        """Beta build: ``fastlane hockeyapp target:<App>``."""

        lane = invocation.rewritten(
            command=LANE_COMMAND, text=f"hockeyapp target:{invocation.text}"
        )
        return self.run_lane(lane)

    def _run(
        self,
        invocation: CommandInvocation,
        *,
        mode: TriggerMode,
        derived_branch: str | None,
    ) -> DeferredReply:
        arguments, request = build_trigger_request(
            invocation.tokens,
            mode=mode,
            repository=self._repository,
            derived_branch=derived_branch,
        )
        name = arguments.name
        logger.info(
            "Dispatching build trigger",
            extra={
                "command": invocation.command,
                "mode": mode.value,
                "target": name,
                "project": request.project,
                "branch": request.branch,
            },
        )

        def work() -> ChatMessage:
            return success_message(invocation, name, self._ci.trigger_pipeline(request))

        return self._replies.dispatch(
            work,
            response_url=invocation.response_url,
            on_error=lambda e: failure_message(invocation, name, e),
            name=name,
        )
