"""GitHub ``issue_comment`` webhook handling.

A comment such as::

    @ios-bot-babylon fastlane test_babylon device:iPhone5s

on an open pull request triggers a build of the pull request's head branch.
``fastlane`` as the second word selects lane mode; any other word is taken as
a pipeline name.

The payload is matched against a fixed list of known shapes, in order. GitHub
also sends a ``ping`` event when the webhook is configured; it is acknowledged
without doing anything.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

from ci_trigger_bot.circleci.client import TriggerRequest, TriggerResult
from ci_trigger_bot.commands.trigger import TriggerMode, build_trigger_request
from ci_trigger_bot.config import RepositoryConfig
from ci_trigger_bot.errors import (
    CITriggerError,
    ConfigurationError,
    MalformedInvocation,
    PullRequestLookupError,
)
from ci_trigger_bot.github.client import PullRequestHead

logger = logging.getLogger(__name__)

LANE_KEYWORD = "fastlane"

IGNORED_ACTIONS = frozenset({"deleted"})


class _Comment(BaseModel):
    body: str


class _Issue(BaseModel):
    number: int


class CommentEvent(BaseModel):
    action: str
    comment: _Comment
    issue: _Issue


class PingEvent(BaseModel):
    zen: str


@dataclass(frozen=True, slots=True)
class WebhookOutcome:
    status_code: int
    detail: str
    result: TriggerResult | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"detail": self.detail}
        if self.result is not None:
            payload["branch"] = self.result.branch
            payload["build_url"] = self.result.build_url
        return payload


class PullRequestLookup(Protocol):
    def get_pull_request_head(self, pull_number: int) -> PullRequestHead: ...


class PipelineTrigger(Protocol):
    def trigger_pipeline(self, request: TriggerRequest) -> TriggerResult: ...


def match_shape(model: type[BaseModel], payload: object) -> BaseModel | None:
    """Validate ``payload`` against one event shape; ``None`` if it doesn't fit."""

    try:
        return model.model_validate(payload)
    except ValidationError:
        return None


def comment_tokens(body: str, mention: str) -> list[str] | None:
    """Words of a bot-addressed comment, or ``None`` if the bot isn't mentioned."""

    if not body.startswith(mention):
        return None
    return body.split()


class IssueCommentHandler:
    def __init__(
        self,
        *,
        ci: PipelineTrigger | None,
        github: Callable[[], PullRequestLookup],
        repository: RepositoryConfig | None,
        mention: str,
    ) -> None:
        self._ci = ci
        self._github = github
        self._repository = repository
        self._mention = mention

        self._shapes: list[tuple[type[BaseModel], Callable[[Any], WebhookOutcome]]] = [
            (CommentEvent, self._on_comment),
            (PingEvent, self._on_ping),
        ]

    def handle(self, payload: object) -> WebhookOutcome:
        for model, on_match in self._shapes:
            event = match_shape(model, payload)
            if event is not None:
                return on_match(event)

        logger.info("Rejected webhook with unknown payload shape")
        return WebhookOutcome(400, "Unsupported webhook payload")

    def _on_ping(self, event: PingEvent) -> WebhookOutcome:
        logger.info("Received webhook ping", extra={"zen": event.zen})
        return WebhookOutcome(200, "pong")

    def _on_comment(self, event: CommentEvent) -> WebhookOutcome:
        if event.action in IGNORED_ACTIONS:
            return WebhookOutcome(200, f"Ignored '{event.action}' comment event")

        tokens = comment_tokens(event.comment.body, self._mention)
        if tokens is None:
            return WebhookOutcome(400, f"Comment does not start with {self._mention}")
        if len(tokens) < 2:
            return WebhookOutcome(400, "Comment must name a pipeline or `fastlane <lane>`")

        if tokens[1] == LANE_KEYWORD:
            mode, arguments = TriggerMode.LANE, tokens[2:]
        else:
            mode, arguments = TriggerMode.PIPELINE, tokens[1:]
        if not arguments:
            return WebhookOutcome(400, "Malformed command: a lane name is required")
        if event.issue.number <= 0:
            return WebhookOutcome(400, f"Invalid issue number {event.issue.number}")
        if self._ci is None or self._repository is None:
            raise ConfigurationError("CIRCLECI_TOKEN and BOT_REPOSITORY are required to trigger builds")

        try:
            head = self._github().get_pull_request_head(event.issue.number)
        except PullRequestLookupError as e:
            logger.warning(
                "Pull request lookup failed", extra={"issue_number": event.issue.number}
            )
            return WebhookOutcome(502, str(e))

        try:
            parsed, request = build_trigger_request(
                arguments,
                mode=mode,
                repository=self._repository,
                override_branch=head.head_ref,
            )
        except MalformedInvocation as e:
            return WebhookOutcome(400, f"Malformed command: {e}")

        logger.info(
            "Triggering build from pull request comment",
            extra={
                "pull_number": head.number,
                "mode": mode.value,
                "target": parsed.name,
                "branch": request.branch,
            },
        )
        try:
            result = self._ci.trigger_pipeline(request)
        except CITriggerError as e:
            logger.exception(
                "CircleCI trigger failed", extra={"pull_number": head.number}
            )
            return WebhookOutcome(502, str(e))

        return WebhookOutcome(200, f"Triggered `{parsed.name}`", result=result)
