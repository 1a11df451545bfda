"""Test configuration and fixtures."""

from __future__ import annotations

import threading
from unittest.mock import Mock

import pytest

from ci_trigger_bot.circleci.client import CircleCIClient, TriggerResult
from ci_trigger_bot.config import BotSettings, RepositoryConfig
from ci_trigger_bot.github.client import PullRequestHead
from ci_trigger_bot.replies import ChatMessage


class RecordingSink:
    """Reply sink that keeps delivered messages instead of POSTing them."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, ChatMessage]] = []
        self.delivered = threading.Event()

    def deliver(self, response_url: str, message: ChatMessage) -> None:
        self.messages.append((response_url, message))
        self.delivered.set()


@pytest.fixture
def repository() -> RepositoryConfig:
    """Provide a test repository configuration."""
    return RepositoryConfig(
        full_name="acme/ios-app",
        base_branch="develop",
        build_channels=frozenset({"ios-build"}),
    )


@pytest.fixture
def settings() -> BotSettings:
    """Provide settings that ignore the developer's environment and .env."""
    return BotSettings(
        _env_file=None,
        circleci_token="circle-token",
        github_token="github-token",
        repository="acme/ios-app",
        base_branch="develop",
        build_channels="ios-build",
        mention="@ios-bot",
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def ci() -> Mock:
    """A CircleCI client whose pipeline trigger succeeds."""
    client = Mock(spec=CircleCIClient)
    client.trigger_pipeline.side_effect = lambda request: TriggerResult(
        branch=request.branch,
        build_url="https://circleci.com/workflow-run/wf-1",
    )
    return client


@pytest.fixture
def pull_request_lookup() -> Mock:
    lookup = Mock()
    lookup.get_pull_request_head.return_value = PullRequestHead(
        number=42,
        state="open",
        head_ref="feature/x",
        head_sha="0123abc",
    )
    return lookup
