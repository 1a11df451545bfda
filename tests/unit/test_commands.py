"""Unit tests for the slash command table and build handlers."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from ci_trigger_bot.circleci.parameters import BoolParameter, StringParameter
from ci_trigger_bot.commands.invocation import CommandInvocation
from ci_trigger_bot.commands.registry import CommandDescriptor, CommandRegistry, build_commands
from ci_trigger_bot.commands.trigger import BuildCommands, TriggerMode, build_trigger_request
from ci_trigger_bot.config import RepositoryConfig
from ci_trigger_bot.errors import CITriggerError
from ci_trigger_bot.replies import DeferredReplyDispatcher

RESPONSE_URL = "https://hooks.slack.test/commands/1"


def _invocation(command: str, text: str, channel: str = "ios-build") -> CommandInvocation:
    return CommandInvocation(
        command=command, text=text, response_url=RESPONSE_URL, channel_name=channel
    )


@pytest.fixture
def registry(ci: Mock, repository: RepositoryConfig, sink) -> CommandRegistry:
    commands = BuildCommands(ci=ci, repository=repository, replies=DeferredReplyDispatcher(sink))
    return CommandRegistry(build_commands(commands, repository))


def _sent_request(ci: Mock):
    ci.trigger_pipeline.assert_called_once()
    return ci.trigger_pipeline.call_args.args[0]


def test_build_trigger_request_pipeline_mode(repository: RepositoryConfig) -> None:
    arguments, request = build_trigger_request(
        ["ui_tests", "device:iPhone5s", "branch:feature/y"],
        mode=TriggerMode.PIPELINE,
        repository=repository,
    )

    assert arguments.name == "ui_tests"
    assert request.project == "acme/ios-app"
    assert request.branch == "feature/y"
    assert request.parameters == {
        "device": StringParameter("iPhone5s"),
        "branch": StringParameter("feature/y"),
        "push": BoolParameter(False),
        "ui_tests": BoolParameter(True),
    }


def test_testflight_builds_release_branch_lane(registry: CommandRegistry, ci: Mock, sink) -> None:
    reply = registry.dispatch(_invocation("/testflight", "Babylon version:3.13.0"))

    assert reply.immediate.text == "👍"
    assert reply.wait(5)

    request = _sent_request(ci)
    assert request.branch == "release/babylon/3.13.0"
    assert request.parameters == {
        "push": BoolParameter(False),
        "lane": StringParameter("testflight"),
        "options": StringParameter("target:Babylon version:3.13.0"),
    }

    url, message = sink.messages[0]
    assert url == RESPONSE_URL
    assert message.text == (
        "You asked me: `/fastlane testflight target:Babylon version:3.13.0`.\n"
        "🚀 Triggered `testflight` on the `release/babylon/3.13.0` branch.\n"
        "https://circleci.com/workflow-run/wf-1"
    )


def test_hockeyapp_uses_default_branch(registry: CommandRegistry, ci: Mock) -> None:
    reply = registry.dispatch(_invocation("/hockeyapp", "Babylon"))
    assert reply.wait(5)

    request = _sent_request(ci)
    assert request.branch == "develop"
    assert request.parameters["lane"] == StringParameter("hockeyapp")
    assert request.parameters["options"] == StringParameter("target:Babylon")


def test_fastlane_runs_lane(registry: CommandRegistry, ci: Mock) -> None:
    reply = registry.dispatch(_invocation("/fastlane", "test_babylon device:iPhone5s branch:feature/x"))
    assert reply.wait(5)

    request = _sent_request(ci)
    assert request.branch == "feature/x"
    assert request.parameters["options"] == StringParameter("device:iPhone5s branch:feature/x")


def test_stevenson_runs_pipeline_in_any_channel(registry: CommandRegistry, ci: Mock) -> None:
    reply = registry.dispatch(_invocation("/stevenson", "ui_tests param:value", channel="random"))
    assert reply.wait(5)

    request = _sent_request(ci)
    assert request.parameters == {
        "param": StringParameter("value"),
        "push": BoolParameter(False),
        "ui_tests": BoolParameter(True),
    }


def test_stevenson_routes_subcommands(registry: CommandRegistry, ci: Mock) -> None:
    reply = registry.dispatch(_invocation("/stevenson", "fastlane test_babylon device:iPhone5s"))
    assert reply.wait(5)

    request = _sent_request(ci)
    assert request.parameters["lane"] == StringParameter("test_babylon")
    assert request.parameters["options"] == StringParameter("device:iPhone5s")


def test_build_commands_refused_outside_allowed_channel(registry: CommandRegistry, ci: Mock) -> None:
    reply = registry.dispatch(_invocation("/fastlane", "test_babylon", channel="general"))

    assert reply.done
    assert reply.immediate.response_type == "ephemeral"
    assert "#ios-build" in reply.immediate.text
    ci.trigger_pipeline.assert_not_called()


def test_help_returns_descriptor_help(registry: CommandRegistry, ci: Mock) -> None:
    reply = registry.dispatch(_invocation("/testflight", "help"))

    assert reply.immediate.response_type == "ephemeral"
    assert "release candidate for Testflight" in reply.immediate.text
    ci.trigger_pipeline.assert_not_called()


def test_missing_name_is_reported_as_usage(registry: CommandRegistry, ci: Mock) -> None:
    reply = registry.dispatch(_invocation("/stevenson", "   "))

    assert reply.done
    assert reply.immediate.text.startswith("Invalid command:")
    ci.trigger_pipeline.assert_not_called()


def test_unknown_command(registry: CommandRegistry) -> None:
    reply = registry.dispatch(_invocation("/deploy", "prod"))

    assert reply.immediate.text == "Unknown command `/deploy`."


def test_provider_failure_sends_failure_message(
    registry: CommandRegistry, ci: Mock, sink
) -> None:
    ci.trigger_pipeline.side_effect = CITriggerError("CircleCI responded with HTTP 400", status_code=400)

    reply = registry.dispatch(_invocation("/stevenson", "ui_tests"))
    assert reply.wait(5)

    _, message = sink.messages[0]
    assert message.text == (
        "You asked me: `/stevenson ui_tests`.\n"
        "❌ Failed to trigger `ui_tests`: CircleCI responded with HTTP 400"
    )


def test_duplicate_command_names_rejected() -> None:
    handler = Mock()
    with pytest.raises(ValueError):
        CommandRegistry(
            [
                CommandDescriptor(name="a", help="", handler=handler),
                CommandDescriptor(name="a", help="", handler=handler),
            ]
        )


def test_registry_lists_commands(registry: CommandRegistry) -> None:
    assert registry.names == ["fastlane", "hockeyapp", "stevenson", "testflight"]
