"""Unit tests for branch resolution."""

from __future__ import annotations

from ci_trigger_bot.circleci.branches import release_branch_name, resolve_branch
from ci_trigger_bot.circleci.parameters import parse_arguments


def test_default_branch_when_nothing_else_given() -> None:
    arguments = parse_arguments(["ui_tests", "device:iPhone5s"])

    assert resolve_branch(arguments, default="develop") == "develop"


def test_explicit_branch_option_beats_derived_branch() -> None:
    arguments = parse_arguments(["ui_tests", "branch:feature/y"])

    assert (
        resolve_branch(arguments, default="develop", derived="release/babylon/3.13.0")
        == "feature/y"
    )


def test_derived_branch_beats_default() -> None:
    arguments = parse_arguments(["testflight"])

    assert resolve_branch(arguments, default="develop", derived="release/x/1.0") == "release/x/1.0"


def test_override_beats_everything() -> None:
    arguments = parse_arguments(["ui_tests", "branch:feature/y"])

    assert (
        resolve_branch(arguments, default="develop", derived="release/x/1.0", override="feature/pr")
        == "feature/pr"
    )


def test_release_branch_from_app_and_version() -> None:
    arguments = parse_arguments(["Babylon", "version:3.13.0"])

    assert release_branch_name(arguments) == "release/babylon/3.13.0"


def test_release_branch_prefers_explicit_branch() -> None:
    arguments = parse_arguments(["Babylon", "version:3.13.0", "branch:hotfix/3.13.1"])

    assert release_branch_name(arguments) == "hotfix/3.13.1"


def test_release_branch_needs_version() -> None:
    assert release_branch_name(parse_arguments(["Babylon"])) is None
