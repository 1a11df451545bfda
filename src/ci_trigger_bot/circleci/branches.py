"""Target branch resolution."""

from __future__ import annotations

from ci_trigger_bot.circleci.parameters import BRANCH_OPTION, VERSION_OPTION, ParsedArguments


def release_branch_name(arguments: ParsedArguments) -> str | None:
    """Branch for a release build: ``release/<app>/<version>``.

    An explicit ``branch:`` option wins. Without one, both the app name (first
    token) and a ``version:`` option are needed.
    """

    explicit = arguments.option(BRANCH_OPTION)
    if explicit:
        return explicit

    version = arguments.option(VERSION_OPTION)
    if arguments.name and version:
        return f"release/{arguments.name.lower()}/{version}"
    return None


def resolve_branch(
    arguments: ParsedArguments,
    *,
    default: str,
    derived: str | None = None,
    override: str | None = None,
) -> str:
    """Pick the branch to build. Never fails: falls back to ``default``.

    Order: ``override`` (pull-request head), the ``branch:`` option,
    ``derived`` (release naming), then ``default``.
    """

    return override or arguments.option(BRANCH_OPTION) or derived or default
