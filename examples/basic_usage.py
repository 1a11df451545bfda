#!/usr/bin/env python3
"""Programmatic pipeline trigger example.

This demonstrates using the bot components directly:

* load settings from `.env`
* parse a command the same way the `/stevenson` slash command does
* trigger the pipeline and print the build link

Example:
    python examples/basic_usage.py ui_tests device:iPhone5s branch:develop
"""

from __future__ import annotations

import argparse
from typing import Sequence

from ci_trigger_bot.circleci.client import CircleCIClient
from ci_trigger_bot.commands.trigger import TriggerMode, build_trigger_request
from ci_trigger_bot.config import BotSettings
from ci_trigger_bot.logging import configure_logging


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Trigger a CircleCI pipeline (programmatic example).")
    parser.add_argument("tokens", nargs="+", help="Pipeline name followed by key:value options or flags")
    parser.add_argument("--lane", action="store_true", help="Send as a fastlane lane instead")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = BotSettings()
    configure_logging(settings.log_level)

    arguments, request = build_trigger_request(
        args.tokens,
        mode=TriggerMode.LANE if args.lane else TriggerMode.PIPELINE,
        repository=settings.repository_config(),
    )

    ci = CircleCIClient(
        token=settings.require_circleci_token(),
        base_url=settings.circleci_base_url,
        timeout_seconds=settings.http_timeout_seconds,
    )
    try:
        result = ci.trigger_pipeline(request)
    finally:
        ci.close()

    print(f"Triggered {arguments.name} on {result.branch}")
    print(f"URL: {result.build_url}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
