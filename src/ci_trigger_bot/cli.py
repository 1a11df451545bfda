"""CLI entrypoint.

`serve` runs the HTTP API; the trigger subcommands call CircleCI directly and
print the resulting build link, which is handy for checking credentials and
CircleCI config without going through chat.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from ci_trigger_bot import __version__
from ci_trigger_bot.circleci.client import CircleCIClient, TriggerResult
from ci_trigger_bot.circleci.parameters import StringParameter
from ci_trigger_bot.commands.trigger import TriggerMode, build_trigger_request
from ci_trigger_bot.config import BotSettings
from ci_trigger_bot.errors import CITriggerError, ConfigurationError, MalformedInvocation
from ci_trigger_bot.logging import configure_logging

logger = logging.getLogger(__name__)


def _parse_params(values: list[str]) -> dict[str, StringParameter]:
    params: dict[str, StringParameter] = {}
    for value in values:
        key, sep, raw = value.partition("=")
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"Expected key=value, got {value!r}")
        params[key.strip()] = StringParameter(raw)
    return params


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ci-trigger-bot",
        description="Trigger CircleCI builds from chat commands and pull-request comments",
    )
    parser.add_argument("--version", action="version", version=f"ci-trigger-bot {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API under uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    serve.add_argument("--port", type=int, default=8000, help="Port to listen on")

    for name, help_text in (
        ("pipeline", "Trigger a pipeline, e.g. 'ui_tests device:iPhone5s'"),
        ("lane", "Trigger a fastlane lane, e.g. 'test_babylon device:iPhone5s'"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("arguments", nargs="+", help="Name followed by options (key:value or flag)")
        sub.add_argument(
            "--branch",
            default=None,
            help="Branch to build; overrides any branch: option and the default branch",
        )

    job = subparsers.add_parser("job", help="Trigger a build through the legacy v1.1 job API")
    job.add_argument("--branch", default=None, help="Branch to build (defaults to BOT_BASE_BRANCH)")
    job.add_argument(
        "--param",
        dest="params",
        action="append",
        default=[],
        help="Build parameter as key=value; may be repeated",
    )

    return parser


def _print_result(result: TriggerResult) -> None:
    print(f"Triggered on branch {result.branch}")
    print(result.build_url)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = BotSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "ci_trigger_bot.server.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            log_config=None,
        )
        return 0

    try:
        repository = settings.repository_config()
        ci = CircleCIClient(
            token=settings.require_circleci_token(),
            base_url=settings.circleci_base_url,
            timeout_seconds=settings.http_timeout_seconds,
        )
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        return 2

    try:
        if args.command in ("pipeline", "lane"):
            mode = TriggerMode.LANE if args.command == "lane" else TriggerMode.PIPELINE
            _, request = build_trigger_request(
                args.arguments,
                mode=mode,
                repository=repository,
                override_branch=args.branch,
            )
            _print_result(ci.trigger_pipeline(request))
            return 0

        if args.command == "job":
            try:
                params = _parse_params(args.params)
            except argparse.ArgumentTypeError as e:
                parser.error(str(e))
            result = ci.trigger_job(
                project=repository.full_name,
                branch=args.branch or repository.base_branch,
                parameters=params,
            )
            _print_result(result)
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except MalformedInvocation as e:
        print(f"Invalid arguments: {e}", file=sys.stderr)
        return 2

    except CITriggerError as e:
        logger.error("CircleCI trigger failed", extra={"status_code": e.status_code})
        print(str(e), file=sys.stderr)
        return 1

    finally:
        ci.close()


if __name__ == "__main__":
    raise SystemExit(main())
