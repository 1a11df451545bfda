"""FastAPI app factory.

Endpoints are thin wrappers: the slash command endpoint dispatches through the
command table, the webhook endpoint through :class:`IssueCommentHandler`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ci_trigger_bot import __version__
from ci_trigger_bot.circleci.client import CircleCIClient
from ci_trigger_bot.commands.invocation import CommandInvocation
from ci_trigger_bot.commands.registry import CommandRegistry, build_commands
from ci_trigger_bot.commands.trigger import BuildCommands
from ci_trigger_bot.config import BotSettings, RepositoryConfig
from ci_trigger_bot.errors import ConfigurationError
from ci_trigger_bot.github.client import GitHubClient
from ci_trigger_bot.replies import DeferredReplyDispatcher, HttpReplySink, ReplySink
from ci_trigger_bot.server.models import ChatResponse, WebhookResponse
from ci_trigger_bot.webhooks.issue_comment import IssueCommentHandler, PullRequestLookup

logger = logging.getLogger(__name__)

_DISABLED_DETAIL = "CIRCLECI_TOKEN and BOT_REPOSITORY are required for this endpoint"


def _github_lookup(
    settings: BotSettings, repository: RepositoryConfig | None, injected: PullRequestLookup | None
) -> Callable[[], PullRequestLookup]:
    cached: list[PullRequestLookup] = [injected] if injected is not None else []

    def get() -> PullRequestLookup:
        if not cached:
            if repository is None:
                raise ConfigurationError("BOT_REPOSITORY is required (owner/repo)")
            cached.append(
                GitHubClient(
                    token=settings.require_github_token(),
                    repository=repository.full_name,
                    base_url=settings.github_base_url,
                    timeout_seconds=settings.http_timeout_seconds,
                )
            )
        return cached[0]

    return get


def create_app(
    settings: BotSettings | None = None,
    *,
    ci: CircleCIClient | None = None,
    github: PullRequestLookup | None = None,
    reply_sink: ReplySink | None = None,
) -> FastAPI:
    settings = settings or BotSettings()
    try:
        repository = settings.repository_config()
    except ConfigurationError as e:
        logger.warning("Build triggers are disabled", extra={"reason": str(e)})
        repository = None

    if ci is None and settings.circleci_token.strip():
        ci = CircleCIClient(
            token=settings.circleci_token,
            base_url=settings.circleci_base_url,
            timeout_seconds=settings.http_timeout_seconds,
        )

    app = FastAPI(
        title="CI Trigger Bot",
        version=__version__,
        description="Trigger CircleCI builds from slash commands and pull-request comments.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.settings = settings

    registry: CommandRegistry | None = None
    if ci is not None and repository is not None:
        replies = DeferredReplyDispatcher(
            reply_sink or HttpReplySink(timeout_seconds=settings.http_timeout_seconds)
        )
        commands = BuildCommands(ci=ci, repository=repository, replies=replies)
        registry = CommandRegistry(build_commands(commands, repository))
    elif ci is None:
        logger.warning("CIRCLECI_TOKEN is not set; build triggers are disabled")

    # Built even when triggers are disabled so webhook pings are still answered.
    comments = IssueCommentHandler(
        ci=ci,
        github=_github_lookup(settings, repository, github),
        repository=repository,
        mention=settings.mention,
    )

    app.state.commands = registry

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/v1/slack/commands", response_model=ChatResponse)
    def slack_command(
        command: str = Form(...),
        response_url: str = Form(...),
        text: str = Form(""),
        channel_name: str = Form(""),
        token: str = Form(""),
    ) -> ChatResponse:
        if registry is None:
            raise HTTPException(status_code=409, detail=_DISABLED_DETAIL)

        invocation = CommandInvocation(
            command=command,
            text=text,
            response_url=response_url,
            channel_name=channel_name,
            token=token,
        )
        reply = registry.dispatch(invocation)
        return ChatResponse(**reply.immediate.to_payload())

    @app.post("/api/v1/github/webhook", response_model=WebhookResponse)
    async def github_webhook(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except ValueError:
            payload = None

        try:
            outcome = await run_in_threadpool(comments.handle, payload)
        except ConfigurationError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e

        return JSONResponse(status_code=outcome.status_code, content=outcome.to_payload())

    return app
