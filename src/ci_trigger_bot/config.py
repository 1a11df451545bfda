"""Configuration for the CI trigger bot.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

The server is allowed to start without CI or GitHub credentials so that health
checks and webhook pings work. Anything that actually calls out validates the
credentials it needs at call time (see :meth:`BotSettings.require_circleci_token`).
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ci_trigger_bot.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class RepositoryConfig:
    """Static description of the project builds are triggered for.

    Built once at startup and passed to the components that need it.
    """

    full_name: str
    base_branch: str
    build_channels: frozenset[str] = frozenset()


class BotSettings(BaseSettings):
    """Settings for the bot server and CLI.

    Environment variables:
    - CIRCLECI_TOKEN
    - CIRCLECI_BASE_URL          (optional)
    - BOT_GITHUB_TOKEN
    - GITHUB_BASE_URL            (optional)
    - BOT_REPOSITORY
    - BOT_BASE_BRANCH            (optional)
    - BOT_BUILD_CHANNELS         (optional)
    - BOT_MENTION                (optional)
    - BOT_HTTP_TIMEOUT_SECONDS   (optional)
    - LOG_LEVEL                  (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `BotSettings(_env_file=path_to_env)`.
    """

    circleci_token: str = Field(
        default="",
        validation_alias="CIRCLECI_TOKEN",
        description="CircleCI API token sent as the `circle-token` query parameter",
    )
    circleci_base_url: str = Field(
        default="https://circleci.com",
        validation_alias="CIRCLECI_BASE_URL",
        description="CircleCI base URL; also the fallback build link when no workflow exists yet",
    )

    github_token: str = Field(
        default="",
        validation_alias="BOT_GITHUB_TOKEN",
        description="GitHub token used to look up pull requests for comment-triggered builds",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    repository: str = Field(
        default="",
        validation_alias="BOT_REPOSITORY",
        description="Project full name ('owner/repo') builds are triggered for",
    )
    base_branch: str = Field(
        default="develop",
        validation_alias="BOT_BASE_BRANCH",
        description="Branch used when a command names neither a branch nor a release version",
    )
    build_channels: str = Field(
        default="ios-build",
        validation_alias="BOT_BUILD_CHANNELS",
        description="Comma-separated chat channels where the build commands may be used.",
    )
    mention: str = Field(
        default="@ios-bot-babylon",
        validation_alias="BOT_MENTION",
        description="Marker a pull-request comment must start with to trigger a build",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="BOT_HTTP_TIMEOUT_SECONDS",
        description="Timeout applied to every outbound HTTP call (CI, GitHub, reply delivery)",
        gt=0,
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    def parsed_build_channels(self) -> frozenset[str]:
        return frozenset(c.strip().lstrip("#") for c in self.build_channels.split(",") if c.strip())

    def repository_config(self) -> RepositoryConfig:
        full_name = self.repository.strip().strip("/")
        if not full_name:
            raise ConfigurationError("BOT_REPOSITORY is required (owner/repo)")
        base_branch = self.base_branch.strip()
        if not base_branch:
            raise ConfigurationError("BOT_BASE_BRANCH must not be empty")
        return RepositoryConfig(
            full_name=full_name,
            base_branch=base_branch,
            build_channels=self.parsed_build_channels(),
        )

    def require_circleci_token(self) -> str:
        token = self.circleci_token.strip()
        if not token:
            raise ConfigurationError("CIRCLECI_TOKEN is required to trigger builds")
        return token

    def require_github_token(self) -> str:
        token = self.github_token.strip()
        if not token:
            raise ConfigurationError("BOT_GITHUB_TOKEN is required to look up pull requests")
        return token
