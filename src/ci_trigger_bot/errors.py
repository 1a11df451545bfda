"""Exception types shared across the bot."""

from __future__ import annotations


class CITriggerBotError(Exception):
    """Base class for errors raised by the bot."""


class ConfigurationError(CITriggerBotError):
    """A credential or setting needed for the current call is missing."""


class MalformedInvocation(CITriggerBotError):
    """The command or comment text is missing required tokens."""


class CITriggerError(CITriggerBotError):
    """A call to the CI provider failed or returned an unusable response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PullRequestLookupError(CITriggerBotError):
    """The pull request a comment belongs to could not be resolved."""
