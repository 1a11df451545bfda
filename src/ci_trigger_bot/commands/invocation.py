"""Incoming slash command value type."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class CommandInvocation:
    """One incoming slash command, as sent by the chat platform."""

    command: str
    text: str
    response_url: str
    channel_name: str = ""
    token: str = ""

    @property
    def name(self) -> str:
        return self.command.lstrip("/")

    @property
    def tokens(self) -> tuple[str, ...]:
        return tuple(self.text.split())

    @property
    def source_text(self) -> str:
        return f"{self.command} {self.text}".strip()

    def rewritten(self, *, command: str, text: str) -> CommandInvocation:
        """The same invocation re-expressed as another command."""

        return replace(self, command=command, text=text)
