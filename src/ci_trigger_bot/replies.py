"""Deferred replies for chat commands.

Chat platforms expect an answer to a slash command within a few seconds, but
creating a pipeline and looking up its workflow can take longer. A command is
therefore answered in two parts:

1. :meth:`DeferredReplyDispatcher.dispatch` returns a :class:`DeferredReply`
   whose ``immediate`` message is sent back as the HTTP response right away.
2. The trigger work runs on a background thread. When it finishes, the final
   message (success or failure) is POSTed once to the command's ``response_url``.

The :class:`DeferredReply` is the hand-off point between the two: callers that
need to know when the follow-up went out (tests, the CLI) can ``wait()`` on it.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal, Protocol

import requests

logger = logging.getLogger(__name__)

ResponseType = Literal["in_channel", "ephemeral"]


@dataclass(frozen=True, slots=True)
class ChatMessage:
    text: str
    response_type: ResponseType = "in_channel"

    def to_payload(self) -> dict[str, str]:
        return {"response_type": self.response_type, "text": self.text}


ACKNOWLEDGMENT = ChatMessage("👍")
FAILURE_FALLBACK = ChatMessage("❌ Something went wrong while triggering the build.")


class ReplySink(Protocol):
    def deliver(self, response_url: str, message: ChatMessage) -> None: ...


class HttpReplySink:
    """POST follow-up messages to chat ``response_url`` callbacks."""

    def __init__(
        self, *, timeout_seconds: float = 30.0, session: requests.Session | None = None
    ) -> None:
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    def deliver(self, response_url: str, message: ChatMessage) -> None:
        resp = self._session.post(
            response_url, json=message.to_payload(), timeout=self._timeout
        )
        resp.raise_for_status()


class DeferredReply:
    """Immediate answer plus a completion signal for the follow-up."""

    def __init__(self, immediate: ChatMessage) -> None:
        self.immediate = immediate
        self.final: ChatMessage | None = None
        self.error: Exception | None = None
        self.delivered = False
        self._done = threading.Event()

    @classmethod
    def resolved(cls, message: ChatMessage) -> DeferredReply:
        """A reply with nothing deferred (help text, refusals, usage errors)."""

        reply = cls(message)
        reply._done.set()
        return reply

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._done.wait(timeout)

    def _complete(self, *, final: ChatMessage, error: Exception | None, delivered: bool) -> None:
        self.final = final
        self.error = error
        self.delivered = delivered
        self._done.set()


class DeferredReplyDispatcher:
    """Run slow work off the request thread and deliver its result later."""

    def __init__(self, sink: ReplySink, *, acknowledgment: ChatMessage = ACKNOWLEDGMENT) -> None:
        self._sink = sink
        self._acknowledgment = acknowledgment

    def dispatch(
        self,
        work: Callable[[], ChatMessage],
        *,
        response_url: str,
        on_error: Callable[[Exception], ChatMessage],
        name: str = "trigger",
    ) -> DeferredReply:
        reply = DeferredReply(self._acknowledgment)
        thread = threading.Thread(
            target=self._run,
            name=f"deferred-reply-{name}-{uuid.uuid4().hex[:8]}",
            daemon=True,
            kwargs={
                "reply": reply,
                "work": work,
                "response_url": response_url,
                "on_error": on_error,
            },
        )
        thread.start()
        return reply

    def _run(
        self,
        *,
        reply: DeferredReply,
        work: Callable[[], ChatMessage],
        response_url: str,
        on_error: Callable[[Exception], ChatMessage],
    ) -> None:
        error: Exception | None = None
        final = FAILURE_FALLBACK
        delivered = False
        try:
            final = work()
        except Exception as e:
            logger.exception("Deferred work failed", extra={"response_url": response_url})
            error = e
            try:
                final = on_error(e)
            except Exception:
                logger.exception("Failed to build failure reply", extra={"response_url": response_url})

        try:
            self._sink.deliver(response_url, final)
            delivered = True
        except Exception:
            logger.exception("Failed to deliver deferred reply", extra={"response_url": response_url})
        finally:
            reply._complete(final=final, error=error, delivered=delivered)
