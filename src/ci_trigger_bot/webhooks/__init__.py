from __future__ import annotations

from ci_trigger_bot.webhooks.issue_comment import IssueCommentHandler, WebhookOutcome

__all__ = ["IssueCommentHandler", "WebhookOutcome"]
