from __future__ import annotations

from ci_trigger_bot.github.client import GitHubClient, PullRequestHead

__all__ = ["GitHubClient", "PullRequestHead"]
