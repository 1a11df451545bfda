"""FastAPI server for the CI trigger bot.

Design intent:
- Keep parsing, branch resolution and CircleCI calls in `ci_trigger_bot.circleci`
  and `ci_trigger_bot.commands`
- Keep HTTP concerns (form decoding, status codes) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from ci_trigger_bot.server.app import create_app
