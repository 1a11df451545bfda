"""CI trigger bot.

Lets chat slash commands and pull-request comments start CircleCI builds:
- command text parsed into pipeline or lane parameters
- branch resolved from options, release naming or the configured default
- immediate acknowledgment, with the build link delivered later to the caller
"""

__version__ = "0.1.0"

from ci_trigger_bot.config import BotSettings, RepositoryConfig

__all__ = ["__version__", "BotSettings", "RepositoryConfig"]
