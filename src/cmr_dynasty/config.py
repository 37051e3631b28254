"""Application settings via pydantic-settings. Loads from environment and .env file."""

from __future__ import annotations

from pydantic import model_validator
from pydantic_settings import BaseSettings

# Shared channel and role names the bot looks up by name in the guild.
NEWS_FEED_CHANNEL = "news-feed"
TEAM_LISTS_CHANNEL = "team-lists"
SIGNED_COACHES_CHANNEL = "signed-coaches"
ADVANCE_TRACKER_CHANNEL = "advance-tracker"
TEAM_CHANNELS_CATEGORY = "Team Channels"
HEAD_COACH_ROLE = "head coach"

# Autocomplete needs at least this many typed characters before suggesting.
AUTOCOMPLETE_MIN_LENGTH = 2
AUTOCOMPLETE_LIMIT = 25

VALID_ADVANCE_INTERVALS = frozenset({24, 48})


class Settings(BaseSettings):
    """CMR Dynasty bot configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Discord
    discord_bot_token: str = ""
    discord_guild_id: str = ""
    discord_enabled: bool = True

    # Database
    database_url: str = "sqlite+aiosqlite:///cmr_dynasty.db"

    # Environment
    dynasty_env: str = "development"

    # Job offers
    dynasty_open_tier_stars: float = 2.5
    dynasty_offer_count: int = 3
    dynasty_reaction_offer_count: int = 5
    dynasty_offer_message_id: str = ""  # Reacting to this message requests offers
    dynasty_offer_emoji: str = "\N{AMERICAN FOOTBALL}"

    # League announcements
    dynasty_head_coach_role_id: str = ""
    dynasty_timezone: str = "America/Chicago"
    dynasty_stream_reminder_seconds: int = 45 * 60

    # Keep-alive
    self_ping_url: str = ""
    self_ping_interval_seconds: int = 4 * 60

    # Logging
    dynasty_log_level: str = "INFO"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _require_token_in_production(self) -> Settings:
        """Reject a production config that enables Discord without a token."""
        if self.dynasty_env == "production" and self.discord_enabled and not self.discord_bot_token:
            msg = "DISCORD_BOT_TOKEN must be set in production when Discord is enabled."
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def _check_offer_counts(self) -> Settings:
        if self.dynasty_offer_count < 1 or self.dynasty_reaction_offer_count < 1:
            raise ValueError("Offer counts must be at least 1.")
        return self

    @property
    def offer_message_id(self) -> int:
        """The configured offer message id as an int, or 0 when unset."""
        return int(self.dynasty_offer_message_id) if self.dynasty_offer_message_id else 0

    def head_coach_mention(self) -> str:
        """Role mention for announcements, falling back to the plain role name."""
        if self.dynasty_head_coach_role_id:
            return f"<@&{self.dynasty_head_coach_role_id}>"
        return f"@{HEAD_COACH_ROLE}"
