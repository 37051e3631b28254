"""Discord bot for the CMR Dynasty league.

Runs alongside FastAPI using the same event loop. Hands out job offers by DM,
records game results, advances the league clock, and posts rankings and
announcements to the league's channels.

The bot is optional: if DISCORD_BOT_TOKEN is not set, nothing starts.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import discord
from discord import Intents, app_commands
from discord.ext import commands
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from cmr_dynasty.config import (
    ADVANCE_TRACKER_CHANNEL,
    HEAD_COACH_ROLE,
    NEWS_FEED_CHANNEL,
    SIGNED_COACHES_CHANNEL,
    TEAM_LISTS_CHANNEL,
)
from cmr_dynasty.core.errors import LeagueError, OfferAlreadyUsed
from cmr_dynasty.core.offers import (
    INVALID_CHOICE_PROMPT,
    ClaimStatus,
    OfferBook,
    claim_offer,
    format_offers_message,
    request_offers,
)
from cmr_dynasty.core.results import enter_any_game_result, submit_game_result
from cmr_dynasty.core.roster import move_coach, release_coach
from cmr_dynasty.core.season import (
    advance_message,
    advance_season,
    advance_week,
    next_advance_time,
    post_press_release,
    validate_interval,
)
from cmr_dynasty.core.standings import rank_all_time, rank_season, ranking_lines
from cmr_dynasty.discord.embeds import (
    build_all_time_rankings_embed,
    build_game_result_embed,
    build_manual_result_embed,
    build_press_release_embed,
    build_season_rankings_embed,
    build_team_list_embeds,
    build_weekly_summary_embed,
)
from cmr_dynasty.discord.helpers import (
    autocomplete_matches,
    db_session,
    find_or_create_role,
    find_or_create_team_channel,
    find_team_category,
    find_team_channel,
    find_text_channel,
    has_stream_link,
    is_team_channel,
    normalize_channel_name,
)
from cmr_dynasty.models.league import GameResult, SeasonRecord, Team

if TYPE_CHECKING:
    from cmr_dynasty.config import Settings

logger = logging.getLogger(__name__)

STREAM_REMINDER_TEXT = (
    "<@{user_id}> Friendly reminder! Please share your game results using the "
    "`/game-result` command \N{SMILING FACE WITH SMILING EYES}"
)


class DynastyBot(commands.Bot):
    """The CMR Dynasty Discord bot.

    Runs in-process with FastAPI. Offer state lives in the injected
    ``OfferBook``; everything else is read from and written to the database
    through one session per command.
    """

    def __init__(
        self,
        settings: Settings,
        engine: AsyncEngine,
        offer_book: OfferBook | None = None,
    ) -> None:
        intents = Intents.default()
        intents.message_content = True
        intents.members = True

        super().__init__(
            command_prefix="!",
            intents=intents,
            description="CMR Dynasty -- job offers, game results, and league standings.",
        )
        self.settings = settings
        self.engine = engine
        self.offer_book = offer_book or OfferBook()
        self._team_cache: list[Team] = []
        self._reminder_tasks: set[asyncio.Task[None]] = set()
        self._setup_commands()

    def _setup_commands(self) -> None:
        """Register slash commands on the bot's command tree."""

        @self.tree.command(name="joboffers", description="Get your CMR Dynasty job offers")
        @app_commands.guild_only()
        async def joboffers_command(interaction: discord.Interaction) -> None:
            await self._handle_joboffers(interaction)

        @self.tree.command(name="resetteam", description="Reset a user's team")
        @app_commands.describe(userid="The Discord user ID of the coach to reset")
        @app_commands.guild_only()
        @app_commands.default_permissions(administrator=True)
        async def resetteam_command(interaction: discord.Interaction, userid: str) -> None:
            await self._handle_resetteam(interaction, userid)

        @self.tree.command(name="listteams", description="Post a list of taken and available teams")
        @app_commands.guild_only()
        @app_commands.default_permissions(administrator=True)
        async def listteams_command(interaction: discord.Interaction) -> None:
            await self._handle_listteams(interaction)

        @self.tree.command(name="game-result", description="Submit a game result")
        @app_commands.describe(
            opponent="Opponent team",
            your_score="Your team score",
            opponent_score="Opponent score",
            summary="Game summary",
        )
        @app_commands.guild_only()
        async def game_result_command(
            interaction: discord.Interaction,
            opponent: str,
            your_score: int,
            opponent_score: int,
            summary: str,
        ) -> None:
            await self._handle_game_result(
                interaction, opponent, your_score, opponent_score, summary
            )

        @game_result_command.autocomplete("opponent")
        async def _opponent_autocomplete(
            interaction: discord.Interaction,
            current: str,
        ) -> list[app_commands.Choice[str]]:
            return self._autocomplete_team_names(current)

        @self.tree.command(
            name="any-game-result",
            description="Enter a game result for any team (commissioner only)",
        )
        @app_commands.describe(
            home_team="Home team",
            away_team="Away team",
            home_score="Home team score",
            away_score="Away team score",
            week="Week number",
            summary="Game summary",
        )
        @app_commands.guild_only()
        @app_commands.default_permissions(administrator=True)
        async def any_game_result_command(
            interaction: discord.Interaction,
            home_team: str,
            away_team: str,
            home_score: int,
            away_score: int,
            week: int,
            summary: str,
        ) -> None:
            await self._handle_any_game_result(
                interaction, home_team, away_team, home_score, away_score, week, summary
            )

        @any_game_result_command.autocomplete("home_team")
        async def _home_autocomplete(
            interaction: discord.Interaction,
            current: str,
        ) -> list[app_commands.Choice[str]]:
            return self._autocomplete_team_names(current)

        @any_game_result_command.autocomplete("away_team")
        async def _away_autocomplete(
            interaction: discord.Interaction,
            current: str,
        ) -> list[app_commands.Choice[str]]:
            return self._autocomplete_team_names(current)

        @self.tree.command(name="press-release", description="Post a press release")
        @app_commands.describe(text="Text to post")
        @app_commands.guild_only()
        async def press_release_command(interaction: discord.Interaction, text: str) -> None:
            await self._handle_press_release(interaction, text)

        @self.tree.command(name="advance", description="Advance to next week (commissioner only)")
        @app_commands.describe(interval="Time until next advance")
        @app_commands.choices(
            interval=[
                app_commands.Choice(name="24 hours", value="24"),
                app_commands.Choice(name="48 hours", value="48"),
            ]
        )
        @app_commands.guild_only()
        @app_commands.default_permissions(administrator=True)
        async def advance_command(
            interaction: discord.Interaction,
            interval: app_commands.Choice[str],
        ) -> None:
            await self._handle_advance(interaction, interval.value)

        @self.tree.command(
            name="season-advance",
            description="Advance to next season (commissioner only)",
        )
        @app_commands.guild_only()
        @app_commands.default_permissions(administrator=True)
        async def season_advance_command(interaction: discord.Interaction) -> None:
            await self._handle_season_advance(interaction)

        @self.tree.command(
            name="ranking",
            description="Show current season rankings (commissioner only)",
        )
        @app_commands.guild_only()
        @app_commands.default_permissions(administrator=True)
        async def ranking_command(interaction: discord.Interaction) -> None:
            await self._handle_ranking(interaction)

        @self.tree.command(
            name="ranking-all-time",
            description="Show all-time rankings across seasons (commissioner only)",
        )
        @app_commands.describe(public="Post to #news-feed (default: private)")
        @app_commands.guild_only()
        @app_commands.default_permissions(administrator=True)
        async def ranking_all_time_command(
            interaction: discord.Interaction,
            public: bool = False,
        ) -> None:
            await self._handle_ranking_all_time(interaction, public)

        @self.tree.command(
            name="move-coach",
            description="Move a coach to a new team (commissioner only)",
        )
        @app_commands.describe(
            coach="Select the coach to move",
            new_team="Select the new team",
        )
        @app_commands.guild_only()
        @app_commands.default_permissions(administrator=True)
        async def move_coach_command(
            interaction: discord.Interaction,
            coach: str,
            new_team: str,
        ) -> None:
            await self._handle_move_coach(interaction, coach, new_team)

        @move_coach_command.autocomplete("coach")
        async def _coach_autocomplete(
            interaction: discord.Interaction,
            current: str,
        ) -> list[app_commands.Choice[str]]:
            return self._autocomplete_coaches(current)

        @move_coach_command.autocomplete("new_team")
        async def _new_team_autocomplete(
            interaction: discord.Interaction,
            current: str,
        ) -> list[app_commands.Choice[str]]:
            return self._autocomplete_team_ids(current)

    async def setup_hook(self) -> None:
        """Called when the bot is ready to start. Syncs slash commands to the league guild."""
        if self.settings.discord_guild_id:
            guild = discord.Object(id=int(self.settings.discord_guild_id))
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            # Drop stale global registrations so each command shows up once.
            self.tree.clear_commands(guild=None)
            await self.tree.sync()
            logger.info("discord_commands_synced guild_id=%s", self.settings.discord_guild_id)
        else:
            await self.tree.sync()
            logger.info("discord_commands_synced globally")

    async def on_ready(self) -> None:
        """Called when the bot has connected (and on every reconnect)."""
        user = self.user
        logger.info("discord_bot_ready user=%s", user.name if user else "unknown")
        await self._refresh_team_cache()

    async def close(self) -> None:
        """Clean shutdown: cancel pending stream reminders and close bot."""
        for task in list(self._reminder_tasks):
            task.cancel()
        for task in list(self._reminder_tasks):
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await super().close()

    # --- Shared plumbing ---

    def _league_guild(self) -> discord.Guild | None:
        if self.settings.discord_guild_id:
            return self.get_guild(int(self.settings.discord_guild_id))
        return self.guilds[0] if self.guilds else None

    async def _defer(self, interaction: discord.Interaction, command: str) -> bool:
        """Acknowledge the interaction. Returns False if it already expired."""
        try:
            await interaction.response.defer(ephemeral=True)
        except (discord.NotFound, discord.HTTPException) as defer_err:
            logger.warning(
                "%s_defer_expired user=%s err=%s",
                command,
                interaction.user.id if interaction.user else "unknown",
                defer_err,
            )
            return False
        return True

    async def _reply(self, interaction: discord.Interaction, content: str) -> None:
        await interaction.followup.send(content, ephemeral=True)

    async def _require_admin(self, interaction: discord.Interaction, action: str) -> bool:
        user = interaction.user
        if isinstance(user, discord.Member) and user.guild_permissions.administrator:
            return True
        await self._reply(interaction, f"Only the commissioner can {action}.")
        return False

    async def _post(
        self,
        channel_name: str,
        content: str | None = None,
        embed: discord.Embed | None = None,
    ) -> bool:
        """Send to a league channel by name. Failures are logged, never raised."""
        guild = self._league_guild()
        if guild is None:
            logger.warning("discord_post_no_guild channel=%s", channel_name)
            return False
        channel = find_text_channel(guild, channel_name)
        if channel is None:
            logger.warning("discord_channel_missing channel=%s", channel_name)
            return False
        try:
            await channel.send(content=content, embed=embed)
        except discord.HTTPException:
            logger.exception("discord_post_failed channel=%s", channel_name)
            return False
        return True

    async def _refresh_team_cache(self) -> None:
        try:
            async with db_session(self.engine) as repo:
                self._team_cache = [Team.model_validate(row) for row in await repo.get_all_teams()]
            logger.info("team_cache_refreshed teams=%d", len(self._team_cache))
        except SQLAlchemyError:
            logger.exception("team_cache_refresh_failed")

    # --- Autocomplete (served from the in-memory team cache) ---

    def _autocomplete_team_names(self, current: str) -> list[app_commands.Choice[str]]:
        options = ((t.name, t.name) for t in self._team_cache)
        return [
            app_commands.Choice(name=label, value=value)
            for label, value in autocomplete_matches(options, current)
        ]

    def _autocomplete_coaches(self, current: str) -> list[app_commands.Choice[str]]:
        options = (
            (t.taken_by_name, t.taken_by_name)
            for t in self._team_cache
            if t.is_human and t.taken_by_name
        )
        return [
            app_commands.Choice(name=label, value=value)
            for label, value in autocomplete_matches(options, current)
        ]

    def _autocomplete_team_ids(self, current: str) -> list[app_commands.Choice[str]]:
        options = (
            (f"{t.name} ({t.taken_by_name or 'available'})", str(t.id)) for t in self._team_cache
        )
        return [
            app_commands.Choice(name=label, value=value)
            for label, value in autocomplete_matches(options, current)
        ]

    # --- Job offers ---

    async def _send_offers(self, user: discord.abc.User, count: int) -> list[Team]:
        """Run an offer request for ``user`` and DM the result."""

        async def fetch_pool() -> list[Team]:
            async with db_session(self.engine) as repo:
                rows = await repo.get_open_teams(self.settings.dynasty_open_tier_stars)
                return [Team.model_validate(row) for row in rows]

        async def deliver(offers: list[Team]) -> None:
            await user.send(format_offers_message(offers))

        return await request_offers(self.offer_book, str(user.id), count, fetch_pool, deliver)

    async def _handle_joboffers(self, interaction: discord.Interaction) -> None:
        """Handle the /joboffers slash command."""
        if not await self._defer(interaction, "joboffers"):
            return
        try:
            offers = await self._send_offers(interaction.user, self.settings.dynasty_offer_count)
        except OfferAlreadyUsed:
            await self._reply(interaction, "\N{NO ENTRY} You already received a job offer.")
            return
        except SQLAlchemyError as e:
            logger.exception("joboffers_failed user=%s", interaction.user.id)
            await self._reply(interaction, f"Error fetching offers: {e}")
            return
        except discord.HTTPException:
            logger.warning("joboffers_dm_failed user=%s", interaction.user.id)
            await self._reply(
                interaction,
                "I couldn't DM you. Allow direct messages from server members and try again.",
            )
            return

        if not offers:
            await self._reply(interaction, "No teams available at the moment.")
            return
        await self._reply(interaction, "Check your DMs for job offers!")

    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        """Reacting to the configured offer message requests a larger offer batch."""
        offer_message_id = self.settings.offer_message_id
        if not offer_message_id or payload.message_id != offer_message_id:
            return
        if str(payload.emoji) != self.settings.dynasty_offer_emoji:
            return
        if self.user is not None and payload.user_id == self.user.id:
            return
        if payload.member is not None and payload.member.bot:
            return

        try:
            user = payload.member or await self.fetch_user(payload.user_id)
        except discord.HTTPException:
            logger.exception("offer_reaction_user_lookup_failed user=%s", payload.user_id)
            return

        try:
            offers = await self._send_offers(user, self.settings.dynasty_reaction_offer_count)
        except OfferAlreadyUsed:
            with contextlib.suppress(discord.Forbidden, discord.HTTPException):
                await user.send("\N{NO ENTRY} You already received a job offer.")
            return
        except SQLAlchemyError:
            logger.exception("offer_reaction_failed user=%s", payload.user_id)
            return
        except discord.HTTPException:
            logger.warning("offer_reaction_dm_failed user=%s", payload.user_id)
            return

        if not offers:
            with contextlib.suppress(discord.Forbidden, discord.HTTPException):
                await user.send("No teams available at the moment.")

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        if message.guild is None:
            await self._handle_offer_reply(message)
            return
        if is_team_channel(message.channel) and has_stream_link(message.content):
            self._schedule_stream_reminder(message)

    async def _handle_offer_reply(self, message: discord.Message) -> None:
        """A DM from a user with pending offers is their pick."""
        user_id = str(message.author.id)
        if not self.offer_book.pending(user_id):
            return

        async def claim(team: Team) -> bool:
            async with db_session(self.engine) as repo:
                return await repo.claim_team(team.id, user_id, message.author.name)

        try:
            outcome = await claim_offer(self.offer_book, user_id, message.content, claim)
        except SQLAlchemyError:
            logger.exception("offer_claim_failed user=%s", user_id)
            with contextlib.suppress(discord.HTTPException):
                await message.reply("Failed to claim the team \N{EM DASH} database error.")
            return

        if outcome.status is ClaimStatus.NO_OFFER:
            return
        if outcome.status is ClaimStatus.INVALID:
            with contextlib.suppress(discord.HTTPException):
                await message.reply(INVALID_CHOICE_PROMPT)
            return

        team = outcome.team
        if team is None:
            return
        if outcome.status is ClaimStatus.TAKEN:
            with contextlib.suppress(discord.HTTPException):
                await message.reply(
                    f"**{team.name}** was just taken by another coach. "
                    "Reply with another number from your list."
                )
            return

        with contextlib.suppress(discord.HTTPException):
            await message.reply(f"You accepted the job offer from **{team.name}**!")
        await self._refresh_team_cache()
        await self._provision_coach(message.author.id, team)
        await self.post_team_list()

    async def _provision_coach(self, user_id: int, team: Team) -> None:
        """Announce a signing and set up the coach's channel and role.

        Each step is individually wrapped so one failure doesn't block the rest.
        """
        guild = self._league_guild()
        if guild is None:
            logger.warning("provision_no_guild user=%s team=%s", user_id, team.id)
            return

        await self._post(
            SIGNED_COACHES_CHANNEL,
            f"\N{AMERICAN FOOTBALL} <@{user_id}> has accepted a job offer from **{team.name}**!",
        )

        try:
            channel, created = await find_or_create_team_channel(guild, team.name)
            if created:
                await channel.send(f"Welcome to **{team.name}**! <@{user_id}> is the Head Coach.")
        except discord.HTTPException:
            logger.exception("provision_channel_failed team=%s", team.id)

        try:
            member = guild.get_member(user_id) or await guild.fetch_member(user_id)
            role = await find_or_create_role(guild)
            await member.add_roles(role, reason="Claimed team")
            logger.info("provision_role_assigned user=%s role=%s", user_id, HEAD_COACH_ROLE)
        except discord.HTTPException:
            logger.exception("provision_role_failed user=%s", user_id)

    # --- Stream reminders ---

    def _schedule_stream_reminder(self, message: discord.Message) -> None:
        channel_id = message.channel.id
        user_id = message.author.id
        logger.info("stream_link_detected channel=%s user=%s", channel_id, user_id)

        async def _remind() -> None:
            await asyncio.sleep(self.settings.dynasty_stream_reminder_seconds)
            try:
                channel = self.get_channel(channel_id) or await self.fetch_channel(channel_id)
                text = STREAM_REMINDER_TEXT.format(user_id=user_id)
                await channel.send(text)  # type: ignore[union-attr]
                logger.info("stream_reminder_sent channel=%s user=%s", channel_id, user_id)
            except discord.HTTPException:
                logger.exception("stream_reminder_failed channel=%s", channel_id)

        task = asyncio.create_task(_remind(), name=f"stream-reminder-{channel_id}")
        self._reminder_tasks.add(task)
        task.add_done_callback(self._reminder_tasks.discard)

    # --- Roster administration ---

    async def _handle_resetteam(self, interaction: discord.Interaction, userid: str) -> None:
        """Handle the /resetteam slash command (admin only)."""
        if not await self._defer(interaction, "resetteam"):
            return
        if not await self._require_admin(interaction, "reset teams"):
            return

        user_id = userid.strip()
        if not user_id.isdigit():
            await self._reply(
                interaction,
                "Invalid user ID. Please provide a valid Discord user ID (numbers only).",
            )
            return

        try:
            async with db_session(self.engine) as repo:
                team = await release_coach(repo, user_id)
        except LeagueError as e:
            await self._reply(interaction, str(e))
            return
        except SQLAlchemyError as e:
            logger.exception("resetteam_failed user=%s", user_id)
            await self._reply(interaction, f"Error: {e}")
            return

        self.offer_book.clear_marker(user_id)
        self.offer_book.clear_pending(user_id)
        await self._refresh_team_cache()

        guild = self._league_guild()
        if guild is not None:
            channel = find_team_channel(guild, team.name)
            if channel is not None:
                try:
                    await channel.delete(reason="Team reset - removing team")
                except discord.HTTPException:
                    logger.exception("resetteam_channel_delete_failed team=%s", team.id)
            try:
                role = discord.utils.get(guild.roles, name=HEAD_COACH_ROLE)
                member = guild.get_member(int(user_id)) or await guild.fetch_member(int(user_id))
                if role is not None:
                    await member.remove_roles(role, reason="Team reset - removing coach role")
            except discord.HTTPException as e:
                logger.info("resetteam_role_remove_skipped user=%s err=%s", user_id, e)

        await self.post_team_list()
        await self._reply(interaction, f"Reset team {team.name}. Channel deleted and role removed.")

    async def _handle_move_coach(
        self,
        interaction: discord.Interaction,
        coach: str,
        new_team: str,
    ) -> None:
        """Handle the /move-coach slash command (admin only)."""
        if not await self._defer(interaction, "move_coach"):
            return
        if not await self._require_admin(interaction, "move coaches"):
            return

        try:
            async with db_session(self.engine) as repo:
                old_team, moved_to = await move_coach(repo, coach, new_team)
        except LeagueError as e:
            await self._reply(interaction, str(e))
            return
        except SQLAlchemyError as e:
            logger.exception("move_coach_failed coach=%s", coach)
            await self._reply(interaction, f"Error moving coach: {e}")
            return

        await self._refresh_team_cache()
        await self._rename_team_channel(old_team, moved_to)
        await self.post_team_list()
        await self._reply(
            interaction,
            f"\N{WHITE HEAVY CHECK MARK} Moved **{coach}** from **{old_team.name}** to "
            f"**{moved_to.name}**. Channel renamed (if it existed).",
        )

    async def _rename_team_channel(self, old_team: Team, new_team: Team) -> None:
        guild = self._league_guild()
        category = find_team_category(guild) if guild is not None else None
        if category is None:
            logger.warning("move_coach_no_team_category")
            return
        old_slug = normalize_channel_name(old_team.name)
        channel = find_team_channel(guild, old_team.name)  # type: ignore[arg-type]
        if channel is None:
            channel = discord.utils.find(
                lambda ch: old_slug in ch.name, category.text_channels
            )
        if channel is None:
            logger.warning("move_coach_channel_missing team=%s", old_team.id)
            return
        try:
            await channel.edit(name=normalize_channel_name(new_team.name))
            logger.info("move_coach_channel_renamed channel=%s to=%s", channel.id, new_team.name)
        except discord.HTTPException:
            logger.exception("move_coach_channel_rename_failed channel=%s", channel.id)

    # --- Team list ---

    async def _handle_listteams(self, interaction: discord.Interaction) -> None:
        """Handle the /listteams slash command (admin only)."""
        if not await self._defer(interaction, "listteams"):
            return
        if not await self._require_admin(interaction, "list teams"):
            return
        posted = await self.post_team_list()
        message = "Team list posted to #team-lists." if posted else "Error posting team list."
        await self._reply(interaction, message)

    async def post_team_list(self) -> bool:
        """Replace the bot's messages in #team-lists with the current team list."""
        guild = self._league_guild()
        if guild is None:
            logger.warning("team_list_no_guild")
            return False
        channel = find_text_channel(guild, TEAM_LISTS_CHANNEL)
        if channel is None:
            logger.warning("discord_channel_missing channel=%s", TEAM_LISTS_CHANNEL)
            return False

        try:
            async with db_session(self.engine) as repo:
                teams = [Team.model_validate(row) for row in await repo.get_all_teams()]
        except SQLAlchemyError:
            logger.exception("team_list_query_failed")
            return False

        deleted = 0
        try:
            async for old in channel.history(limit=100):
                if self.user is not None and old.author.id == self.user.id:
                    with contextlib.suppress(discord.HTTPException):
                        await old.delete()
                        deleted += 1
        except discord.HTTPException:
            logger.exception("team_list_cleanup_failed")

        try:
            for embed in build_team_list_embeds(teams, self.settings.dynasty_open_tier_stars):
                await channel.send(embed=embed)
        except discord.HTTPException:
            logger.exception("team_list_post_failed")
            return False

        logger.info("team_list_posted teams=%d deleted=%d", len(teams), deleted)
        return True

    # --- Game results and news ---

    async def _handle_game_result(
        self,
        interaction: discord.Interaction,
        opponent: str,
        your_score: int,
        opponent_score: int,
        summary: str,
    ) -> None:
        """Handle the /game-result slash command."""
        if not await self._defer(interaction, "game_result"):
            return

        try:
            async with db_session(self.engine) as repo:
                clock = await repo.get_clock()
                game = await submit_game_result(
                    repo,
                    clock,
                    user_id=str(interaction.user.id),
                    username=interaction.user.name,
                    opponent_name=opponent,
                    user_score=your_score,
                    opponent_score=opponent_score,
                    summary=summary,
                )
        except LeagueError as e:
            await self._reply(interaction, str(e))
            return
        except SQLAlchemyError as e:
            logger.exception("game_result_failed user=%s", interaction.user.id)
            await self._reply(interaction, f"Error processing game result: {e}")
            return

        embed = build_game_result_embed(
            game.user_team,
            game.opponent_team,
            game.result,
            game.user_record,
            game.opponent_record,
        )
        await self._post(NEWS_FEED_CHANNEL, embed=embed)
        await self._reply(
            interaction,
            f"Result recorded and posted to #news-feed: "
            f"{game.user_team.name} vs {game.opponent_team.name}",
        )

    async def _handle_any_game_result(
        self,
        interaction: discord.Interaction,
        home_team: str,
        away_team: str,
        home_score: int,
        away_score: int,
        week: int,
        summary: str,
    ) -> None:
        """Handle the /any-game-result slash command (admin only)."""
        if not await self._defer(interaction, "any_game_result"):
            return
        if not await self._require_admin(interaction, "use this command"):
            return

        try:
            async with db_session(self.engine) as repo:
                clock = await repo.get_clock()
                game = await enter_any_game_result(
                    repo, clock, home_team, away_team, home_score, away_score, week, summary
                )
        except LeagueError as e:
            await self._reply(interaction, str(e))
            return
        except SQLAlchemyError as e:
            logger.exception("any_game_result_failed")
            await self._reply(interaction, f"Error entering result: {e}")
            return

        await self._post(NEWS_FEED_CHANNEL, embed=build_manual_result_embed(game.result))
        await self._reply(
            interaction,
            f"\N{WHITE HEAVY CHECK MARK} Game result entered for Season {game.season}, "
            f"Week {game.week}: {game.home_team.name} {home_score} - "
            f"{game.away_team.name} {away_score}",
        )

    async def _handle_press_release(self, interaction: discord.Interaction, text: str) -> None:
        """Handle the /press-release slash command."""
        if not await self._defer(interaction, "press_release"):
            return
        try:
            async with db_session(self.engine) as repo:
                clock = await repo.get_clock()
                await post_press_release(repo, clock, text)
        except SQLAlchemyError as e:
            logger.exception("press_release_failed user=%s", interaction.user.id)
            await self._reply(interaction, f"Error: {e}")
            return

        await self._post(NEWS_FEED_CHANNEL, embed=build_press_release_embed(text))
        await self._reply(interaction, "Press release posted.")

    # --- League clock ---

    async def _handle_advance(self, interaction: discord.Interaction, interval: str) -> None:
        """Handle the /advance slash command (admin only)."""
        if not await self._defer(interaction, "advance"):
            return
        if not await self._require_admin(interaction, "advance the week"):
            return

        try:
            hours = validate_interval(int(interval) if interval.strip().isdigit() else 0)
            async with db_session(self.engine) as repo:
                clock = await repo.get_clock()
                advanced = await advance_week(repo, clock)
        except LeagueError as e:
            await self._reply(interaction, str(e))
            return
        except SQLAlchemyError as e:
            logger.exception("advance_failed")
            await self._reply(interaction, f"Error advancing week: {e}")
            return

        when = next_advance_time(datetime.now(UTC), hours, self.settings.dynasty_timezone)
        await self._post(
            NEWS_FEED_CHANNEL,
            embed=build_weekly_summary_embed(
                advanced.season,
                advanced.completed_week,
                advanced.press_releases,
                advanced.results,
            ),
        )
        await self._post(
            ADVANCE_TRACKER_CHANNEL,
            advance_message(self.settings.head_coach_mention(), advanced.new_week, hours, when),
        )
        await self._reply(
            interaction,
            f"Week advanced to **{advanced.new_week}** & Summary posted to channels.",
        )

    async def _handle_season_advance(self, interaction: discord.Interaction) -> None:
        """Handle the /season-advance slash command (admin only)."""
        if not await self._defer(interaction, "season_advance"):
            return
        if not await self._require_admin(interaction, "advance the season"):
            return

        try:
            async with db_session(self.engine) as repo:
                clock = await repo.get_clock()
                new_clock = await advance_season(repo, clock)
        except LeagueError as e:
            await self._reply(interaction, str(e))
            return
        except SQLAlchemyError as e:
            logger.exception("season_advance_failed")
            await self._reply(interaction, f"Error advancing season: {e}")
            return

        await self._post(
            ADVANCE_TRACKER_CHANNEL,
            f"{self.settings.head_coach_mention()} We have advanced to Season "
            f"{new_clock.season}! Week reset to 0.",
        )
        await self._reply(
            interaction, f"Season advanced to **{new_clock.season}**, week reset to 0."
        )

    # --- Rankings ---

    async def _handle_ranking(self, interaction: discord.Interaction) -> None:
        """Handle the /ranking slash command (admin only)."""
        if not await self._defer(interaction, "ranking"):
            return
        if not await self._require_admin(interaction, "view rankings"):
            return

        try:
            async with db_session(self.engine) as repo:
                clock = await repo.get_clock()
                records = [
                    SeasonRecord.model_validate(r)
                    for r in await repo.get_records_for_season(clock.season)
                ]
                results = [
                    GameResult.model_validate(r)
                    for r in await repo.get_results_for_season(clock.season)
                ]
                occupants = {t.taken_by for t in await repo.get_occupied_teams() if t.taken_by}
        except SQLAlchemyError as e:
            logger.exception("ranking_failed")
            await self._reply(interaction, f"Error generating rankings: {e}")
            return

        ranked = rank_season(records, results, occupants)
        if not ranked:
            await self._reply(interaction, "No active user records found for this season.")
            return

        embed = build_season_rankings_embed(clock.season, ranking_lines(ranked))
        if await self._post(NEWS_FEED_CHANNEL, embed=embed):
            await self._reply(interaction, "Rankings posted to #news-feed.")
        else:
            await self._reply(
                interaction, "Rankings generated, but could not find #news-feed channel to post."
            )

    async def _handle_ranking_all_time(
        self,
        interaction: discord.Interaction,
        public: bool = False,
    ) -> None:
        """Handle the /ranking-all-time slash command (admin only)."""
        if not await self._defer(interaction, "ranking_all_time"):
            return
        if not await self._require_admin(interaction, "view all-time rankings"):
            return

        try:
            async with db_session(self.engine) as repo:
                records = [SeasonRecord.model_validate(r) for r in await repo.get_all_records()]
                results = [GameResult.model_validate(r) for r in await repo.get_all_results()]
                teams = [Team.model_validate(t) for t in await repo.get_all_teams()]
        except SQLAlchemyError as e:
            logger.exception("ranking_all_time_failed")
            await self._reply(interaction, f"Error generating all-time rankings: {e}")
            return

        ranked = rank_all_time(records, results, teams)
        if not ranked:
            await self._reply(interaction, "No user teams found across all seasons.")
            return

        embed = build_all_time_rankings_embed(ranking_lines(ranked, fallback_name="Unknown"))
        if not public:
            await interaction.followup.send(embed=embed, ephemeral=True)
        elif await self._post(NEWS_FEED_CHANNEL, embed=embed):
            await self._reply(interaction, "All-time rankings posted to #news-feed.")
        else:
            await self._reply(interaction, "Error: Could not find #news-feed channel.")


def is_discord_enabled(settings: Settings) -> bool:
    """Check whether Discord integration should be started.

    Returns True only when discord_enabled is True, a token is set, AND the
    environment is not development. Keeps a local dev server from syncing
    commands into the live league guild.
    """
    if settings.dynasty_env == "development":
        logger.info("discord_bot_skipped_in_development")
        return False
    return bool(settings.discord_enabled and settings.discord_bot_token)


async def start_discord_bot(
    settings: Settings,
    engine: AsyncEngine,
    offer_book: OfferBook | None = None,
) -> DynastyBot:
    """Create and start the Discord bot in the current event loop.

    Returns the bot instance so the caller can stop it during shutdown.
    The bot runs as a background task; this function returns immediately
    after starting it.
    """
    bot = DynastyBot(settings=settings, engine=engine, offer_book=offer_book)

    async def _run_bot() -> None:
        try:
            await bot.start(settings.discord_bot_token)
        except asyncio.CancelledError:
            logger.info("discord_bot_cancelled")
        except Exception:  # bot.start can raise connection and auth errors
            logger.exception("discord_bot_error")
        finally:
            if not bot.is_closed():
                await bot.close()

    asyncio.create_task(_run_bot(), name="discord-bot")
    logger.info("discord_bot_started")
    return bot
