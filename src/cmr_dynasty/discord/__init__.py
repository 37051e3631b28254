"""Discord bot integration for the CMR Dynasty league.

The bot runs in-process with FastAPI, sharing the same event loop.
Slash commands drive the league; DMs carry job offer claims.

Optional: if DISCORD_BOT_TOKEN is not set, the app runs without Discord.
"""
