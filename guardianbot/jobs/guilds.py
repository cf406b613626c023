"""Guild sync job: forget guilds the bot has been removed from."""

from __future__ import annotations

import asyncio
import logging

from discord.ext import commands

from guardianbot.core.scheduler import raise_if_stopped
from guardianbot.database import Repository

logger = logging.getLogger(__name__)


class GuildSyncJob:
    """Delete stored guild records for guilds missing from the live snapshot.

    Running it twice with the same snapshot deletes nothing the second time.
    Storage errors propagate to the scheduler.
    """

    name = "delete_removed_guilds"

    def __init__(self, bot: commands.Bot, repo: Repository) -> None:
        self.bot = bot
        self.repo = repo

    async def __call__(self, stop: asyncio.Event) -> int:
        raise_if_stopped(stop)

        guild_ids = [guild.id for guild in self.bot.guilds]
        deleted = await self.repo.sync_guilds(guild_ids)
        logger.debug(f"Guild sync: {len(guild_ids)} connected, {deleted} removed")
        return deleted
