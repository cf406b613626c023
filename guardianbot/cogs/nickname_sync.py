"""Starts the sync scheduler once the bot is ready and drains it on unload."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from discord.ext import commands

from guardianbot.jobs import GuildSyncJob, NicknameSyncJob

if TYPE_CHECKING:
    from guardianbot.bot import GuardianBot

logger = logging.getLogger(__name__)


class NicknameSyncCog(commands.Cog):
    """Runs the guild and nickname sync jobs on the bot's scheduler."""

    def __init__(self, bot: GuardianBot) -> None:
        self.bot = bot
        self.scheduler = bot.scheduler
        self._task: asyncio.Task[None] | None = None

    def build_jobs(self) -> tuple[GuildSyncJob, NicknameSyncJob]:
        settings = self.bot.settings
        return (
            GuildSyncJob(self.bot, self.bot.repo),
            NicknameSyncJob(
                self.bot,
                self.bot.repo,
                self.bot.destiny,
                self.bot.refresher,
                max_concurrency=settings.nickname_sync_max_concurrency,
            ),
        )

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        # on_ready fires again after every reconnect; start only once
        if self._task is not None:
            return

        self._task = asyncio.create_task(self.scheduler.run(*self.build_jobs()), name="sync-scheduler")
        self._task.add_done_callback(self._on_scheduler_done)
        logger.info("Sync scheduler started")

    def _on_scheduler_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            logger.warning("Sync scheduler task was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Sync scheduler crashed: {type(exc).__name__}: {exc}", exc_info=exc)

    async def cog_unload(self) -> None:
        if self._task is None:
            return

        # Let the current tick, and every guild task it spawned, finish
        self.scheduler.stop()
        # A crash was already logged by _on_scheduler_done
        await asyncio.wait({self._task})
        self._task = None


async def setup(bot: GuardianBot) -> None:
    """Extension entry point."""
    await bot.add_cog(NicknameSyncCog(bot))
