"""
guardianbot Discord bot

Keeps the nickname of every member who linked a Destiny 2 account in sync
with the display name of their active (cross save) account.
"""

from __future__ import annotations

import asyncio
import logging
import signal

import discord
import httpx
from discord.ext import commands
from pydantic import ValidationError

from guardianbot.core import (
    BOT_VERSION,
    HealthCheckServer,
    Scheduler,
    Settings,
    get_settings,
    setup_logging,
)
from guardianbot.database import DatabasePool, PoolConfig, Repository
from guardianbot.destiny2 import Destiny2Client, OAuthConfig, TokenRefresher

logger = logging.getLogger(__name__)


class GuardianBot(commands.Bot):
    """Discord client holding the collaborators the sync jobs need."""

    initial_extensions = [
        "guardianbot.cogs.nickname_sync",
    ]

    def __init__(
        self,
        *,
        settings: Settings,
        repo: Repository,
        destiny: Destiny2Client,
        refresher: TokenRefresher,
        scheduler: Scheduler,
    ) -> None:
        intents = discord.Intents.default()
        intents.members = True  # member lists are needed to rename members

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
        )

        self.settings = settings
        self.repo = repo
        self.destiny = destiny
        self.refresher = refresher
        self.scheduler = scheduler
        self._shutdown_task: asyncio.Task[None] | None = None

    def request_shutdown(self) -> asyncio.Task[None]:
        """Close the bot from a signal handler. Repeated calls share one task."""
        if self._shutdown_task is None:
            logger.info("Shutdown requested")
            self._shutdown_task = asyncio.create_task(self.close(), name="bot-shutdown")
        return self._shutdown_task

    async def setup_hook(self) -> None:
        loaded = []
        failed = []

        for extension in self.initial_extensions:
            try:
                await self.load_extension(extension)
                loaded.append(extension.split(".")[-1])
            except commands.ExtensionError as e:
                failed.append(f"{extension.split('.')[-1]} ({e})")

        if loaded:
            logger.info(f"Loaded extensions: {', '.join(loaded)}")
        if failed:
            logger.error(f"Failed to load extensions: {', '.join(failed)}")

    async def on_ready(self) -> None:
        logger.info(f"Bot ready: {self.user} (ID: {self.user.id if self.user else '?'})")
        logger.info(f"Connected to {len(self.guilds)} guild(s) | discord.py {discord.__version__}")


def _install_signal_handlers(bot: GuardianBot) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, bot.request_shutdown)
        except NotImplementedError:
            # Windows: fall back to KeyboardInterrupt
            return


async def main() -> None:
    """Bot entry point"""
    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging()
        logger.error(f"Invalid configuration: {e}")
        return

    setup_logging(settings.log_level)
    logger.info(f"Starting guardianbot {BOT_VERSION}")

    database = DatabasePool(
        settings.database_url,
        PoolConfig(max_size=settings.database_max_connections),
    )
    pool = await database.connect()

    http = httpx.AsyncClient(timeout=10.0)
    destiny = Destiny2Client(settings.bungie_api_key, http=http)
    refresher = TokenRefresher(
        OAuthConfig(settings.bungie_client_id, settings.bungie_client_secret),
        http=http,
    )
    scheduler = Scheduler(settings.sync_interval_seconds)
    health: HealthCheckServer | None = None

    try:
        async with GuardianBot(
            settings=settings,
            repo=Repository(pool),
            destiny=destiny,
            refresher=refresher,
            scheduler=scheduler,
        ) as bot:
            if settings.health_enabled:
                health = HealthCheckServer(
                    bot, scheduler, host=settings.health_host, port=settings.health_port
                )
                await health.start()

            _install_signal_handlers(bot)
            try:
                await bot.start(settings.discord_bot_token)
            except (KeyboardInterrupt, asyncio.CancelledError):
                if not bot.is_closed():
                    await bot.close()
    finally:
        if health is not None:
            await health.stop()
        await http.aclose()
        await database.close()
        logger.info("Shutdown complete")
