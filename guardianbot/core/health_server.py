"""HTTP health check server"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from aiohttp import web

from .config import BOT_NAME

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class HealthCheckServer:
    """HTTP health check server"""

    def __init__(
        self,
        bot: Bot | None = None,
        scheduler: Scheduler | None = None,
        host: str = "0.0.0.0",
        port: int = 8080,
    ) -> None:
        self.bot: Any = bot
        self.scheduler = scheduler
        self.host = host
        self.port = port
        self.app = web.Application()
        self.runner: web.AppRunner | None = None
        self._start_time: float = time.time()
        self._heartbeat_task: asyncio.Task | None = None
        self._setup_routes()

    def _setup_routes(self) -> None:
        self.app.router.add_get("/health", self.handle_health)
        self.app.router.add_get("/status", self.handle_status)
        self.app.router.add_get("/ping", self.handle_ping)

    def _bot_ready(self) -> bool:
        return self.bot is not None and self.bot.is_ready()

    async def handle_health(self, request: web.Request) -> web.Response:
        """Liveness probe, always 200"""
        ready = self._bot_ready()
        return web.json_response(
            {"status": "healthy" if ready else "starting", "ready": ready},
        )

    async def handle_status(self, request: web.Request) -> web.Response:
        bot_ready = self._bot_ready()
        payload: dict[str, Any] = {
            "service": BOT_NAME,
            "bot_id": str(self.bot.user.id) if bot_ready and self.bot.user else None,
            "uptime_seconds": int(time.time() - self._start_time),
            "connected_guilds": len(self.bot.guilds) if bot_ready else 0,
            "scheduler": None,
        }

        if self.scheduler is not None:
            last = self.scheduler.last_tick_started
            payload["scheduler"] = {
                "running": self.scheduler.running,
                "interval_seconds": self.scheduler.interval,
                "ticks": self.scheduler.tick_count,
                "last_tick_started": last.isoformat() if last else None,
                "last_errors": dict(self.scheduler.last_errors),
            }

        return web.json_response(payload)

    async def handle_ping(self, request: web.Request) -> web.Response:
        return web.Response(text="pong")

    async def _heartbeat(self) -> None:
        """Periodic heartbeat: log uptime, bot status and scheduler progress"""
        while True:
            await asyncio.sleep(300)
            uptime = int(time.time() - self._start_time)
            ready = self._bot_ready()
            guilds = len(self.bot.guilds) if ready else 0
            ticks = self.scheduler.tick_count if self.scheduler else 0
            logger.info(f"Heartbeat: uptime={uptime}s, ready={ready}, guilds={guilds}, ticks={ticks}")

    async def start(self) -> None:
        """Start health check server"""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, self.host, self.port)
            await site.start()

            self._heartbeat_task = asyncio.create_task(self._heartbeat())

            logger.info(f"Health server started on {self.host}:{self.port}")
        except OSError as e:
            logger.exception(f"Failed to start health server: {e}")
            raise

    async def stop(self) -> None:
        """Stop health check server"""
        if self._heartbeat_task:
            self._heartbeat_task.cancel()
        if self.runner:
            await self.runner.cleanup()
            logger.info("Health server stopped")
