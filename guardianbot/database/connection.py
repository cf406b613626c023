"""PostgreSQL connection pool management."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import asyncpg

logger = logging.getLogger(__name__)


@dataclass
class PoolConfig:
    """Pool settings.

    ``max_size`` defaults to one connection: the sync jobs share a single
    logical connection so transaction semantics stay simple.
    """

    min_size: int = 1
    max_size: int = 1
    timeout: float = 10.0
    command_timeout: float = 30.0
    max_inactive_connection_lifetime: float = 300.0
    max_retries: int = 3
    retry_delay: float = 3.0


class DatabasePool:
    """Owns the asyncpg pool lifecycle: connect with retry, health check, close."""

    def __init__(self, database_url: str, config: PoolConfig | None = None) -> None:
        self.database_url = database_url
        self.config = config or PoolConfig()
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> asyncpg.Pool:
        """Create the pool, retrying with exponential backoff."""
        if self._pool is not None:
            logger.warning("Database pool already initialized")
            return self._pool

        safe_url = self.database_url.split("@")[-1] if "@" in self.database_url else "invalid"
        logger.info(f"Connecting to database: {safe_url}")

        cfg = self.config
        for attempt in range(1, cfg.max_retries + 1):
            try:
                self._pool = await asyncpg.create_pool(
                    self.database_url,
                    min_size=min(cfg.min_size, cfg.max_size),
                    max_size=cfg.max_size,
                    timeout=cfg.timeout,
                    command_timeout=cfg.command_timeout,
                    max_inactive_connection_lifetime=cfg.max_inactive_connection_lifetime,
                )

                async with self._pool.acquire() as conn:
                    await conn.fetchval("SELECT 1")

                logger.info(f"Database pool created and verified (size={cfg.max_size})")
                return self._pool
            except (OSError, asyncpg.PostgresError, asyncio.TimeoutError) as e:
                if self._pool is not None:
                    await self._pool.close()
                    self._pool = None

                if attempt >= cfg.max_retries:
                    logger.exception(
                        f"Database connection failed after {cfg.max_retries} attempts: "
                        f"{type(e).__name__}: {e}"
                    )
                    raise

                delay = cfg.retry_delay * (2 ** (attempt - 1))
                logger.warning(
                    f"Database connection attempt {attempt}/{cfg.max_retries} failed: "
                    f"{type(e).__name__}: {e}, retrying in {delay}s..."
                )
                await asyncio.sleep(delay)

        raise RuntimeError("unreachable")  # pragma: no cover

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("Database pool closed")

    async def check_health(self) -> bool:
        """Test if the pool can actually execute a query."""
        if self._pool is None:
            return False
        try:
            async with self._pool.acquire(timeout=2.0) as conn:
                await conn.fetchval("SELECT 1")
            return True
        except (OSError, asyncpg.PostgresError, asyncio.TimeoutError):
            return False

    @property
    def pool(self) -> asyncpg.Pool:
        """The live pool. Raises if :meth:`connect` has not been called."""
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first.")
        return self._pool
