"""Repository for the guilds and users tables.

Every operation takes an optional ``conn``. Pass the connection yielded by
:meth:`Repository.transaction` to run several operations in one
transaction; leave it out to run on a pooled connection.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

import asyncpg

from guardianbot.destiny2.oauth import Credential

from .models import Guild, User

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, membership_type, membership_id, access_token, refresh_token, expiry"


class RecordNotFound(LookupError):
    """No row matched the lookup."""


def _affected_rows(status: str) -> int:
    # asyncpg returns the command tag, e.g. "DELETE 3"
    try:
        return int(status.rsplit(" ", 1)[-1])
    except ValueError:
        return 0


class Repository:
    """Pure SQL operations for guilds / users."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """Yield a connection inside a transaction.

        Commits when the block exits normally and rolls back when it raises.
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield conn

    @asynccontextmanager
    async def _connection(
        self, conn: asyncpg.Connection | None
    ) -> AsyncIterator[asyncpg.Connection]:
        if conn is not None:
            yield conn
            return
        async with self.pool.acquire() as acquired:
            yield acquired

    # ==================== Guild Operations ====================

    async def sync_guilds(
        self, guild_ids: Iterable[int], *, conn: asyncpg.Connection | None = None
    ) -> int:
        """Delete every guild whose id is not in *guild_ids*. Returns rows deleted."""
        ids = list(guild_ids)
        async with self._connection(conn) as c:
            status: str = await c.execute(
                "DELETE FROM guilds WHERE NOT (id = ANY($1::bigint[]))",
                ids,
            )
        deleted = _affected_rows(status)
        if deleted:
            logger.info(f"Deleted {deleted} guild(s) the bot is no longer in")
        return deleted

    async def get_guild_by_id(
        self, guild_id: int, *, conn: asyncpg.Connection | None = None
    ) -> Guild:
        """Get a guild by id. Raises :class:`RecordNotFound` when absent."""
        async with self._connection(conn) as c:
            row = await c.fetchrow(
                "SELECT id, group_id FROM guilds WHERE id = $1",
                guild_id,
            )
        if row is None:
            raise RecordNotFound(f"guild {guild_id}")
        return Guild(**dict(row))

    # ==================== User Operations ====================

    async def get_user_by_id(
        self, user_id: int, *, conn: asyncpg.Connection | None = None
    ) -> User:
        """Get a linked account by Discord user id. Raises :class:`RecordNotFound`."""
        async with self._connection(conn) as c:
            row = await c.fetchrow(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )
        if row is None:
            raise RecordNotFound(f"user {user_id}")
        return User(**dict(row))

    async def get_user_by_membership_id(
        self, membership_id: int, *, conn: asyncpg.Connection | None = None
    ) -> User:
        """Get a linked account by Destiny 2 membership id. Raises :class:`RecordNotFound`."""
        async with self._connection(conn) as c:
            row = await c.fetchrow(
                f"SELECT {_USER_COLUMNS} FROM users WHERE membership_id = $1",
                membership_id,
            )
        if row is None:
            raise RecordNotFound(f"user with membership {membership_id}")
        return User(**dict(row))

    async def update_user_tokens(
        self,
        user_id: int,
        credential: Credential,
        *,
        conn: asyncpg.Connection | None = None,
    ) -> None:
        """Store a refreshed credential for a linked account."""
        async with self._connection(conn) as c:
            await c.execute(
                """
                UPDATE users SET
                    access_token  = $2,
                    refresh_token = $3,
                    expiry        = $4
                WHERE id = $1
                """,
                user_id,
                credential.access_token,
                credential.refresh_token,
                credential.expiry,
            )
