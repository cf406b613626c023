"""Nickname sync job.

Sets every linked member's nickname to the display name of their active
Destiny 2 account, in every guild the bot is in. A failure for one member
is logged and skipped; it never stops the rest of the guild, let alone the
other guilds.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections import Counter

import discord
import httpx
from discord.ext import commands

from guardianbot.core.scheduler import raise_if_stopped
from guardianbot.database import RecordNotFound, Repository
from guardianbot.destiny2 import (
    Destiny2Client,
    Destiny2Error,
    OAuthToken,
    TokenRefresher,
    TokenRefreshError,
)

logger = logging.getLogger(__name__)

# Discord rejects nicknames longer than this
MAX_NICK_LENGTH = 32


class MemberOutcome(enum.Enum):
    RENAMED = "renamed"
    UNLINKED = "unlinked"
    NO_ACTIVE_ACCOUNT = "no_active_account"
    SKIPPED = "skipped"
    FAILED = "failed"


class SyncReport(Counter):
    """Member outcome counts for one run of the job."""

    def summary(self) -> str:
        return ", ".join(f"{o.value}={self[o]}" for o in MemberOutcome if self[o])


class NicknameSyncJob:
    """Fan out one task per guild; each walks its members sequentially.

    ``max_concurrency`` bounds how many guilds are processed at once. The
    default (``None`` or 0) starts a task for every guild with no cap, which
    is fine for a handful of guilds but does not scale to thousands.
    """

    name = "set_nicknames"

    def __init__(
        self,
        bot: commands.Bot,
        repo: Repository,
        destiny: Destiny2Client,
        refresher: TokenRefresher,
        *,
        max_concurrency: int | None = None,
    ) -> None:
        self.bot = bot
        self.repo = repo
        self.destiny = destiny
        self.refresher = refresher
        self.max_concurrency = max_concurrency or None

    async def __call__(self, stop: asyncio.Event) -> SyncReport:
        raise_if_stopped(stop)

        guilds = list(self.bot.guilds)
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        results = await asyncio.gather(
            *(self._run_guild(guild, stop, semaphore) for guild in guilds),
            return_exceptions=True,
        )

        report = SyncReport()
        for guild, result in zip(guilds, results):
            if isinstance(result, BaseException):
                logger.error(
                    f"Nickname sync for guild {guild.id} aborted: {type(result).__name__}: {result}",
                    exc_info=result,
                )
                continue
            report.update(result)

        if guilds:
            logger.info(f"Nickname sync over {len(guilds)} guild(s): {report.summary() or 'nothing to do'}")
        return report

    async def _run_guild(
        self,
        guild: discord.Guild,
        stop: asyncio.Event,
        semaphore: asyncio.Semaphore | None,
    ) -> SyncReport:
        if semaphore is None:
            return await self.sync_guild(guild, stop)
        async with semaphore:
            return await self.sync_guild(guild, stop)

    async def sync_guild(self, guild: discord.Guild, stop: asyncio.Event) -> SyncReport:
        """Process the guild's members one after another, in snapshot order."""
        report = SyncReport()

        for member in list(guild.members):
            if stop.is_set():
                logger.info(f"Nickname sync for guild {guild.id} stopped early: shutdown requested")
                break
            try:
                outcome = await self.sync_member(guild, member)
            except Exception as e:
                logger.exception(f"Unexpected error syncing member {member.id} in guild {guild.id}: {e}")
                outcome = MemberOutcome.FAILED
            report[outcome] += 1

        return report

    async def sync_member(self, guild: discord.Guild, member: discord.Member) -> MemberOutcome:
        """Rename one member. Expected failures are logged and reported, not raised."""
        if member.bot:
            return MemberOutcome.SKIPPED

        try:
            user = await self.repo.get_user_by_id(member.id)
        except RecordNotFound:
            # Most members never linked an account
            return MemberOutcome.UNLINKED
        except Exception as e:
            logger.error(f"Error getting user {member.id} (guild {guild.id}) from database: {e}")
            return MemberOutcome.FAILED

        try:
            credential, refreshed = await self.refresher.refresh(user.credential())
        except (TokenRefreshError, httpx.HTTPError) as e:
            logger.warning(f"Failed to refresh token for user {member.id} (guild {guild.id}): {e}")
            return MemberOutcome.FAILED

        if refreshed:
            try:
                await self.repo.update_user_tokens(user.id, credential)
            except Exception as e:
                logger.warning(f"Failed to store refreshed token for user {member.id}: {e}")

        try:
            data = await self.destiny.user.get_membership_data_for_current_user(
                OAuthToken(credential)
            )
        except (Destiny2Error, httpx.HTTPError) as e:
            logger.warning(
                f"Error getting Destiny memberships for user {member.id} (guild {guild.id}): {e}"
            )
            return MemberOutcome.FAILED

        active = data.active_membership()
        if active is None:
            logger.debug(f"User {member.id} has no active Destiny membership")
            return MemberOutcome.NO_ACTIVE_ACCOUNT

        nick = active.display_name[:MAX_NICK_LENGTH]
        try:
            await member.edit(nick=nick, reason="Destiny 2 display name sync")
        except discord.HTTPException as e:
            logger.warning(f"Error changing nickname of {member.id} in guild {guild.id}: {e}")
            return MemberOutcome.FAILED

        logger.debug(f"Renamed {member.id} in guild {guild.id} to {nick!r}")
        return MemberOutcome.RENAMED
