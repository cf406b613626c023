"""Scheduled sync jobs."""

from .guilds import GuildSyncJob
from .nicknames import MemberOutcome, NicknameSyncJob, SyncReport

__all__ = ["GuildSyncJob", "MemberOutcome", "NicknameSyncJob", "SyncReport"]
