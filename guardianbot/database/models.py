"""Data models for the guilds and users tables."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from guardianbot.destiny2.oauth import Credential


@dataclass
class Guild:
    """A Discord guild the bot has been added to."""

    id: int
    group_id: int | None = None


@dataclass
class User:
    """A Discord user who linked their Destiny 2 account to the bot."""

    id: int
    membership_type: int
    membership_id: int
    access_token: str
    refresh_token: str
    expiry: datetime

    def credential(self) -> Credential:
        return Credential(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expiry=self.expiry,
        )
