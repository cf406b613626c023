"""
Shared fixtures: a Bungie client on a mock transport, a fake asyncpg pool and
small Discord stand-ins.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from guardianbot.destiny2 import Destiny2Client

API_KEY = "test-api-key"


def envelope(response: Any = None, *, error_code: int = 1, error_status: str = "Success", message: str = "Ok") -> dict:
    """Bungie JSON envelope around *response*."""
    return {
        "Response": response,
        "ErrorCode": error_code,
        "ThrottleSeconds": 0,
        "ErrorStatus": error_status,
        "Message": message,
        "MessageData": {},
    }


def membership(name: str, membership_type: int, cross_save_override: int, membership_id: int = 1) -> dict:
    return {
        "LastSeenDisplayName": name,
        "crossSaveOverride": cross_save_override,
        "membershipType": membership_type,
        "membershipId": str(membership_id),
        "displayName": name,
        "isPublic": True,
    }


@pytest.fixture
async def make_client():
    """Build a Destiny2Client whose requests are answered by *handler*."""
    clients: list[httpx.AsyncClient] = []

    def factory(handler: Callable[[httpx.Request], Any]) -> Destiny2Client:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(http)
        return Destiny2Client(API_KEY, http=http)

    yield factory

    for http in clients:
        await http.aclose()


# ==================== Database fakes ====================


class FakeConnection:
    def __init__(self) -> None:
        self.execute = AsyncMock(return_value="UPDATE 1")
        self.fetchrow = AsyncMock(return_value=None)
        self.fetchval = AsyncMock(return_value=1)
        self.transactions = 0
        self.rolled_back = 0

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        try:
            yield
        except Exception:
            self.rolled_back += 1
            raise


class FakePool:
    def __init__(self, conn: FakeConnection | None = None) -> None:
        self.conn = conn or FakeConnection()
        self.acquired = 0

    @asynccontextmanager
    async def acquire(self, timeout: float | None = None):
        self.acquired += 1
        yield self.conn


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def fake_pool(fake_conn: FakeConnection) -> FakePool:
    return FakePool(fake_conn)


# ==================== Discord fakes ====================


def make_member(member_id: int, *, nick: str | None = None, bot: bool = False) -> SimpleNamespace:
    return SimpleNamespace(id=member_id, nick=nick, bot=bot, edit=AsyncMock())


def make_guild(guild_id: int, members: list[SimpleNamespace] | None = None) -> SimpleNamespace:
    return SimpleNamespace(id=guild_id, members=members or [])


def fresh_expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=1)
