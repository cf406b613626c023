"""Per-request options for :meth:`Destiny2Client.execute`.

Options are applied to a :class:`PreparedRequest` strictly in the order they
are passed, so a later option wins over an earlier one touching the same
field (the paginator relies on this to override ``currentPage``).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

from .oauth import Credential


@dataclass
class PreparedRequest:
    """Mutable request description built up by the options."""

    method: str
    url: str
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    json: Any = None
    content: bytes | None = None
    timeout: float | None = None
    stop: asyncio.Event | None = None


class RequestOption(Protocol):
    def apply(self, request: PreparedRequest) -> None: ...


@dataclass(frozen=True)
class Query:
    """Set a query parameter, replacing any earlier value for ``key``."""

    key: str
    value: Any

    def apply(self, request: PreparedRequest) -> None:
        if isinstance(self.value, bool):
            request.params[self.key] = str(self.value).lower()
        else:
            request.params[self.key] = str(self.value)


@dataclass(frozen=True)
class Body:
    """Attach a request body. ``json`` takes precedence over ``content``."""

    json: Any = None
    content: bytes | None = None

    def apply(self, request: PreparedRequest) -> None:
        if self.json is not None:
            request.json = self.json
            request.content = None
        else:
            request.content = self.content
            request.json = None


@dataclass(frozen=True)
class OAuthToken:
    """Authorize the request with a user's access token."""

    credential: Credential

    def apply(self, request: PreparedRequest) -> None:
        request.headers["Authorization"] = self.credential.authorization


@dataclass(frozen=True)
class Cancellation:
    """Abandon the request with ``RequestCancelled`` as soon as ``event`` is set."""

    event: asyncio.Event

    def apply(self, request: PreparedRequest) -> None:
        request.stop = self.event


@dataclass(frozen=True)
class Timeout:
    seconds: float

    def apply(self, request: PreparedRequest) -> None:
        request.timeout = self.seconds
