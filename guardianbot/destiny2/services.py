"""Endpoint groups of the Bungie.net Platform API."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, TypeVar

from .models import (
    DestinyComponentType,
    DestinyProfileResponse,
    GroupMember,
    SearchResultOfGroupMember,
    UserMembershipData,
)
from .options import Query, RequestOption
from .pagination import DEFAULT_MAX_PAGES, paginate

if TYPE_CHECKING:
    from .client import Destiny2Client

T = TypeVar("T")


class Service:
    """Base for an endpoint group; prefixes every path with :attr:`path`."""

    path = ""

    def __init__(self, client: Destiny2Client) -> None:
        self._client = client

    async def _execute(
        self, method: str, endpoint: str, dest: type[T] | Any, *options: RequestOption
    ) -> T:
        return await self._client.execute(method, f"{self.path}/{endpoint}", dest, *options)


class UserService(Service):
    path = "User"

    async def get_membership_data_for_current_user(
        self, *options: RequestOption
    ) -> UserMembershipData:
        """Accounts linked to the signed-in user. Needs an ``OAuthToken`` option."""
        return await self._execute(
            "GET", "GetMembershipsForCurrentUser", UserMembershipData, *options
        )


class GroupV2Service(Service):
    path = "GroupV2"

    async def get_members_of_group(
        self, group_id: int, *options: RequestOption
    ) -> SearchResultOfGroupMember:
        """One page of a clan's members; pass ``Query("currentPage", n)`` to pick it."""
        return await self._execute(
            "GET", f"{group_id}/Members", SearchResultOfGroupMember, *options
        )

    async def get_all_members_of_group(
        self,
        group_id: int,
        *options: RequestOption,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> list[GroupMember]:
        """Every member of a clan, following ``hasMore`` across pages."""

        async def fetch_page(page: int) -> SearchResultOfGroupMember:
            # Appended last so it overrides any currentPage the caller passed
            return await self.get_members_of_group(
                group_id, *options, Query("currentPage", page)
            )

        return await paginate(fetch_page, max_pages=max_pages)


class Destiny2Service(Service):
    path = "Destiny2"

    async def get_profile(
        self,
        membership_type: int,
        membership_id: int,
        *options: RequestOption,
        components: Iterable[DestinyComponentType | int] = (
            DestinyComponentType.PROFILES,
            DestinyComponentType.CHARACTERS,
        ),
    ) -> DestinyProfileResponse:
        """A profile with the requested components (profile and characters by default)."""
        component_list = ",".join(str(int(c)) for c in components)
        return await self._execute(
            "GET",
            f"{int(membership_type)}/Profile/{membership_id}",
            DestinyProfileResponse,
            Query("components", component_list),
            *options,
        )
