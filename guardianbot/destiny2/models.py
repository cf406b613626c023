"""Bungie.net API payload models.

Only the fields the bot reads (plus their obvious neighbours) are modelled;
anything else in a payload is ignored. Bungie encodes int64 ids as strings,
which pydantic coerces back to ``int``.

Schema reference: https://bungie-net.github.io/multi/
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BungieModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class BungieMembershipType(IntEnum):
    NONE = 0
    XBOX = 1
    PSN = 2
    STEAM = 3
    BLIZZARD = 4
    STADIA = 5
    EPIC = 6
    DEMON = 10
    BUNGIE_NEXT = 254
    ALL = -1


class DestinyComponentType(IntEnum):
    # Basic profile info: character ids, last played, versions owned.
    PROFILES = 100
    # Summary info for each character in the profile.
    CHARACTERS = 200


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class PagedQuery(BungieModel):
    items_per_page: int = 0
    current_page: int = 0
    request_continuation_token: str | None = None


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


class GroupUserInfoCard(BungieModel):
    """One platform account (Xbox, PSN, Steam, ...) of a Bungie.net user."""

    last_seen_display_name: str = Field(default="", alias="LastSeenDisplayName")
    last_seen_display_name_type: int = Field(default=0, alias="LastSeenDisplayNameType")
    supplemental_display_name: str = ""
    icon_path: str = ""
    cross_save_override: int = 0
    applicable_membership_types: list[int] = Field(default_factory=list)
    is_public: bool = False
    membership_type: int = 0
    membership_id: int = 0
    display_name: str = ""
    bungie_global_display_name: str = ""
    bungie_global_display_name_code: int | None = None

    @property
    def is_active_identity(self) -> bool:
        """True for the account cross save designates as authoritative."""
        return self.membership_type == self.cross_save_override


class UserToUserContext(BungieModel):
    is_following: bool = False
    global_ignore_end_date: datetime | None = None


class GeneralUser(BungieModel):
    membership_id: int = 0
    unique_name: str = ""
    normalized_name: str = ""
    display_name: str = ""
    profile_picture: int = 0
    profile_theme: int = 0
    user_title: int = 0
    success_message_flags: int = 0
    is_deleted: bool = False
    about: str = ""
    first_access: datetime | None = None
    last_update: datetime | None = None
    legacy_portal_uid: int | None = Field(default=None, alias="legacyPortalUID")
    context: UserToUserContext | None = None
    psn_display_name: str | None = None
    xbox_display_name: str | None = None
    fb_display_name: str | None = None
    blizzard_display_name: str | None = None
    steam_display_name: str | None = None
    stadia_display_name: str | None = None
    show_activity: bool | None = None
    locale: str = ""
    locale_inherit_default: bool = False
    last_ban_report_id: int | None = None
    show_group_messaging: bool = False
    profile_picture_path: str = ""
    profile_picture_wide_path: str = ""
    profile_theme_name: str = ""
    user_title_display: str = ""
    status_text: str = ""
    status_date: datetime | None = None
    profile_ban_expire: datetime | None = None


class UserMembershipData(BungieModel):
    destiny_memberships: list[GroupUserInfoCard] = Field(default_factory=list)
    primary_membership_id: int | None = None
    bungie_net_user: GeneralUser | None = None

    def active_membership(self) -> GroupUserInfoCard | None:
        """First membership whose type matches its own cross save override."""
        for membership in self.destiny_memberships:
            if membership.is_active_identity:
                return membership
        return None


# ---------------------------------------------------------------------------
# GroupV2
# ---------------------------------------------------------------------------


class GroupMember(BungieModel):
    member_type: int = 0
    is_online: bool = False
    last_online_status_change: int = 0
    group_id: int = 0
    destiny_user_info: GroupUserInfoCard
    join_date: datetime | None = None


class SearchResultOfGroupMember(BungieModel):
    results: list[GroupMember] = Field(default_factory=list)
    total_results: int = 0
    has_more: bool = False
    query: PagedQuery | None = None
    replacement_continuation_token: str | None = None


# ---------------------------------------------------------------------------
# Destiny2
# ---------------------------------------------------------------------------


class DestinyColor(BungieModel):
    red: int = 0
    green: int = 0
    blue: int = 0
    alpha: int = 0


class DestinyProgressionResetEntry(BungieModel):
    season: int = 0
    resets: int = 0


class DestinyProgression(BungieModel):
    progression_hash: int = 0
    daily_progress: int = 0
    daily_limit: int = 0
    weekly_progress: int = 0
    weekly_limit: int = 0
    current_progress: int = 0
    level: int = 0
    level_cap: int = 0
    step_index: int = 0
    progress_to_next_level: int = 0
    next_level_at: int = 0
    current_reset_count: int | None = None
    season_resets: list[DestinyProgressionResetEntry] = Field(default_factory=list)
    reward_item_states: list[int] = Field(default_factory=list)


class DestinyCharacterComponent(BungieModel):
    membership_id: int = 0
    membership_type: int = 0
    character_id: int = 0
    date_last_played: datetime | None = None
    minutes_played_this_session: int = 0
    minutes_played_total: int = 0
    light: int = 0
    stats: dict[int, int] = Field(default_factory=dict)
    race_hash: int = 0
    gender_hash: int = 0
    class_hash: int = 0
    emblem_path: str = ""
    emblem_background_path: str = ""
    emblem_hash: int = 0
    emblem_color: DestinyColor | None = None
    level_progression: DestinyProgression | None = None
    base_character_level: int = 0
    percent_to_next_level: float = 0.0
    title_record_hash: int | None = None


class DestinyProfileComponent(BungieModel):
    date_last_played: datetime | None = None
    versions_owned: int = 0
    character_ids: list[int] = Field(default_factory=list)
    season_hashes: list[int] = Field(default_factory=list)


class SingleComponentResponseOfDestinyProfileComponent(BungieModel):
    data: DestinyProfileComponent | None = None
    privacy: int = 0


class DictionaryComponentResponseOfDestinyCharacterComponent(BungieModel):
    data: dict[int, DestinyCharacterComponent] = Field(default_factory=dict)
    privacy: int = 0


class DestinyProfileResponse(BungieModel):
    profile: SingleComponentResponseOfDestinyProfileComponent | None = None
    characters: DictionaryComponentResponseOfDestinyCharacterComponent | None = None
