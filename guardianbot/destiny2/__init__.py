"""Async client for the Bungie.net (Destiny 2) Platform API."""

from .client import BASE_URL, Destiny2Client
from .errors import (
    APIError,
    DecodeError,
    Destiny2Error,
    NotFound,
    PaginationLimitExceeded,
    RequestCancelled,
    TokenRefreshError,
    Unauthorized,
    UnknownAPIError,
    WebAuthRequired,
)
from .models import (
    BungieMembershipType,
    DestinyComponentType,
    DestinyProfileResponse,
    GroupMember,
    GroupUserInfoCard,
    SearchResultOfGroupMember,
    UserMembershipData,
)
from .oauth import Credential, OAuthConfig, TokenRefresher
from .options import Body, Cancellation, OAuthToken, Query, RequestOption, Timeout
from .pagination import DEFAULT_MAX_PAGES, paginate

__all__ = [
    # Client
    "BASE_URL",
    "Destiny2Client",
    # Options
    "Body",
    "Cancellation",
    "OAuthToken",
    "Query",
    "RequestOption",
    "Timeout",
    # OAuth
    "Credential",
    "OAuthConfig",
    "TokenRefresher",
    # Pagination
    "DEFAULT_MAX_PAGES",
    "paginate",
    # Models
    "BungieMembershipType",
    "DestinyComponentType",
    "DestinyProfileResponse",
    "GroupMember",
    "GroupUserInfoCard",
    "SearchResultOfGroupMember",
    "UserMembershipData",
    # Errors
    "APIError",
    "DecodeError",
    "Destiny2Error",
    "NotFound",
    "PaginationLimitExceeded",
    "RequestCancelled",
    "TokenRefreshError",
    "Unauthorized",
    "UnknownAPIError",
    "WebAuthRequired",
]
