"""Exceptions raised by the Bungie API client.

Transport problems are not wrapped: ``httpx.TransportError`` (timeouts,
connection resets, ...) reaches the caller unchanged.
"""

from __future__ import annotations


class Destiny2Error(Exception):
    """Base class for every error raised by :mod:`guardianbot.destiny2`."""

    def __str__(self) -> str:
        return f"destiny2: {super().__str__()}"


class APIError(Destiny2Error):
    """The provider answered, but the call did not succeed.

    Classification happens on ``error_code`` when the body is the JSON
    envelope, otherwise on ``status_code``. ``error_status`` and ``message``
    are kept for logs only.
    """

    reason = "Unknown"

    def __init__(
        self,
        *,
        status_code: int,
        error_code: int | None = None,
        error_status: str = "",
        message: str = "",
    ) -> None:
        self.status_code = status_code
        self.error_code = error_code
        self.error_status = error_status
        self.message = message
        super().__init__(self.reason)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(status_code={self.status_code}, "
            f"error_code={self.error_code}, error_status={self.error_status!r})"
        )


class Unauthorized(APIError):
    """Invalid or expired credentials were sent."""

    reason = "Unauthorized"


class NotFound(APIError):
    """The resource does not exist.

    Bungie also answers this when an endpoint is hit with a method it does
    not expect.
    """

    reason = "NotFound"


class WebAuthRequired(APIError):
    """The endpoint requires an OAuth access token."""

    reason = "WebAuthRequired"


class UnknownAPIError(APIError):
    reason = "Unknown"


class DecodeError(Destiny2Error):
    """The response envelope or its ``Response`` payload could not be decoded."""


class TokenRefreshError(Destiny2Error):
    """The identity provider rejected a refresh-token grant."""

    def __init__(self, message: str, *, status_code: int | None = None, error: str = "") -> None:
        self.status_code = status_code
        self.error = error
        super().__init__(message)


class RequestCancelled(Destiny2Error):
    """A request bound to a stop event was abandoned because the event fired."""


class PaginationLimitExceeded(Destiny2Error):
    """The provider kept reporting more pages past the safety cutoff."""

    def __init__(self, max_pages: int) -> None:
        self.max_pages = max_pages
        super().__init__(f"still has more results after {max_pages} pages")
