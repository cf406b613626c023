"""Page-cursor pagination for list endpoints."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, TypeVar

from .errors import PaginationLimitExceeded

logger = logging.getLogger(__name__)

# Bungie never advertises a page count; this is only a guard against a
# provider that keeps answering ``hasMore: true`` forever.
DEFAULT_MAX_PAGES = 100

T = TypeVar("T", covariant=True)


class Page(Protocol[T]):
    @property
    def results(self) -> Sequence[T]: ...

    @property
    def has_more(self) -> bool: ...


async def paginate(
    fetch_page: Callable[[int], Awaitable[Page[T]]],
    *,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> list[T]:
    """Fetch pages 1, 2, 3, ... and concatenate their ``results``.

    Stops after the first page reporting ``has_more`` false. Any exception
    from ``fetch_page`` propagates and the items gathered so far are
    dropped with it.
    """
    items: list[T] = []

    for page in range(1, max_pages + 1):
        result = await fetch_page(page)
        items.extend(result.results)

        if not result.has_more:
            return items

    logger.warning(f"Pagination stopped: more pages reported after {max_pages} pages")
    raise PaginationLimitExceeded(max_pages)
