"""Keyset paging primitives shared by repository listings.

Listings over large tables never use OFFSET: a page is described by the last
id the caller has already seen, so rows inserted or updated behind the cursor
cannot shift later pages, and a caller can persist after_id to resume.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    """Describes one page of an id-ordered listing.

    Args:
        size: Maximum number of items in the page (at least 1).
        after_id: Only ids strictly greater than this are returned.
            None starts from the beginning.
    """

    size: int
    after_id: int | None = None

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ValueError(f"Page size must be at least 1, got {self.size}")

    @classmethod
    def first(cls, size: int) -> PageRequest:
        return cls(size=size)


@dataclass(frozen=True)
class Slice(Generic[T]):
    """One page of results plus whether another page follows.

    Args:
        items: Page contents in ascending id order.
        has_more: True if at least one more row exists after this page.
        page_request: The request that produced this slice.
        last_id: Id of the last item, used as the next cursor.
    """

    items: list[T] = field(default_factory=list)
    has_more: bool = False
    page_request: PageRequest | None = None
    last_id: int | None = None

    def __len__(self) -> int:
        return len(self.items)

    def next_page(self) -> PageRequest | None:
        """Return the request for the following page, or None when exhausted."""
        if not self.has_more or self.page_request is None:
            return None
        return PageRequest(size=self.page_request.size, after_id=self.last_id)
