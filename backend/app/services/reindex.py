"""Background maintenance sweeps over stored resource records.

Drives the paged lifecycle queries of ResourceRecordRepository for two batch
workflows: finding records whose search index must be rebuilt, and finding
soft-deleted records awaiting cleanup. Scans are read-only and paged so they
never hold long locks on large tables; the only write is the single bulk
index-status reset in force_reindex_type().
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.repositories.paging import PageRequest, Slice
from app.repositories.resource import ResourceRecordRepository
from app.utils.stopwatch import StopWatch

logger = logging.getLogger(__name__)

PageFetcher = Callable[[PageRequest], Awaitable[Slice[int]]]


class ReindexCoordinator:
    """Coordinates reindex and deletion-cleanup sweeps.

    Each sweep is an async generator that requests pages in increasing id
    order and never re-reads a page. A fresh call starts a fresh cursor;
    stopping iteration halts the sweep after the current page. Callers that
    need to resume an interrupted sweep persist the last id they processed
    and page from there with the repository directly.

    The coordinator does not commit. force_reindex_type() runs inside the
    caller's transaction.
    """

    def __init__(self, db: AsyncSession, default_page_size: int | None = None):
        """Initialize coordinator with database session.

        Args:
            db: Async SQLAlchemy session.
            default_page_size: Page size used when a sweep is not given one.
                Defaults to settings.reindex_page_size.
        """
        self.repo = ResourceRecordRepository(db)
        self.default_page_size = (
            default_page_size if default_page_size is not None else settings.reindex_page_size
        )

    async def sweep_unindexed(self, page_size: int | None = None) -> AsyncIterator[int]:
        """Yield ids of every record whose index status is cleared.

        Args:
            page_size: Ids fetched per query.

        Yields:
            Record ids in ascending order.
        """
        async for record_id in self._sweep(self.repo.find_unindexed_ids, page_size, "unindexed"):
            yield record_id

    async def sweep_deleted(
        self,
        resource_type: str | None = None,
        page_size: int | None = None,
    ) -> AsyncIterator[int]:
        """Yield ids of soft-deleted records, optionally of one type.

        Args:
            resource_type: Restrict the sweep to this FHIR resource type. Any
                value other than None selects the typed query, so an empty or
                unknown type yields nothing.
            page_size: Ids fetched per query.

        Yields:
            Record ids in ascending order.
        """
        if resource_type is not None:

            async def fetch(page: PageRequest) -> Slice[int]:
                return await self.repo.find_deleted_ids_of_type(resource_type, page)

            label = f"deleted {resource_type}"
        else:
            fetch = self.repo.find_deleted_ids
            label = "deleted"

        async for record_id in self._sweep(fetch, page_size, label):
            yield record_id

    async def force_reindex_type(self, resource_type: str) -> int:
        """Queue every record of a resource type for reindexing.

        Args:
            resource_type: FHIR resource type to invalidate.

        Returns:
            Number of records whose index status was cleared.
        """
        sw = StopWatch()
        count = await self.repo.mark_type_as_requiring_reindex(resource_type)
        logger.info(
            "Marked %d %s records as requiring reindex in %s",
            count,
            resource_type,
            sw,
        )
        return count

    async def _sweep(
        self,
        fetch: PageFetcher,
        page_size: int | None,
        label: str,
    ) -> AsyncIterator[int]:
        """Drain a paged id query until a page reports no further results."""
        if page_size is None:
            page_size = self.default_page_size
        page: PageRequest | None = PageRequest.first(page_size)
        sw = StopWatch()
        pages = 0
        total = 0

        while page is not None:
            current = await fetch(page)
            pages += 1
            total += len(current)
            logger.debug(
                "Fetched %s page %d (%d ids, has_more=%s)",
                label,
                pages,
                len(current),
                current.has_more,
            )
            for record_id in current.items:
                yield record_id
            page = current.next_page()

        logger.info("Swept %d %s records in %d pages (%s)", total, label, pages, sw)
