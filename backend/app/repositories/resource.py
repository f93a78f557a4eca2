"""Resource record repository.

Read-side listings for lifecycle maintenance (deleted and unindexed records)
and the single bulk mutation that invalidates index status for a resource
type. Every listing is keyset-paged by id, and nothing in this class loads
a whole table.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.resource import ResourceRecord
from app.repositories.paging import PageRequest, Slice

logger = logging.getLogger(__name__)


class ResourceRecordRepository:
    """Repository for ResourceRecord lifecycle queries.

    The repository never commits. Callers own the unit of work, and storage
    errors raised by SQLAlchemy propagate unchanged.
    """

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session.
        """
        self.db = db

    async def get_by_id(self, record_id: int) -> ResourceRecord | None:
        """Get a resource record by id, deleted or not.

        Args:
            record_id: Primary key of the record.

        Returns:
            ResourceRecord if found, None otherwise.
        """
        result = await self.db.execute(
            select(ResourceRecord).where(ResourceRecord.id == record_id)
        )
        return result.scalar_one_or_none()

    async def find_deleted_ids(self, page: PageRequest) -> Slice[int]:
        """Page through ids of all soft-deleted records.

        Args:
            page: Page size and continuation cursor.

        Returns:
            Slice of record ids in ascending order.
        """
        query = select(ResourceRecord.id).where(ResourceRecord.deleted_at.is_not(None))
        return await self._fetch_id_slice(query, page)

    async def find_deleted_ids_of_type(
        self,
        resource_type: str,
        page: PageRequest,
        resource_id: int | None = None,
    ) -> Slice[int]:
        """Page through ids of soft-deleted records of one resource type.

        Args:
            resource_type: FHIR resource type (e.g., 'Patient').
            page: Page size and continuation cursor.
            resource_id: Optional id restricting the scan to a single record.
                The slice then holds at most that id, and only if the record
                has the given type and is deleted.

        Returns:
            Slice of record ids in ascending order.
        """
        query = select(ResourceRecord.id).where(
            ResourceRecord.resource_type == resource_type,
            ResourceRecord.deleted_at.is_not(None),
        )
        if resource_id is not None:
            query = query.where(ResourceRecord.id == resource_id)
        return await self._fetch_id_slice(query, page)

    async def find_unindexed_ids(self, page: PageRequest) -> Slice[int]:
        """Page through ids of records whose index status has been cleared."""
        query = select(ResourceRecord.id).where(ResourceRecord.index_status.is_(None))
        return await self._fetch_id_slice(query, page)

    async def find_live_of_type(
        self, resource_type: str, page: PageRequest
    ) -> Slice[ResourceRecord]:
        """Page through non-deleted records of a resource type.

        Args:
            resource_type: FHIR resource type (e.g., 'ConceptMap').
            page: Page size and continuation cursor.

        Returns:
            Slice of ResourceRecord objects in ascending id order.
        """
        query = select(ResourceRecord).where(
            ResourceRecord.resource_type == resource_type,
            ResourceRecord.deleted_at.is_(None),
        )
        query = self._apply_page(query, page, ResourceRecord.id)

        result = await self.db.execute(query)
        records = list(result.scalars().all())
        return self._to_slice(records, page, last_id=lambda r: r.id)

    async def mark_type_as_requiring_reindex(self, resource_type: str) -> int:
        """Clear index status for every record of a resource type.

        Issued as one set-based UPDATE rather than per-row writes. Rows that
        already need reindexing are left untouched, so the return value is
        the number of rows whose status actually changed. This is not the
        count of every row of the type: records already awaiting reindex are
        not counted again.

        Args:
            resource_type: FHIR resource type to invalidate.

        Returns:
            Number of records queued for reindexing.
        """
        stmt = (
            update(ResourceRecord)
            .where(
                ResourceRecord.resource_type == resource_type,
                ResourceRecord.index_status.is_not(None),
            )
            .values(index_status=None)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        count = result.rowcount or 0
        logger.debug("Cleared index status on %d %s records", count, resource_type)
        return count

    @staticmethod
    def _apply_page(query: Select[Any], page: PageRequest, id_column) -> Select[Any]:
        """Apply keyset cursor, ordering and a one-row lookahead limit."""
        if page.after_id is not None:
            query = query.where(id_column > page.after_id)
        return query.order_by(id_column).limit(page.size + 1)

    async def _fetch_id_slice(self, query: Select[tuple[int]], page: PageRequest) -> Slice[int]:
        query = self._apply_page(query, page, ResourceRecord.id)
        result = await self.db.execute(query)
        ids = list(result.scalars().all())
        return self._to_slice(ids, page, last_id=lambda id_: id_)

    @staticmethod
    def _to_slice(rows: list, page: PageRequest, last_id) -> Slice:
        """Trim the lookahead row and build the slice."""
        has_more = len(rows) > page.size
        items = rows[: page.size]
        return Slice(
            items=items,
            has_more=has_more,
            page_request=page,
            last_id=last_id(items[-1]) if items else page.after_id,
        )
