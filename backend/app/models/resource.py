"""SQLAlchemy model for stored FHIR resource records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
_RecordId = BigInteger().with_variant(Integer(), "sqlite")


class ResourceRecord(Base):
    """A stored FHIR resource version with lifecycle bookkeeping.

    Rows are never physically removed by this layer: a delete sets
    deleted_at, and the row stays enumerable for history and cleanup scans.
    A null index_status means the record's search index entries are stale
    and must be rebuilt; any other value is the index generation it was last
    indexed at.
    """

    __tablename__ = "resource_records"

    # Database-assigned and monotonically increasing; keyset paging relies on it
    id: Mapped[int] = mapped_column(_RecordId, primary_key=True, autoincrement=True)

    # Identifiers
    fhir_id: Mapped[str] = mapped_column(String(255), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # The FHIR resource as raw JSON
    data: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
    )

    # Lifecycle flags
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    index_status: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        Index("idx_resource_type_deleted", "resource_type", "deleted_at"),
        Index("idx_resource_index_status", "index_status"),
        Index("idx_resource_fhir_id_type", "fhir_id", "resource_type"),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def needs_reindex(self) -> bool:
        return self.index_status is None

    def __repr__(self) -> str:
        return (
            f"<ResourceRecord(id={self.id}, type={self.resource_type}, "
            f"fhir_id={self.fhir_id}, version={self.version})>"
        )
