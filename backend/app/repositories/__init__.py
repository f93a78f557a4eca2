"""Repository layer for data access.

Repositories encapsulate database operations and provide a clean interface
for the lifecycle queries run against stored resource records.
"""

from app.repositories.paging import PageRequest, Slice
from app.repositories.resource import ResourceRecordRepository

__all__ = ["PageRequest", "ResourceRecordRepository", "Slice"]
