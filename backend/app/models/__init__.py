"""SQLAlchemy models."""

from app.models.resource import ResourceRecord

__all__ = [
    "ResourceRecord",
]
