"""Pydantic schemas."""

from app.schemas.translation import (
    MATCHES_FOUND,
    NO_MATCHES_FOUND,
    TranslationResult,
    TranslationTarget,
)

__all__ = [
    "MATCHES_FOUND",
    "NO_MATCHES_FOUND",
    "TranslationResult",
    "TranslationTarget",
]
