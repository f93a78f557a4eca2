"""Schemas for concept map translation results.

Both models are frozen: a TranslationResult is created fresh for each
translate() call and never changes after it is returned.
"""

from pydantic import BaseModel, ConfigDict, Field

MATCHES_FOUND = "Matches found!"
NO_MATCHES_FOUND = "No matches found!"


class TranslationTarget(BaseModel):
    """A target code reached through a concept map element."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Code in the target system")
    equivalence: str | None = Field(
        default=None,
        description="Equivalence (R4) or relationship (R5) marker, kept as-is",
    )
    display: str | None = Field(default=None, description="Display text for the target code")
    system: str = Field(..., description="Target code system URI of the group")
    concept_map_url: str | None = Field(
        default=None,
        description="Canonical URL of the concept map that produced the match",
    )


class TranslationResult(BaseModel):
    """Outcome of translating one code into another code system.

    An unmatched result is a normal outcome, not an error.
    """

    model_config = ConfigDict(frozen=True)

    matched: bool
    message: str
    targets: tuple[TranslationTarget, ...] = ()

    @classmethod
    def no_match(cls) -> "TranslationResult":
        return cls(matched=False, message=NO_MATCHES_FOUND)

    @classmethod
    def from_targets(cls, targets: tuple[TranslationTarget, ...]) -> "TranslationResult":
        if not targets:
            return cls.no_match()
        return cls(matched=True, message=MATCHES_FOUND, targets=targets)
