"""Code translation service backed by the concept map graph."""

import logging

from app.schemas.translation import TranslationResult
from app.services.concept_map import ConceptMapCache
from app.utils.fhir_helpers import is_any_blank

logger = logging.getLogger(__name__)


class TranslationResolver:
    """Translates a code from one coding system into another.

    Pure query: no side effects, and "no mapping" is returned as an
    unmatched result rather than raised. Errors from the underlying graph
    source propagate to the caller.
    """

    def __init__(self, cache: ConceptMapCache):
        """Initialize resolver with a concept map snapshot holder.

        Args:
            cache: Supplies the graph snapshot read on every call.
        """
        self.cache = cache

    def translate(
        self,
        source_code: str | None,
        source_system: str | None,
        target_system: str | None,
    ) -> TranslationResult:
        """Translate a source code into codes of the target system.

        A partially specified query (any argument None, empty, or whitespace
        only) is not looked up and yields an unmatched result. Codes and
        system URIs are otherwise matched exactly, without trimming or case
        folding.

        Args:
            source_code: Code to translate.
            source_system: Code system URI of source_code.
            target_system: Code system URI to translate into.

        Returns:
            TranslationResult with every matching target in encounter order.
        """
        if is_any_blank(source_code, source_system, target_system):
            logger.debug(
                "Skipping translation lookup for incomplete input (code=%r, source=%r, target=%r)",
                source_code,
                source_system,
                target_system,
            )
            return TranslationResult.no_match()

        graph = self.cache.snapshot
        targets = graph.lookup(source_code, source_system, target_system)
        logger.debug(
            "Translated %s|%s -> %s: %d targets",
            source_system,
            source_code,
            target_system,
            len(targets),
        )
        return TranslationResult.from_targets(targets)
