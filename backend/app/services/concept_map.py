"""Concept map graph for code translation between coding systems.

A FHIR ConceptMap is nested: groups (one source/target system pair each),
elements (one source code each), and targets (target codes). Lookups by
(code, source system, target system) would need a scan of that tree, so the
graph indexes it once at load time:

    (source_system, target_system) -> code -> (target, target, ...)

Targets for a code are stored in encounter order: concept maps by record id,
then groups, then elements, then targets. Several groups (in the same or in
different concept maps) may share a system pair and several elements may
share a code; their targets are concatenated in that order.

A built graph is never modified. ConceptMapCache replaces the whole snapshot
on refresh, so an in-flight lookup always sees one consistent graph.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.repositories.paging import PageRequest
from app.repositories.resource import ResourceRecordRepository
from app.schemas.translation import TranslationTarget
from app.utils.fhir_helpers import (
    extract_concept_map_groups,
    extract_target_equivalence,
    is_blank,
)
from app.utils.stopwatch import StopWatch

logger = logging.getLogger(__name__)

CONCEPT_MAP_RESOURCE_TYPE = "ConceptMap"

SystemPair = tuple[str, str]


def _optional_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class ConceptMapGraph:
    """Immutable, indexed snapshot of concept map mappings."""

    def __init__(
        self,
        index: Mapping[SystemPair, Mapping[str, tuple[TranslationTarget, ...]]],
        concept_map_count: int = 0,
        group_count: int = 0,
        element_count: int = 0,
        target_count: int = 0,
    ):
        self._index = MappingProxyType(
            {pair: MappingProxyType(dict(codes)) for pair, codes in index.items()}
        )
        self.concept_map_count = concept_map_count
        self.group_count = group_count
        self.element_count = element_count
        self.target_count = target_count

    @classmethod
    def empty(cls) -> ConceptMapGraph:
        return cls({})

    @classmethod
    def from_resources(cls, resources: Iterable[dict[str, Any]]) -> ConceptMapGraph:
        """Build a graph from FHIR ConceptMap JSON resources, in the given order."""
        builder = ConceptMapGraphBuilder()
        for resource in resources:
            builder.add(resource)
        return builder.build()

    def lookup(
        self, code: str, source_system: str, target_system: str
    ) -> tuple[TranslationTarget, ...]:
        """Find every target for a source code mapped into a target system.

        Args:
            code: Source code, matched exactly.
            source_system: Code system URI of the source code.
            target_system: Code system URI to translate into.

        Returns:
            Matching targets in encounter order, or an empty tuple when no
            mapping exists.
        """
        codes = self._index.get((source_system, target_system))
        if codes is None:
            return ()
        return codes.get(code, ())

    def system_pairs(self) -> list[SystemPair]:
        """List the (source, target) system pairs this graph can translate."""
        return list(self._index.keys())

    def __repr__(self) -> str:
        return (
            f"<ConceptMapGraph(concept_maps={self.concept_map_count}, "
            f"groups={self.group_count}, elements={self.element_count}, "
            f"targets={self.target_count})>"
        )


class ConceptMapGraphBuilder:
    """Accumulates ConceptMap resources into a new ConceptMapGraph."""

    def __init__(self):
        self._index: dict[SystemPair, dict[str, list[TranslationTarget]]] = {}
        self._concept_maps = 0
        self._groups = 0
        self._elements = 0
        self._targets = 0

    def add(self, resource: dict[str, Any]) -> None:
        """Index one FHIR ConceptMap resource.

        Malformed parts are skipped with a warning and the rest of the
        resource still loads: non-object groups, elements or targets,
        non-list element/target fields, and groups without a source or
        target system. Elements and targets without a code are ignored.
        """
        if not isinstance(resource, dict):
            logger.warning("Skipping ConceptMap that is not a JSON object")
            return

        self._concept_maps += 1
        url = resource.get("url")
        label = url or resource.get("id")

        for group in extract_concept_map_groups(resource):
            if not isinstance(group, dict):
                logger.warning("Skipping malformed ConceptMap group (concept map %s)", label)
                continue

            source_system = group.get("source")
            target_system = group.get("target")
            if is_blank(source_system) or is_blank(target_system):
                logger.warning(
                    "Skipping ConceptMap group without source/target system (concept map %s)",
                    label,
                )
                continue

            elements = group.get("element", [])
            if not isinstance(elements, list):
                logger.warning("Skipping ConceptMap group with malformed elements (concept map %s)", label)
                continue

            self._groups += 1
            codes = self._index.setdefault((source_system, target_system), {})

            for element in elements:
                if not isinstance(element, dict):
                    logger.warning("Skipping malformed ConceptMap element (concept map %s)", label)
                    continue
                code = element.get("code")
                if is_blank(code):
                    continue
                targets = element.get("target", [])
                if not isinstance(targets, list):
                    logger.warning(
                        "Skipping ConceptMap element %s with malformed targets (concept map %s)",
                        code,
                        label,
                    )
                    continue

                self._elements += 1
                bucket = codes.setdefault(code, [])

                for target in targets:
                    if not isinstance(target, dict):
                        logger.warning("Skipping malformed ConceptMap target (concept map %s)", label)
                        continue
                    if is_blank(target.get("code")):
                        continue
                    bucket.append(
                        TranslationTarget(
                            code=target["code"],
                            equivalence=_optional_text(extract_target_equivalence(target)),
                            display=_optional_text(target.get("display")),
                            system=target_system,
                            concept_map_url=_optional_text(url),
                        )
                    )
                    self._targets += 1

    def build(self) -> ConceptMapGraph:
        index = {
            pair: {code: tuple(targets) for code, targets in codes.items() if targets}
            for pair, codes in self._index.items()
        }
        return ConceptMapGraph(
            index,
            concept_map_count=self._concept_maps,
            group_count=self._groups,
            element_count=self._elements,
            target_count=self._targets,
        )


class ConceptMapCache:
    """Holds the current ConceptMapGraph snapshot and rebuilds it on demand.

    Readers take `snapshot` once per query. refresh() builds a complete new
    graph before swapping it in, and a failed refresh keeps the previous
    snapshot.
    """

    def __init__(
        self,
        initial: ConceptMapGraph | None = None,
        page_size: int | None = None,
    ):
        self._snapshot = initial if initial is not None else ConceptMapGraph.empty()
        self._page_size = page_size or settings.concept_map_page_size
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> ConceptMapGraph:
        return self._snapshot

    async def refresh(self, db: AsyncSession) -> ConceptMapGraph:
        """Rebuild the graph from all live ConceptMap records.

        Args:
            db: Async SQLAlchemy session used to page through ConceptMap records.

        Returns:
            The newly installed snapshot.
        """
        async with self._lock:
            sw = StopWatch()
            repo = ResourceRecordRepository(db)
            builder = ConceptMapGraphBuilder()
            page: PageRequest | None = PageRequest.first(self._page_size)

            try:
                while page is not None:
                    records = await repo.find_live_of_type(CONCEPT_MAP_RESOURCE_TYPE, page)
                    for record in records.items:
                        builder.add(record.data)
                    page = records.next_page()
            except Exception as e:
                logger.warning("Concept map rebuild failed, keeping previous snapshot: %s", e)
                raise

            graph = builder.build()
            self._snapshot = graph
            logger.info("Rebuilt concept map graph %r in %s", graph, sw)
            return graph
