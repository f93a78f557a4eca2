"""Shared FHIR parsing utilities for terminology resources.

All functions are pure and handle missing/malformed data gracefully.
"""

from typing import Any


def is_blank(value: str | None) -> bool:
    """Check whether a value is None, empty, or whitespace only.

    Non-string values (numbers, objects from malformed JSON) count as blank.
    """
    return not isinstance(value, str) or not value.strip()


def is_any_blank(*values: str | None) -> bool:
    """Check whether at least one of the given strings is blank."""
    return any(is_blank(v) for v in values)


def extract_target_equivalence(target: dict[str, Any]) -> str | None:
    """Extract the mapping marker from a ConceptMap element target.

    R4 uses 'equivalence'; R5 renamed it to 'relationship'.

    Args:
        target: FHIR ConceptMap.group.element.target structure

    Returns:
        Equivalence/relationship code or None if absent
    """
    return target.get("equivalence") or target.get("relationship")


def extract_concept_map_groups(resource: dict[str, Any]) -> list[dict[str, Any]]:
    """Extract group list from a FHIR ConceptMap.

    Args:
        resource: FHIR ConceptMap resource

    Returns:
        List of group dicts, or empty list if the resource is not a
        ConceptMap or has no groups
    """
    if resource.get("resourceType") != "ConceptMap":
        return []
    groups = resource.get("group", [])
    return groups if isinstance(groups, list) else []
