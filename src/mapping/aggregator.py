# src/mapping/aggregator.py — v1
"""Mapping aggregator — fold matcher and detector output into one result.

Counts what can be applied without review, what needs a human, and turns
those counts into an ordered list of suggested actions. Pure aggregation.
"""

from __future__ import annotations

import logging

from planpulse.config.settings import Settings
from planpulse.core.models import (
    Conflict,
    EntityMapping,
    EntityMappingResult,
    ExtractedEntity,
    MappingRecommendations,
)

logger = logging.getLogger(__name__)

BLOCKING_LEVELS = ("medium", "high")


def is_auto_appliable(mapping: EntityMapping, settings: Settings) -> bool:
    """High confidence and no conflict beyond the auto-apply levels."""
    return (
        mapping.match_confidence >= settings.auto_apply_threshold
        and mapping.conflict_level in settings.auto_apply_conflict_levels
    )


def requires_review(mapping: EntityMapping, settings: Settings) -> bool:
    """Mid confidence or a blocking conflict."""
    mid_confidence = (
        settings.match_confidence_floor
        <= mapping.match_confidence
        < settings.auto_apply_threshold
    )
    return mid_confidence or mapping.conflict_level in BLOCKING_LEVELS


def aggregate(
    mappings: list[EntityMapping],
    unmapped: list[ExtractedEntity],
    conflicts: list[Conflict],
    settings: Settings | None = None,
) -> EntityMappingResult:
    """Build the EntityMappingResult with its recommendations.

    Args:
        mappings: Mappings with their conflict level resolved.
        unmapped: Entities the matcher left unmatched.
        conflicts: Conflicts found by the detector.
        settings: Thresholds. Loaded from .env if None.
    """
    settings = settings or Settings()

    auto_apply_count = sum(1 for m in mappings if is_auto_appliable(m, settings))
    requires_review_count = sum(1 for m in mappings if requires_review(m, settings))

    recommendations = MappingRecommendations(
        auto_apply_count=auto_apply_count,
        requires_review_count=requires_review_count,
        suggested_actions=suggest_actions(mappings, unmapped, settings),
    )

    logger.info(
        "Mapping result: %d mappings (%d auto-apply, %d review), %d unmapped, %d conflicts",
        len(mappings), auto_apply_count, requires_review_count,
        len(unmapped), len(conflicts),
    )

    return EntityMappingResult(
        mappings=mappings,
        unmapped_entities=unmapped,
        conflicts=conflicts,
        recommendations=recommendations,
    )


def suggest_actions(
    mappings: list[EntityMapping],
    unmapped: list[ExtractedEntity],
    settings: Settings,
) -> list[str]:
    """Ordered guidance for whoever reviews the mapping result."""
    actions: list[str] = []

    if not mappings and not unmapped:
        return ["No entities were extracted - nothing to map"]

    auto_count = sum(1 for m in mappings if is_auto_appliable(m, settings))
    if auto_count:
        actions.append(
            f"{auto_count} high-confidence mappings can be applied automatically"
        )

    low_confidence = sum(
        1 for m in mappings if m.match_confidence < settings.auto_apply_threshold
    )
    if low_confidence:
        actions.append(
            f"{low_confidence} mappings require manual review due to lower confidence"
        )

    conflicting = sum(1 for m in mappings if m.conflict_level in BLOCKING_LEVELS)
    if conflicting:
        actions.append(
            f"{conflicting} mappings have conflicting status - review before applying"
        )

    new_risks = sum(1 for e in unmapped if e.entity_type == "risk")
    if new_risks:
        actions.append(f"{new_risks} risks will be added as new risk entries")

    if unmapped:
        actions.append(
            f"{len(unmapped)} entities could not be matched - consider creating new records"
        )

    if not actions:
        actions.append("All entities successfully mapped with high confidence")
    return actions
