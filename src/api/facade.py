# src/api/facade.py — v1
"""Public API facade — entry points called by the planning UI.

Usage:
    from planpulse.api.facade import (
        extract_entities_from_text,
        generate_context_updates,
        map_extracted_entities_to_existing,
    )
    extraction = extract_entities_from_text(ocr_text)
    result = map_extracted_entities_to_existing(extraction, snapshot)
    plan = generate_context_updates(result, extraction, snapshot)

Matching and updating are two separate calls: the UI shows the mapping
result for review and only applies it once the user confirms.
"""

from __future__ import annotations

import logging

from planpulse.config.settings import Settings
from planpulse.core.models import (
    EntityMappingResult,
    OCRExtractionResult,
    PlanningSnapshot,
)
from planpulse.extraction.entity_extractor import extract_entities_from_text
from planpulse.logging.context import set_stage_context
from planpulse.mapping.aggregator import aggregate
from planpulse.mapping.candidate_matcher import match_entities
from planpulse.mapping.conflict_detector import apply_conflict_levels
from planpulse.mapping.context_updater import generate_context_updates

logger = logging.getLogger(__name__)

__all__ = [
    "extract_entities_from_text",
    "generate_context_updates",
    "map_extracted_entities_to_existing",
]


def map_extracted_entities_to_existing(
    extraction: OCRExtractionResult,
    snapshot: PlanningSnapshot,
    settings: Settings | None = None,
) -> EntityMappingResult:
    """Match every extracted entity against the current planning records.

    Pipeline:
      1. Candidate matcher: best existing record per entity, or unmapped.
      2. Conflict detector: grade each mapping against its record.
      3. Aggregator: counts and suggested actions.

    Empty extractions and empty collections are not errors: they produce
    empty results or all-unmapped results respectively.

    Args:
        extraction: Entities extracted from one document.
        snapshot: Current planning collections (never modified).
        settings: Thresholds and status tables. Loaded from .env if None.

    Returns:
        EntityMappingResult for review and later application.
    """
    settings = settings or Settings()
    set_stage_context("mapping")

    entities = extraction.all_entities()
    logger.info(
        "Mapping %d extracted entities against %d projects, %d epics, "
        "%d teams, %d milestones",
        len(entities), len(snapshot.projects), len(snapshot.epics),
        len(snapshot.teams), len(snapshot.milestones),
    )

    set_stage_context("mapping", "match")
    outcome = match_entities(entities, snapshot, settings)
    set_stage_context("mapping", "conflicts")
    report = apply_conflict_levels(outcome.mappings, snapshot, settings)
    set_stage_context("mapping", "aggregate")
    return aggregate(report.mappings, outcome.unmapped, report.conflicts, settings)
