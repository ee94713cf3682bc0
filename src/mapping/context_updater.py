# src/mapping/context_updater.py — v1
"""Context updater — turn an approved mapping result into patched collections.

Only auto-appliable mappings are applied (confidence at or above the
auto-apply threshold, conflict level in the auto-apply set). Everything else
is skipped and its record is returned as the very same object, so callers can
diff by identity. Unmapped risks become new risk records.

Deterministic: the update timestamp defaults to the extraction's
``extracted_at`` and new risk ids are uuid5 digests of the risk text, so two
calls with the same arguments return equal plans.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from planpulse.config.settings import Settings
from planpulse.core.models import (
    AppliedUpdate,
    ContextUpdatePlan,
    EntityMapping,
    EntityMappingResult,
    ExistingRecord,
    ExtractedMilestone,
    ExtractedProjectStatus,
    ExtractedRisk,
    NewRisk,
    OCRExtractionResult,
    PlanningSnapshot,
)
from planpulse.mapping.aggregator import is_auto_appliable
from planpulse.mapping.status_map import rag_to_epic_status, rag_to_project_status

logger = logging.getLogger(__name__)

RISK_ID_NAMESPACE = uuid.UUID("6f1c1d2e-8a4b-5c3d-9e0f-7a6b5c4d3e2f")


class _Collection:
    """Working copy of one collection, patched by id."""

    def __init__(self, records: list[Any]) -> None:
        self.records = list(records)
        self._index = {r.id: i for i, r in enumerate(self.records)}

    def get(self, record_id: str) -> Any | None:
        pos = self._index.get(record_id)
        return None if pos is None else self.records[pos]

    def replace(self, record: ExistingRecord) -> None:
        self.records[self._index[record.id]] = record


def generate_context_updates(
    mapping_result: EntityMappingResult,
    extraction: OCRExtractionResult,
    snapshot: PlanningSnapshot,
    settings: Settings | None = None,
    as_of: datetime | None = None,
) -> ContextUpdatePlan:
    """Apply auto-appliable mappings to copies of the planning collections.

    Callers must make sure the ids in ``mapping_result`` still exist in
    ``snapshot``; mappings whose record is gone are skipped.

    Args:
        mapping_result: Output of map_extracted_entities_to_existing.
        extraction: The extraction the mappings were built from.
        snapshot: Current planning collections (never modified).
        settings: Thresholds and status tables. Loaded from .env if None.
        as_of: Timestamp written to patched records. Defaults to the
            extraction's extracted_at.

    Returns:
        ContextUpdatePlan with full collections in their original order.
    """
    settings = settings or Settings()
    as_of = as_of or extraction.extraction_metadata.extracted_at

    projects = _Collection(snapshot.projects)
    epics = _Collection(snapshot.epics)
    milestones = _Collection(snapshot.milestones)
    applied: list[AppliedUpdate] = []
    skipped: list[EntityMapping] = []

    for mapping in mapping_result.mappings:
        if not is_auto_appliable(mapping, settings):
            skipped.append(mapping)
            continue

        entity = mapping.extracted_entity
        changes: dict[str, Any] | None = None

        if mapping.existing_entity_type == "project" and isinstance(entity, ExtractedProjectStatus):
            changes = _patch(projects, mapping, {
                "status": rag_to_project_status(entity.status, settings),
                "last_updated": as_of,
            })
        elif mapping.existing_entity_type == "epic" and isinstance(entity, ExtractedProjectStatus):
            changes = _patch(epics, mapping, {
                "status": rag_to_epic_status(entity.status, settings),
            })
        elif mapping.existing_entity_type == "milestone" and isinstance(entity, ExtractedMilestone):
            current = milestones.get(mapping.existing_entity_id)
            actual_date = entity.actual_date or (current.actual_date if current else None)
            if entity.status == "completed" and actual_date is None:
                actual_date = entity.target_date
            changes = _patch(milestones, mapping, {
                "status": entity.status,
                "actual_date": actual_date,
            })
        else:
            # Team utilization and financial figures are informational here.
            logger.debug(
                "No direct update for %s mapping to %s %s",
                entity.entity_type, mapping.existing_entity_type,
                mapping.existing_entity_id,
            )
            continue

        if changes is None:
            skipped.append(mapping)
            continue
        applied.append(AppliedUpdate(
            existing_entity_type=mapping.existing_entity_type,
            existing_entity_id=mapping.existing_entity_id,
            changes=changes,
            mapping_reason=mapping.mapping_reason,
        ))

    new_risks = build_new_risks(mapping_result, as_of, settings)

    logger.info(
        "Context updates: %d applied, %d skipped, %d new risks",
        len(applied), len(skipped), len(new_risks),
    )

    return ContextUpdatePlan(
        projects=projects.records,
        epics=epics.records,
        milestones=milestones.records,
        actual_allocations=list(snapshot.actual_allocations),
        new_risks=new_risks,
        applied_updates=applied,
        skipped_mappings=skipped,
    )


def build_new_risks(
    mapping_result: EntityMappingResult,
    identified_at: datetime,
    settings: Settings,
) -> list[NewRisk]:
    """Synthesize a risk record for every unmapped extracted risk."""
    risks: list[NewRisk] = []
    unmapped_risks = [
        e for e in mapping_result.unmapped_entities if isinstance(e, ExtractedRisk)
    ]
    for position, risk in enumerate(unmapped_risks):
        risks.append(NewRisk(
            id=new_risk_id(risk, position),
            description=risk.risk_description,
            impact=risk.impact,
            probability=risk.probability or "medium",
            mitigation=risk.mitigation,
            category=risk.category or "operational",
            identified_date=identified_at,
            source=settings.new_risk_source,
            project_name=risk.project_name,
        ))
    return risks


def new_risk_id(risk: ExtractedRisk, position: int) -> str:
    """Stable id for a synthesized risk."""
    key = f"{position}|{risk.text}|{risk.risk_description}"
    return f"risk-{uuid.uuid5(RISK_ID_NAMESPACE, key).hex[:12]}"


def _patch(
    collection: _Collection,
    mapping: EntityMapping,
    changes: dict[str, Any],
) -> dict[str, Any] | None:
    current = collection.get(mapping.existing_entity_id)
    if current is None:
        logger.debug(
            "Skipping mapping to missing %s %s",
            mapping.existing_entity_type, mapping.existing_entity_id,
        )
        return None
    collection.replace(current.model_copy(update=changes))
    return changes
