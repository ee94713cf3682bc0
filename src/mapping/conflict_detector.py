# src/mapping/conflict_detector.py — v1
"""Conflict detector — compare what a document reports with what is on record.

Identifies:
  - Status conflicts: RAG colour vs the project / epic status on record.
  - Date conflicts: reported milestone completion date vs recorded actual date.
  - Milestone status changes that are not a normal progression.
  - Utilization gaps for teams and budget gaps for projects.

Pure functions. The detected level is written into a copy of the mapping
once; the original mapping is never modified.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from planpulse.config.settings import Settings
from planpulse.core.models import (
    Conflict,
    ConflictLevel,
    EntityMapping,
    ExistingRecord,
    ExtractedEntity,
    ExtractedFinancial,
    ExtractedMilestone,
    ExtractedProjectStatus,
    ExtractedTeamUpdate,
    PlanningSnapshot,
)
from planpulse.mapping.status_map import (
    rag_to_epic_status,
    rag_to_project_status,
    status_rank,
)

logger = logging.getLogger(__name__)

# (status on record, reported RAG) pairs whose verdict overrides the ladder.
STATUS_CONFLICT_RULES: dict[tuple[str, str], ConflictLevel] = {
    ("completed", "red"): "high",
    ("completed", "amber"): "medium",
    ("in-progress", "red"): "high",
    ("in-progress", "amber"): "low",
}

MILESTONE_PROGRESSIONS: set[tuple[str, str]] = {
    ("not-started", "in-progress"),
    ("in-progress", "completed"),
}


@dataclass
class ConflictReport:
    """Mappings with their conflict level resolved, plus the conflicts found."""

    mappings: list[EntityMapping] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)


def detect_conflict(
    mapping: EntityMapping,
    extracted: ExtractedEntity,
    existing: ExistingRecord | None,
    settings: Settings | None = None,
) -> Conflict | None:
    """Classify the disagreement between an extracted entity and its record.

    Returns:
        A Conflict, or None when states are compatible or the record has no
        field to compare.
    """
    if existing is None:
        return None
    settings = settings or Settings()

    if isinstance(extracted, ExtractedProjectStatus):
        translate = (
            rag_to_epic_status
            if mapping.existing_entity_type == "epic"
            else rag_to_project_status
        )
        return _status_conflict(mapping, extracted, existing, translate, settings)
    if isinstance(extracted, ExtractedMilestone):
        return _milestone_conflict(mapping, extracted, existing, settings)
    if isinstance(extracted, ExtractedTeamUpdate):
        return _utilization_conflict(mapping, extracted, existing, settings)
    if isinstance(extracted, ExtractedFinancial):
        return _budget_conflict(mapping, extracted, existing, settings)
    return None


def apply_conflict_levels(
    mappings: list[EntityMapping],
    snapshot: PlanningSnapshot,
    settings: Settings | None = None,
) -> ConflictReport:
    """Run the detector once per mapping and derive each conflict level.

    Args:
        mappings: Mappings straight from the candidate matcher.
        snapshot: Collections the mappings point into.
        settings: Grading thresholds. Loaded from .env if None.

    Returns:
        ConflictReport with mappings in input order.
    """
    settings = settings or Settings()
    report = ConflictReport()

    for mapping in mappings:
        existing = snapshot.find(mapping.existing_entity_type, mapping.existing_entity_id)
        conflict = detect_conflict(mapping, mapping.extracted_entity, existing, settings)
        if conflict is None:
            report.mappings.append(mapping)
            continue
        resolved = mapping.model_copy(update={"conflict_level": conflict.conflict_level})
        report.mappings.append(resolved)
        report.conflicts.append(conflict.model_copy(update={"mapping": resolved}))

    report.stats = {
        "total_mappings": len(mappings),
        "conflicts": len(report.conflicts),
        "high_severity": sum(1 for c in report.conflicts if c.conflict_level == "high"),
        "medium_severity": sum(1 for c in report.conflicts if c.conflict_level == "medium"),
    }

    if report.stats["high_severity"] or report.stats["medium_severity"]:
        logger.warning(
            "Detected %d conflicts (%d high, %d medium)",
            len(report.conflicts), report.stats["high_severity"],
            report.stats["medium_severity"],
        )
    else:
        logger.info(
            "No blocking conflicts in %d mappings (%d low)",
            len(mappings), len(report.conflicts),
        )
    return report


def _status_conflict(
    mapping: EntityMapping,
    extracted: ExtractedProjectStatus,
    existing: ExistingRecord,
    translate: Callable[[str, Settings], str],
    settings: Settings,
) -> Conflict | None:
    current = getattr(existing, "status", None)
    if not current:
        return None

    current_norm = current.lower()
    implied = translate(extracted.status, settings)
    level = STATUS_CONFLICT_RULES.get((current_norm, extracted.status))
    if level is None:
        if current_norm == implied:
            return None
        gap = abs(status_rank(current_norm, settings) - status_rank(implied, settings))
        level = "low" if gap <= 1 else "medium" if gap == 2 else "high"

    return Conflict(
        mapping=mapping,
        field="status",
        existing_value=current,
        extracted_value=extracted.status,
        conflict_level=level,
        description=(
            f"{mapping.existing_entity_type.capitalize()} '{existing.name}' is "
            f"'{current}' but was reported {extracted.status.upper()} "
            f"(implies '{implied}')."
        ),
    )


def _milestone_conflict(
    mapping: EntityMapping,
    extracted: ExtractedMilestone,
    existing: ExistingRecord,
    settings: Settings,
) -> Conflict | None:
    reported_date = extracted.actual_date
    if reported_date is None and extracted.status == "completed":
        reported_date = extracted.target_date
    recorded_date: date | None = getattr(existing, "actual_date", None)

    if reported_date is not None and recorded_date is not None:
        gap_days = abs((reported_date - recorded_date).days)
        if gap_days > 0:
            if gap_days <= settings.milestone_low_gap_days:
                level: ConflictLevel = "low"
            elif gap_days <= settings.milestone_medium_gap_days:
                level = "medium"
            else:
                level = "high"
            return Conflict(
                mapping=mapping,
                field="actual_date",
                existing_value=recorded_date.isoformat(),
                extracted_value=reported_date.isoformat(),
                conflict_level=level,
                description=(
                    f"Milestone '{existing.name}' completion dates differ by "
                    f"{gap_days} days."
                ),
            )

    current = getattr(existing, "status", None)
    if not current or current.lower() == extracted.status:
        return None
    level = "low" if (current.lower(), extracted.status) in MILESTONE_PROGRESSIONS else "medium"
    return Conflict(
        mapping=mapping,
        field="status",
        existing_value=current,
        extracted_value=extracted.status,
        conflict_level=level,
        description=(
            f"Milestone '{existing.name}' moves from '{current}' to "
            f"'{extracted.status}'."
        ),
    )


def _utilization_conflict(
    mapping: EntityMapping,
    extracted: ExtractedTeamUpdate,
    existing: ExistingRecord,
    settings: Settings,
) -> Conflict | None:
    recorded = getattr(existing, "current_utilization", None)
    if extracted.utilization is None or recorded is None:
        return None
    gap = abs(extracted.utilization - recorded)
    if gap == 0:
        return None
    if gap <= settings.utilization_low_gap:
        level: ConflictLevel = "low"
    elif gap <= settings.utilization_medium_gap:
        level = "medium"
    else:
        level = "high"
    return Conflict(
        mapping=mapping,
        field="utilization",
        existing_value=f"{recorded:g}",
        extracted_value=f"{extracted.utilization:g}",
        conflict_level=level,
        description=(
            f"Team '{existing.name}' utilization is {recorded:g}% on record, "
            f"{extracted.utilization:g}% reported."
        ),
    )


def _budget_conflict(
    mapping: EntityMapping,
    extracted: ExtractedFinancial,
    existing: ExistingRecord,
    settings: Settings,
) -> Conflict | None:
    recorded = getattr(existing, "budget", None)
    if extracted.budget_amount is None or recorded is None:
        return None
    if extracted.budget_amount == recorded:
        return None
    ratio = (
        abs(extracted.budget_amount - recorded) / abs(recorded)
        if recorded
        else float("inf")
    )
    if ratio <= settings.budget_low_gap_ratio:
        level: ConflictLevel = "low"
    elif ratio <= settings.budget_medium_gap_ratio:
        level = "medium"
    else:
        level = "high"
    return Conflict(
        mapping=mapping,
        field="budget",
        existing_value=f"{recorded:g}",
        extracted_value=f"{extracted.budget_amount:g}",
        conflict_level=level,
        description=(
            f"Project '{existing.name}' budget is {recorded:g} on record, "
            f"{extracted.budget_amount:g} {extracted.currency} reported."
        ),
    )
