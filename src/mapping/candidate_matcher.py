# src/mapping/candidate_matcher.py — v1
"""Candidate matcher — pair extracted entities with existing planning records.

Strategy per extracted entity:
  1. Pick the candidate pool for its type (projects, epics, milestones, teams).
  2. Score every candidate name with the similarity scorer.
  3. Keep the single best candidate; ties prefer an exact-tier match, then
     the smallest id.
  4. Below the confidence floor the entity stays unmapped.

Risks and commentary have no existing collection and are always unmapped.
Mappings leave this module with conflict_level "none"; the conflict
detector fills it in.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import numpy as np

from planpulse.config.settings import Settings
from planpulse.core.models import (
    EntityMapping,
    ExistingEntityType,
    ExistingRecord,
    ExtractedEntity,
    ExtractedFinancial,
    ExtractedMilestone,
    ExtractedProjectStatus,
    ExtractedTeamUpdate,
    Milestone,
    PlanningSnapshot,
)
from planpulse.core.similarity import is_exact_tier, similarity_matrix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """Best-scoring existing record for one extracted name."""

    record: ExistingRecord
    score: float


@dataclass
class MatchOutcome:
    """Result of matching a batch of extracted entities."""

    mappings: list[EntityMapping] = field(default_factory=list)
    unmapped: list[ExtractedEntity] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)


def best_candidate(
    name: str,
    records: Sequence[ExistingRecord],
    settings: Settings,
) -> Candidate | None:
    """Highest-scoring record for ``name``, or None if nothing scores above 0."""
    named = [r for r in records if isinstance(r.name, str) and r.name.strip()]
    if not name or not name.strip() or not named:
        return None

    scores = similarity_matrix(
        [name],
        [r.name for r in named],
        min_similarity=settings.similarity_min_score,
        substring_floor=settings.similarity_substring_floor,
    )[0]
    top = float(scores.max())
    if top <= 0.0:
        return None

    tied = [named[i] for i in np.flatnonzero(scores == top)]
    # Untrimmed equality first: "Alpha" beats a padded "Alpha " at the same score.
    winner = min(
        tied, key=lambda r: (r.name != name, not is_exact_tier(name, r.name), r.id),
    )
    return Candidate(record=winner, score=top)


def _to_mapping(
    entity: ExtractedEntity,
    label: str,
    candidate: Candidate | None,
    entity_type: ExistingEntityType,
    settings: Settings,
) -> EntityMapping | None:
    if candidate is None or candidate.score < settings.match_confidence_floor:
        return None
    return EntityMapping(
        extracted_entity=entity,
        existing_entity_id=candidate.record.id,
        existing_entity_type=entity_type,
        match_confidence=candidate.score,
        mapping_reason=(
            f'Matched "{label}" to {entity_type} "{candidate.record.name}" '
            f"({round(candidate.score * 100)}% confidence)"
        ),
    )


def match_project_status(
    entity: ExtractedProjectStatus,
    snapshot: PlanningSnapshot,
    settings: Settings,
) -> EntityMapping | None:
    """Match a status line against projects, falling back to epics."""
    best = best_candidate(entity.project_name, snapshot.projects, settings)
    entity_type: ExistingEntityType = "project"

    if best is None or best.score < settings.epic_fallback_threshold:
        epic = best_candidate(entity.project_name, snapshot.epics, settings)
        if epic is not None and epic.score > (best.score if best else 0.0):
            best = epic
            entity_type = "epic"

    return _to_mapping(entity, entity.project_name, best, entity_type, settings)


def match_financial(
    entity: ExtractedFinancial,
    snapshot: PlanningSnapshot,
    settings: Settings,
) -> EntityMapping | None:
    best = best_candidate(entity.project_name, snapshot.projects, settings)
    return _to_mapping(entity, entity.project_name, best, "project", settings)


def match_team_update(
    entity: ExtractedTeamUpdate,
    snapshot: PlanningSnapshot,
    settings: Settings,
) -> EntityMapping | None:
    best = best_candidate(entity.team_name, snapshot.teams, settings)
    return _to_mapping(entity, entity.team_name, best, "team", settings)


def milestone_pool(
    entity: ExtractedMilestone,
    snapshot: PlanningSnapshot,
    settings: Settings,
) -> list[Milestone]:
    """Milestones of the project the entity names, else every milestone.

    Narrowing first keeps "Release 1" of one project from matching
    "Release 1" of another.
    """
    if entity.project_name:
        project = best_candidate(entity.project_name, snapshot.projects, settings)
        if project is not None and project.score >= settings.milestone_project_threshold:
            scoped = [m for m in snapshot.milestones if m.project_id == project.record.id]
            if scoped:
                logger.debug(
                    "Milestone %r scoped to %d milestones of project %s",
                    entity.milestone_name, len(scoped), project.record.id,
                )
                return scoped
    return list(snapshot.milestones)


def match_milestone(
    entity: ExtractedMilestone,
    snapshot: PlanningSnapshot,
    settings: Settings,
) -> EntityMapping | None:
    pool = milestone_pool(entity, snapshot, settings)
    best = best_candidate(entity.milestone_name, pool, settings)
    return _to_mapping(entity, entity.milestone_name, best, "milestone", settings)


_MATCHERS: dict[str, Callable[..., EntityMapping | None]] = {
    "project_status": match_project_status,
    "financial": match_financial,
    "team_update": match_team_update,
    "milestone": match_milestone,
}


def match_entities(
    entities: Sequence[ExtractedEntity],
    snapshot: PlanningSnapshot,
    settings: Settings | None = None,
) -> MatchOutcome:
    """Match extracted entities against the snapshot's collections.

    Args:
        entities: Extracted entities, in the order they should be reported.
        snapshot: Current planning collections.
        settings: Thresholds. Loaded from .env if None.

    Returns:
        MatchOutcome with one mapping per matched entity and the rest unmapped.
    """
    settings = settings or Settings()
    outcome = MatchOutcome()

    for entity in entities:
        matcher = _MATCHERS.get(entity.entity_type)
        mapping = matcher(entity, snapshot, settings) if matcher else None
        if mapping is None:
            outcome.unmapped.append(entity)
        else:
            outcome.mappings.append(mapping)

    outcome.stats = {
        "total_extracted": len(entities),
        "mapped": len(outcome.mappings),
        "unmapped": len(outcome.unmapped),
    }
    logger.info(
        "Entity matching: %d extracted -> %d mapped, %d unmapped",
        len(entities), len(outcome.mappings), len(outcome.unmapped),
    )
    return outcome
