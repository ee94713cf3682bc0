# tests/unit/mapping/test_unit_context_updater.py — v1
"""Tests for mapping/context_updater.py — applying approved mappings."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from planpulse.core.models import (
    ConflictLevel,
    EntityMapping,
    EntityMappingResult,
    ExistingEntityType,
    ExtractedEntity,
    ExtractedMilestone,
    ExtractedProjectStatus,
    ExtractedRisk,
    ExtractedTeamUpdate,
)
from planpulse.mapping.context_updater import generate_context_updates, new_risk_id


def _mapping(
    entity: ExtractedEntity,
    entity_type: ExistingEntityType,
    entity_id: str,
    confidence: float = 1.0,
    level: ConflictLevel = "none",
) -> EntityMapping:
    return EntityMapping(
        extracted_entity=entity,
        existing_entity_id=entity_id,
        existing_entity_type=entity_type,
        match_confidence=confidence,
        mapping_reason=f"test -> {entity_id}",
        conflict_level=level,
    )


def _result(*mappings: EntityMapping, unmapped: list | None = None) -> EntityMappingResult:
    return EntityMappingResult(mappings=list(mappings), unmapped_entities=unmapped or [])


@pytest.fixture
def green(alpha_green) -> ExtractedProjectStatus:
    return alpha_green


class TestProjectUpdates:
    def test_green_applied(self, green, sample_extraction, snapshot, settings):
        plan = generate_context_updates(
            _result(_mapping(green, "project", "proj-1")), sample_extraction, snapshot, settings,
        )
        updated = plan.projects[0]
        assert updated.id == "proj-1"
        assert updated.status == "in-progress"
        assert updated.last_updated == sample_extraction.extraction_metadata.extracted_at
        assert updated.last_updated != snapshot.projects[0].last_updated
        assert [u.existing_entity_id for u in plan.applied_updates] == ["proj-1"]

    def test_complete_maps_to_completed(self, sample_extraction, snapshot, settings):
        done = ExtractedProjectStatus(text="t", confidence=0.9, project_name="Project Alpha", status="complete")
        plan = generate_context_updates(
            _result(_mapping(done, "project", "proj-1")), sample_extraction, snapshot, settings,
        )
        assert plan.projects[0].status == "completed"

    def test_low_confidence_not_applied(self, green, sample_extraction, snapshot, settings):
        plan = generate_context_updates(
            _result(_mapping(green, "project", "proj-1", confidence=0.5)),
            sample_extraction, snapshot, settings,
        )
        assert plan.projects[0] is snapshot.projects[0]
        assert plan.projects[0].status == "in-progress"
        assert plan.projects[0].last_updated == snapshot.projects[0].last_updated
        assert plan.applied_updates == []
        assert len(plan.skipped_mappings) == 1

    @pytest.mark.parametrize("level", ["medium", "high"])
    def test_blocking_conflict_not_applied(self, green, sample_extraction, snapshot, settings, level):
        plan = generate_context_updates(
            _result(_mapping(green, "project", "proj-2", level=level)),
            sample_extraction, snapshot, settings,
        )
        assert plan.projects[1] is snapshot.projects[1]

    def test_low_conflict_applied(self, green, sample_extraction, snapshot, settings):
        plan = generate_context_updates(
            _result(_mapping(green, "project", "proj-2", level="low")),
            sample_extraction, snapshot, settings,
        )
        assert plan.projects[1].status == "in-progress"

    def test_missing_record_skipped(self, green, sample_extraction, snapshot, settings):
        plan = generate_context_updates(
            _result(_mapping(green, "project", "proj-404")), sample_extraction, snapshot, settings,
        )
        assert plan.projects == snapshot.projects
        assert [m.existing_entity_id for m in plan.skipped_mappings] == ["proj-404"]

    def test_as_of_override(self, green, sample_extraction, snapshot, settings):
        as_of = datetime(2025, 1, 2, tzinfo=timezone.utc)
        plan = generate_context_updates(
            _result(_mapping(green, "project", "proj-1")), sample_extraction, snapshot, settings,
            as_of=as_of,
        )
        assert plan.projects[0].last_updated == as_of

    def test_snapshot_not_mutated(self, green, sample_extraction, snapshot, settings):
        before = snapshot.model_copy(deep=True)
        generate_context_updates(
            _result(_mapping(green, "project", "proj-2")), sample_extraction, snapshot, settings,
        )
        assert snapshot == before


class TestEpicAndMilestoneUpdates:
    def test_epic_status(self, sample_extraction, snapshot, settings):
        blue = ExtractedProjectStatus(text="t", confidence=0.9, project_name="Checkout Redesign", status="blue")
        plan = generate_context_updates(
            _result(_mapping(blue, "epic", "epic-1")), sample_extraction, snapshot, settings,
        )
        assert plan.epics[0].status == "todo"
        assert plan.applied_updates[0].changes == {"status": "todo"}

    def test_milestone_status_and_actual_date(self, sample_extraction, snapshot, settings):
        done = ExtractedMilestone(
            text="m", confidence=0.8, milestone_name="Alpha MVP",
            actual_date=date(2024, 6, 12), status="completed",
        )
        plan = generate_context_updates(
            _result(_mapping(done, "milestone", "ms-1")), sample_extraction, snapshot, settings,
        )
        assert plan.milestones[0].status == "completed"
        assert plan.milestones[0].actual_date == date(2024, 6, 12)
        assert plan.milestones[1] is snapshot.milestones[1]

    def test_completed_without_actual_uses_target(self, sample_extraction, snapshot, settings):
        done = ExtractedMilestone(
            text="m", confidence=0.8, milestone_name="Alpha MVP",
            target_date=date(2024, 6, 15), status="completed",
        )
        plan = generate_context_updates(
            _result(_mapping(done, "milestone", "ms-1")), sample_extraction, snapshot, settings,
        )
        assert plan.milestones[0].actual_date == date(2024, 6, 15)

    def test_in_progress_keeps_no_actual_date(self, sample_extraction, snapshot, settings):
        ongoing = ExtractedMilestone(
            text="m", confidence=0.8, milestone_name="Beta Integration Testing",
            target_date=date(2024, 7, 30), status="in-progress",
        )
        plan = generate_context_updates(
            _result(_mapping(ongoing, "milestone", "ms-2")), sample_extraction, snapshot, settings,
        )
        assert plan.milestones[1].status == "in-progress"
        assert plan.milestones[1].actual_date is None


class TestInformationalMappings:
    def test_team_update_not_applied(self, sample_extraction, snapshot, settings):
        update = ExtractedTeamUpdate(text="t", confidence=0.8, team_name="Team QA", utilization=95)
        plan = generate_context_updates(
            _result(_mapping(update, "team", "team-2")), sample_extraction, snapshot, settings,
        )
        assert plan.applied_updates == []
        assert plan.skipped_mappings == []
        assert plan.actual_allocations == snapshot.actual_allocations


class TestNewRisks:
    def test_unmapped_risks_become_records(self, sample_extraction, snapshot, settings):
        risk = ExtractedRisk(
            text="Risk: Vendor delay", confidence=0.85, risk_description="Vendor delay",
            impact="high", mitigation="Escalate",
        )
        plan = generate_context_updates(
            _result(unmapped=[risk]), sample_extraction, snapshot, settings,
        )
        assert len(plan.new_risks) == 1
        new = plan.new_risks[0]
        assert new.id.startswith("risk-")
        assert new.description == "Vendor delay"
        assert new.impact == "high"
        assert new.probability == "medium"
        assert new.category == "operational"
        assert new.status == "open"
        assert new.mitigation == "Escalate"
        assert new.source == "steering-committee-ocr"
        assert new.identified_date == sample_extraction.extraction_metadata.extracted_at

    def test_source_configurable(self, sample_extraction, snapshot, settings):
        risk = ExtractedRisk(text="Risk: x", confidence=0.85, risk_description="x")
        custom = settings.model_copy(update={"new_risk_source": "manual-upload"})
        plan = generate_context_updates(_result(unmapped=[risk]), sample_extraction, snapshot, custom)
        assert plan.new_risks[0].source == "manual-upload"

    def test_other_unmapped_ignored(self, green, sample_extraction, snapshot, settings):
        plan = generate_context_updates(
            _result(unmapped=[green]), sample_extraction, snapshot, settings,
        )
        assert plan.new_risks == []

    def test_risk_ids_unique_and_stable(self):
        a = ExtractedRisk(text="Risk: x", confidence=0.8, risk_description="x")
        assert new_risk_id(a, 0) == new_risk_id(a, 0)
        assert new_risk_id(a, 0) != new_risk_id(a, 1)
        assert len(new_risk_id(a, 0)) == len("risk-") + 12


class TestPlanShape:
    def test_collections_keep_order_and_length(self, green, sample_extraction, snapshot, settings):
        plan = generate_context_updates(
            _result(_mapping(green, "project", "proj-2")), sample_extraction, snapshot, settings,
        )
        assert [p.id for p in plan.projects] == [p.id for p in snapshot.projects]
        assert [e.id for e in plan.epics] == [e.id for e in snapshot.epics]
        assert [m.id for m in plan.milestones] == [m.id for m in snapshot.milestones]

    def test_idempotent(self, green, sample_extraction, snapshot, settings):
        risk = ExtractedRisk(text="Risk: x", confidence=0.85, risk_description="x")
        result = _result(_mapping(green, "project", "proj-1"), unmapped=[risk])
        first = generate_context_updates(result, sample_extraction, snapshot, settings)
        second = generate_context_updates(result, sample_extraction, snapshot, settings)
        assert first == second

    def test_empty_result(self, sample_extraction, snapshot, settings):
        plan = generate_context_updates(EntityMappingResult(), sample_extraction, snapshot, settings)
        assert plan.projects == snapshot.projects
        assert plan.new_risks == []
        assert plan.applied_updates == []
