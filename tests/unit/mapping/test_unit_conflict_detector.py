# tests/unit/mapping/test_unit_conflict_detector.py — v1
"""Tests for mapping/conflict_detector.py — state compatibility grading."""

from __future__ import annotations

from datetime import date

import pytest

from planpulse.core.models import (
    EntityMapping,
    Epic,
    ExistingEntityType,
    ExtractedEntity,
    ExtractedFinancial,
    ExtractedMilestone,
    ExtractedProjectStatus,
    ExtractedRisk,
    ExtractedTeamUpdate,
    Milestone,
    PlanningSnapshot,
    Project,
    Team,
)
from planpulse.mapping.conflict_detector import apply_conflict_levels, detect_conflict


def _mapping(
    entity: ExtractedEntity,
    entity_type: ExistingEntityType = "project",
    entity_id: str = "proj-1",
    confidence: float = 1.0,
) -> EntityMapping:
    return EntityMapping(
        extracted_entity=entity,
        existing_entity_id=entity_id,
        existing_entity_type=entity_type,
        match_confidence=confidence,
        mapping_reason="test",
    )


def _status(rag: str) -> ExtractedProjectStatus:
    return ExtractedProjectStatus(text=rag, confidence=0.9, project_name="Alpha", status=rag)


def _milestone(**kwargs) -> ExtractedMilestone:
    return ExtractedMilestone(text="m", confidence=0.8, milestone_name="MVP", **kwargs)


class TestProjectStatusConflicts:
    @pytest.mark.parametrize("recorded,rag,expected", [
        ("completed", "red", "high"),
        ("completed", "amber", "medium"),
        ("in-progress", "red", "high"),
        ("in-progress", "amber", "low"),
        ("on-hold", "green", "low"),
        ("not-started", "green", "medium"),
        ("cancelled", "green", "high"),
    ])
    def test_levels(self, settings, recorded, rag, expected):
        entity = _status(rag)
        existing = Project(id="proj-1", name="Alpha", status=recorded)
        conflict = detect_conflict(_mapping(entity), entity, existing, settings)
        assert conflict is not None
        assert conflict.conflict_level == expected
        assert conflict.field == "status"
        assert conflict.existing_value == recorded
        assert conflict.extracted_value == rag

    @pytest.mark.parametrize("recorded,rag", [
        ("in-progress", "green"),
        ("completed", "complete"),
        ("on-hold", "blue"),
        ("IN-PROGRESS", "green"),
    ])
    def test_compatible_states(self, settings, recorded, rag):
        entity = _status(rag)
        existing = Project(id="proj-1", name="Alpha", status=recorded)
        assert detect_conflict(_mapping(entity), entity, existing, settings) is None

    def test_no_recorded_status(self, settings):
        entity = _status("red")
        existing = Project(id="proj-1", name="Alpha")
        assert detect_conflict(_mapping(entity), entity, existing, settings) is None

    def test_missing_record(self, settings):
        entity = _status("red")
        assert detect_conflict(_mapping(entity), entity, None, settings) is None

    def test_epic_uses_epic_table(self, settings):
        entity = _status("blue")
        existing = Epic(id="epic-1", name="Checkout", status="todo")
        assert detect_conflict(_mapping(entity, "epic", "epic-1"), entity, existing, settings) is None

    def test_epic_ladder_gap(self, settings):
        entity = _status("green")
        existing = Epic(id="epic-1", name="Checkout", status="todo")
        conflict = detect_conflict(_mapping(entity, "epic", "epic-1"), entity, existing, settings)
        assert conflict.conflict_level == "medium"

    def test_description_names_record(self, settings):
        entity = _status("red")
        existing = Project(id="proj-1", name="Alpha", status="completed")
        conflict = detect_conflict(_mapping(entity), entity, existing, settings)
        assert "Alpha" in conflict.description
        assert "RED" in conflict.description


class TestMilestoneConflicts:
    @pytest.mark.parametrize("reported,expected", [
        (date(2024, 6, 5), "low"),
        (date(2024, 6, 21), "medium"),
        (date(2024, 7, 31), "high"),
        (date(2024, 5, 1), "high"),
    ])
    def test_date_gap_levels(self, settings, reported, expected):
        entity = _milestone(actual_date=reported, status="completed")
        existing = Milestone(id="ms-1", name="MVP", status="completed", actual_date=date(2024, 6, 1))
        conflict = detect_conflict(_mapping(entity, "milestone", "ms-1"), entity, existing, settings)
        assert conflict.conflict_level == expected
        assert conflict.field == "actual_date"

    def test_same_date_and_status(self, settings):
        entity = _milestone(actual_date=date(2024, 6, 1), status="completed")
        existing = Milestone(id="ms-1", name="MVP", status="completed", actual_date=date(2024, 6, 1))
        assert detect_conflict(_mapping(entity, "milestone", "ms-1"), entity, existing, settings) is None

    def test_completed_uses_target_date(self, settings):
        entity = _milestone(target_date=date(2024, 6, 20), status="completed")
        existing = Milestone(id="ms-1", name="MVP", status="completed", actual_date=date(2024, 6, 1))
        conflict = detect_conflict(_mapping(entity, "milestone", "ms-1"), entity, existing, settings)
        assert conflict.extracted_value == "2024-06-20"
        assert conflict.conflict_level == "medium"

    def test_normal_progression_is_low(self, settings):
        entity = _milestone(status="completed")
        existing = Milestone(id="ms-1", name="MVP", status="in-progress")
        conflict = detect_conflict(_mapping(entity, "milestone", "ms-1"), entity, existing, settings)
        assert conflict.conflict_level == "low"
        assert conflict.field == "status"

    def test_regression_is_medium(self, settings):
        entity = _milestone(status="delayed")
        existing = Milestone(id="ms-1", name="MVP", status="not-started")
        conflict = detect_conflict(_mapping(entity, "milestone", "ms-1"), entity, existing, settings)
        assert conflict.conflict_level == "medium"

    def test_no_fields_to_compare(self, settings):
        entity = _milestone(status="in-progress")
        existing = Milestone(id="ms-1", name="MVP")
        assert detect_conflict(_mapping(entity, "milestone", "ms-1"), entity, existing, settings) is None


class TestUtilizationAndBudget:
    @pytest.mark.parametrize("reported,expected", [(90, "low"), (110, "medium"), (20, "high")])
    def test_utilization(self, settings, reported, expected):
        entity = ExtractedTeamUpdate(text="t", confidence=0.8, team_name="Eng", utilization=reported)
        existing = Team(id="team-1", name="Eng", current_utilization=85)
        conflict = detect_conflict(_mapping(entity, "team", "team-1"), entity, existing, settings)
        assert conflict.conflict_level == expected

    def test_utilization_equal(self, settings):
        entity = ExtractedTeamUpdate(text="t", confidence=0.8, team_name="Eng", utilization=85)
        existing = Team(id="team-1", name="Eng", current_utilization=85)
        assert detect_conflict(_mapping(entity, "team", "team-1"), entity, existing, settings) is None

    @pytest.mark.parametrize("reported,expected", [
        (160_000, "low"),
        (180_000, "medium"),
        (300_000, "high"),
    ])
    def test_budget(self, settings, reported, expected):
        entity = ExtractedFinancial(text="f", confidence=0.9, project_name="Alpha", budget_amount=reported)
        existing = Project(id="proj-1", name="Alpha", budget=150_000)
        conflict = detect_conflict(_mapping(entity), entity, existing, settings)
        assert conflict.conflict_level == expected
        assert conflict.field == "budget"

    def test_zero_recorded_budget(self, settings):
        entity = ExtractedFinancial(text="f", confidence=0.9, project_name="Alpha", budget_amount=10)
        existing = Project(id="proj-1", name="Alpha", budget=0)
        assert detect_conflict(_mapping(entity), entity, existing, settings).conflict_level == "high"

    def test_actuals_only(self, settings):
        entity = ExtractedFinancial(text="f", confidence=0.9, project_name="Alpha", actual_amount=10)
        existing = Project(id="proj-1", name="Alpha", budget=150_000)
        assert detect_conflict(_mapping(entity), entity, existing, settings) is None

    def test_risk_never_conflicts(self, settings):
        entity = ExtractedRisk(text="r", confidence=0.9, risk_description="x")
        existing = Project(id="proj-1", name="Alpha", status="completed")
        assert detect_conflict(_mapping(entity), entity, existing, settings) is None


class TestApplyConflictLevels:
    def test_levels_written_to_copies(self, settings):
        snapshot = PlanningSnapshot(projects=[Project(id="proj-1", name="Alpha", status="completed")])
        original = _mapping(_status("red"))
        report = apply_conflict_levels([original], snapshot, settings)
        assert original.conflict_level == "none"
        assert report.mappings[0].conflict_level == "high"
        assert report.conflicts[0].mapping == report.mappings[0]
        assert report.stats["high_severity"] == 1

    def test_compatible_mapping_passes_through(self, settings):
        snapshot = PlanningSnapshot(projects=[Project(id="proj-1", name="Alpha", status="in-progress")])
        original = _mapping(_status("green"))
        report = apply_conflict_levels([original], snapshot, settings)
        assert report.mappings == [original]
        assert report.conflicts == []

    def test_low_conflicts_reported(self, settings):
        snapshot = PlanningSnapshot(projects=[Project(id="proj-1", name="Alpha", status="in-progress")])
        report = apply_conflict_levels([_mapping(_status("amber"))], snapshot, settings)
        assert [c.conflict_level for c in report.conflicts] == ["low"]

    def test_missing_record_means_no_conflict(self, settings):
        report = apply_conflict_levels([_mapping(_status("red"))], PlanningSnapshot(), settings)
        assert report.conflicts == []
        assert report.mappings[0].conflict_level == "none"

    def test_order_preserved(self, settings):
        snapshot = PlanningSnapshot(projects=[
            Project(id="proj-1", name="Alpha", status="completed"),
            Project(id="proj-2", name="Beta", status="in-progress"),
        ])
        mappings = [_mapping(_status("green"), entity_id="proj-2"), _mapping(_status("red"))]
        report = apply_conflict_levels(mappings, snapshot, settings)
        assert [m.existing_entity_id for m in report.mappings] == ["proj-2", "proj-1"]
        assert [m.conflict_level for m in report.mappings] == ["none", "high"]
