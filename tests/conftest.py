# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides settings without .env, a small planning snapshot, a sample
steering-committee text and extracted entities. No I/O beyond tmp_path.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

import pytest

from planpulse.config.settings import Settings
from planpulse.core.models import (
    ActualAllocation,
    Epic,
    ExtractedCommentary,
    ExtractedFinancial,
    ExtractedMilestone,
    ExtractedProjectStatus,
    ExtractedRisk,
    ExtractedTeamUpdate,
    ExtractionMetadata,
    Milestone,
    OCRExtractionResult,
    Person,
    PlanningSnapshot,
    Project,
    Team,
)
from planpulse.logging.context import clear_context

EXTRACTED_AT = datetime(2024, 7, 1, 9, 30, tzinfo=timezone.utc)


# === FIXTURES: Settings ===


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any local .env."""
    return Settings(_env_file=None)


@pytest.fixture(autouse=True)
def _clean_log_context():
    clear_context()
    yield
    clear_context()
    logging.getLogger("planpulse").handlers.clear()


# === FIXTURES: Planning records ===


@pytest.fixture
def snapshot() -> PlanningSnapshot:
    """Two projects, one epic, two teams, two milestones."""
    return PlanningSnapshot(
        projects=[
            Project(
                id="proj-1", name="Project Alpha", status="in-progress",
                last_updated=datetime(2024, 1, 1, tzinfo=timezone.utc),
                budget=150_000,
            ),
            Project(
                id="proj-2", name="Project Beta", status="completed",
                last_updated=datetime(2024, 1, 1, tzinfo=timezone.utc),
            ),
        ],
        epics=[
            Epic(id="epic-1", name="Checkout Redesign", project_id="proj-1", status="todo"),
        ],
        teams=[
            Team(id="team-1", name="Team Engineering", current_utilization=85),
            Team(id="team-2", name="Team QA", current_utilization=70),
        ],
        milestones=[
            Milestone(
                id="ms-1", name="Alpha MVP", project_id="proj-1",
                status="in-progress", due_date=date(2024, 6, 15),
            ),
            Milestone(
                id="ms-2", name="Beta Integration Testing", project_id="proj-2",
                status="not-started", due_date=date(2024, 7, 30),
            ),
        ],
        people=[Person(id="person-1", name="Sam Lee", team_id="team-1")],
        actual_allocations=[
            ActualAllocation(id="alloc-1", team_id="team-1", actual_percentage=80),
        ],
    )


# === FIXTURES: Extracted entities ===


@pytest.fixture
def alpha_green() -> ExtractedProjectStatus:
    return ExtractedProjectStatus(
        text="Project Alpha: Green", confidence=0.85,
        project_name="Project Alpha", status="green",
    )


@pytest.fixture
def sample_extraction(alpha_green: ExtractedProjectStatus) -> OCRExtractionResult:
    """One entity of every type, as the extractor would produce them."""
    return OCRExtractionResult(
        raw_text="...",
        project_statuses=[alpha_green],
        risks=[
            ExtractedRisk(
                text="Risk: Vendor API rate limits", confidence=0.85,
                risk_description="Vendor API rate limits", impact="high",
                probability="medium", category="external",
            ),
        ],
        financials=[
            ExtractedFinancial(
                text="Budget: $150,000", confidence=0.95,
                project_name="Project Alpha", budget_amount=150_000,
            ),
        ],
        milestones=[
            ExtractedMilestone(
                text="Milestone: Alpha MVP due 2024-06-15", confidence=0.8,
                milestone_name="Alpha MVP", project_name="Project Alpha",
                target_date=date(2024, 6, 15), actual_date=date(2024, 6, 12),
                status="completed",
            ),
        ],
        team_updates=[
            ExtractedTeamUpdate(
                text="Team Engineering: 85%", confidence=0.75,
                team_name="Team Engineering", utilization=85,
            ),
        ],
        commentary=[
            ExtractedCommentary(
                text="Alpha team demonstrates excellent execution", confidence=0.55,
                content="Alpha team demonstrates excellent execution",
                project_name="Project Alpha", sentiment="positive",
            ),
        ],
        extraction_metadata=ExtractionMetadata(
            total_confidence=0.79, extracted_entities=6, extracted_at=EXTRACTED_AT,
        ),
    )


@pytest.fixture
def steerco_text() -> str:
    """Representative OCR output of a steering-committee pack."""
    return (
        "Q2 2024 Steering Committee Review\n"
        "\n"
        "Project Status Updates\n"
        "======================\n"
        "Project Alpha: Green - MVP delivered ahead of schedule\n"
        "Project Beta: Red - Integration blocked due to vendor API changes\n"
        "Customer Portal status: Amber\n"
        "\n"
        "Financials\n"
        "----------\n"
        "Project Alpha Budget: $150,000 | Actual: $142,000\n"
        "Project Beta Budget: $200,000 | Forecast: $240,000\n"
        "\n"
        "Risks & Issues\n"
        "--------------\n"
        "Risk: Vendor API rate limits on Beta - High impact - Medium probability - "
        "Mitigation: negotiate higher quota\n"
        "Issue: Team capacity constraints in Q3 - Low impact\n"
        "\n"
        "Milestones\n"
        "----------\n"
        "Milestone: Alpha MVP due 2024-06-15 - Completed on 2024-06-12\n"
        "Milestone: Beta Integration Testing due 2024-07-30 - Delayed\n"
        "\n"
        "Team Utilization\n"
        "----------------\n"
        "Team Engineering: 90% utilization - Working on Beta integration\n"
        "Team QA: 70%\n"
        "\n"
        "Progress Commentary\n"
        "-------------------\n"
        "Alpha team demonstrates excellent execution and delivery capability\n"
        "Beta vendor issues continue to cause delays for the integration\n"
        "\n"
        "Next Steps\n"
        "----------\n"
        "- Escalate vendor quota request to procurement\n"
    )
