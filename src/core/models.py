# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

Extracted entities (what the OCR text says), existing planning records
(what the application already holds) and the mapping / update results that
link the two. No module redefines these types, all imports come from
core.models.

All models are frozen: results are computed fresh on every call and never
mutated in place. Patched records are produced with ``model_copy``.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

RAGStatus = Literal["red", "amber", "green", "blue", "complete"]
ConflictLevel = Literal["none", "low", "medium", "high"]
ExistingEntityType = Literal["project", "epic", "team", "milestone", "person"]
MilestoneStatus = Literal["not-started", "in-progress", "completed", "delayed"]
ImpactLevel = Literal["low", "medium", "high", "critical"]
ProbabilityLevel = Literal["low", "medium", "high"]
CommentarySection = Literal["progress", "risks", "issues", "achievements", "next-steps"]
Sentiment = Literal["positive", "neutral", "negative"]


# === EXTRACTED ENTITIES ===


class _ExtractedBase(BaseModel):
    """Fields shared by every entity pulled out of a document."""

    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float = Field(ge=0.0, le=1.0)


class ExtractedProjectStatus(_ExtractedBase):
    """RAG status reported for a project or epic."""

    entity_type: Literal["project_status"] = "project_status"
    project_name: str
    status: RAGStatus
    rag_reason: str | None = None


class ExtractedRisk(_ExtractedBase):
    """Risk or issue raised in the document."""

    entity_type: Literal["risk"] = "risk"
    risk_description: str
    impact: ImpactLevel = "low"
    probability: ProbabilityLevel | None = None
    mitigation: str | None = None
    category: str | None = None
    project_name: str | None = None


class ExtractedFinancial(_ExtractedBase):
    """Budget / actual / forecast figures for a project."""

    entity_type: Literal["financial"] = "financial"
    project_name: str
    budget_amount: float | None = None
    actual_amount: float | None = None
    forecast_amount: float | None = None
    currency: str = "USD"


class ExtractedMilestone(_ExtractedBase):
    """Milestone with its reported date and progress."""

    entity_type: Literal["milestone"] = "milestone"
    milestone_name: str
    project_name: str | None = None
    target_date: date | None = None
    actual_date: date | None = None
    status: MilestoneStatus = "not-started"


class ExtractedTeamUpdate(_ExtractedBase):
    """Team utilization update."""

    entity_type: Literal["team_update"] = "team_update"
    team_name: str
    utilization: float | None = None
    commentary: str | None = None


class ExtractedCommentary(_ExtractedBase):
    """Free-text progress note found under a commentary section."""

    entity_type: Literal["commentary"] = "commentary"
    project_name: str | None = None
    section: CommentarySection = "progress"
    content: str
    sentiment: Sentiment = "neutral"


ExtractedEntity = Annotated[
    Union[
        ExtractedProjectStatus,
        ExtractedRisk,
        ExtractedFinancial,
        ExtractedMilestone,
        ExtractedTeamUpdate,
        ExtractedCommentary,
    ],
    Field(discriminator="entity_type"),
]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExtractionMetadata(BaseModel):
    """Summary statistics of one extraction run."""

    model_config = ConfigDict(frozen=True)

    total_confidence: float = 0.0
    processing_time_ms: float = 0.0
    extracted_entities: int = 0
    document_type: str = "steering-committee"
    extracted_at: datetime = Field(default_factory=_utc_now)


class OCRExtractionResult(BaseModel):
    """All entities extracted from one document."""

    model_config = ConfigDict(frozen=True)

    raw_text: str = ""
    project_statuses: list[ExtractedProjectStatus] = Field(default_factory=list)
    risks: list[ExtractedRisk] = Field(default_factory=list)
    financials: list[ExtractedFinancial] = Field(default_factory=list)
    milestones: list[ExtractedMilestone] = Field(default_factory=list)
    team_updates: list[ExtractedTeamUpdate] = Field(default_factory=list)
    commentary: list[ExtractedCommentary] = Field(default_factory=list)
    extraction_metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)

    def all_entities(self) -> list[ExtractedEntity]:
        """Every entity, in a fixed type order."""
        return [
            *self.project_statuses,
            *self.risks,
            *self.financials,
            *self.milestones,
            *self.team_updates,
            *self.commentary,
        ]


# === EXISTING PLANNING RECORDS ===


class ExistingRecord(BaseModel):
    """Planning record already held by the application.

    Unknown fields are kept so a patched copy round-trips everything the
    caller passed in.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    name: str


class Project(ExistingRecord):
    status: str | None = None
    last_updated: datetime | None = None
    budget: float | None = None
    solution_ids: list[str] = Field(default_factory=list)


class Epic(ExistingRecord):
    project_id: str | None = None
    status: str | None = None


class Team(ExistingRecord):
    current_utilization: float | None = None
    target_skills: list[str] = Field(default_factory=list)


class Milestone(ExistingRecord):
    project_id: str | None = None
    status: str | None = None
    due_date: date | None = None
    actual_date: date | None = None


class Person(ExistingRecord):
    team_id: str | None = None


class ActualAllocation(BaseModel):
    """Recorded team allocation. Passed through the update phase as-is."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    team_id: str
    actual_percentage: float | None = None


class PlanningSnapshot(BaseModel):
    """Caller-owned snapshot of the planning collections."""

    model_config = ConfigDict(frozen=True)

    projects: list[Project] = Field(default_factory=list)
    epics: list[Epic] = Field(default_factory=list)
    teams: list[Team] = Field(default_factory=list)
    milestones: list[Milestone] = Field(default_factory=list)
    people: list[Person] = Field(default_factory=list)
    actual_allocations: list[ActualAllocation] = Field(default_factory=list)

    def collection(self, entity_type: ExistingEntityType) -> list[ExistingRecord]:
        """Records of one existing entity type."""
        return {
            "project": self.projects,
            "epic": self.epics,
            "team": self.teams,
            "milestone": self.milestones,
            "person": self.people,
        }[entity_type]

    def find(
        self, entity_type: ExistingEntityType, entity_id: str,
    ) -> ExistingRecord | None:
        """Look up a record by type and id. None if absent."""
        for record in self.collection(entity_type):
            if record.id == entity_id:
                return record
        return None


# === MAPPING RESULTS ===


class EntityMapping(BaseModel):
    """Link between one extracted entity and one existing record."""

    model_config = ConfigDict(frozen=True)

    extracted_entity: ExtractedEntity
    existing_entity_id: str
    existing_entity_type: ExistingEntityType
    match_confidence: float = Field(ge=0.0, le=1.0)
    mapping_reason: str
    conflict_level: ConflictLevel = "none"


class Conflict(BaseModel):
    """Disagreement between a mapped entity and its existing record."""

    model_config = ConfigDict(frozen=True)

    mapping: EntityMapping
    field: str
    existing_value: str | None = None
    extracted_value: str | None = None
    conflict_level: ConflictLevel
    description: str = ""

    @property
    def existing_entity_id(self) -> str:
        return self.mapping.existing_entity_id

    @property
    def existing_entity_type(self) -> ExistingEntityType:
        return self.mapping.existing_entity_type


class MappingRecommendations(BaseModel):
    model_config = ConfigDict(frozen=True)

    auto_apply_count: int = 0
    requires_review_count: int = 0
    suggested_actions: list[str] = Field(default_factory=list)


class EntityMappingResult(BaseModel):
    """Output of the matching phase, input of the update phase."""

    model_config = ConfigDict(frozen=True)

    mappings: list[EntityMapping] = Field(default_factory=list)
    unmapped_entities: list[ExtractedEntity] = Field(default_factory=list)
    conflicts: list[Conflict] = Field(default_factory=list)
    recommendations: MappingRecommendations = Field(default_factory=MappingRecommendations)


# === CONTEXT UPDATES ===


class NewRisk(BaseModel):
    """Risk record synthesized from an unmapped extracted risk."""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str
    impact: ImpactLevel
    probability: ProbabilityLevel = "medium"
    mitigation: str | None = None
    status: str = "open"
    category: str = "operational"
    identified_date: datetime
    source: str = "steering-committee-ocr"
    project_name: str | None = None


class AppliedUpdate(BaseModel):
    """One record patched by the context updater."""

    model_config = ConfigDict(frozen=True)

    existing_entity_type: ExistingEntityType
    existing_entity_id: str
    changes: dict[str, Any] = Field(default_factory=dict)
    mapping_reason: str = ""


class ContextUpdatePlan(BaseModel):
    """Patched collections ready to hand back to the application state.

    Collections keep their original order and length. Records that no
    applied mapping touched are the very objects from the snapshot.
    """

    model_config = ConfigDict(frozen=True)

    projects: list[Project] = Field(default_factory=list)
    epics: list[Epic] = Field(default_factory=list)
    milestones: list[Milestone] = Field(default_factory=list)
    actual_allocations: list[ActualAllocation] = Field(default_factory=list)
    new_risks: list[NewRisk] = Field(default_factory=list)
    applied_updates: list[AppliedUpdate] = Field(default_factory=list)
    skipped_mappings: list[EntityMapping] = Field(default_factory=list)
