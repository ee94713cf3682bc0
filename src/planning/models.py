# src/planning/models.py — v1
"""Skill-planning models: catalogue inputs and compatibility results."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MatchType = Literal["exact", "category", "missing"]
Recommendation = Literal["excellent", "good", "fair", "poor"]
GapPriority = Literal["critical", "important", "nice-to-have"]
SkillSource = Literal["project", "solution"]


class Skill(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    name: str
    category: str = "general"


class ProjectSkill(BaseModel):
    """Skill required directly by a project."""

    model_config = ConfigDict(frozen=True, extra="allow")

    project_id: str
    skill_id: str


class Solution(BaseModel):
    """Reusable solution; projects that use it inherit its skills."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    name: str = ""
    skills: list[str] = Field(default_factory=list)


class RequiredSkill(BaseModel):
    skill_id: str
    skill_name: str
    category: str
    source: SkillSource


class SkillMatch(BaseModel):
    skill_id: str
    skill_name: str
    category: str
    team_has_skill: bool
    match_type: MatchType


class CategoryCount(BaseModel):
    required: int = 0
    matched: int = 0


class TeamProjectCompatibility(BaseModel):
    """How well one team's target skills cover one project's needs."""

    team_id: str
    project_id: str
    compatibility_score: float = Field(ge=0.0, le=1.0)
    skill_matches: list[SkillMatch] = Field(default_factory=list)
    skills_matched: int = 0
    skills_required: int = 0
    skills_gap: int = 0
    category_distribution: dict[str, CategoryCount] = Field(default_factory=dict)
    recommendation: Recommendation
    reasoning: list[str] = Field(default_factory=list)


class PrioritizedSkill(BaseModel):
    skill_id: str
    skill_name: str
    category: str
    priority: GapPriority


class TeamAssessment(BaseModel):
    team_id: str
    team_name: str
    compatibility: TeamProjectCompatibility
    missing_skills: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)


class SkillGap(BaseModel):
    skill_name: str
    category: str
    teams_needing: list[str] = Field(default_factory=list)
    priority: GapPriority


class GapRecommendations(BaseModel):
    best_team: str | None = None
    skill_gaps: list[SkillGap] = Field(default_factory=list)
    training_needs: list[str] = Field(default_factory=list)
    hiring_needs: list[str] = Field(default_factory=list)


class SkillGapAnalysis(BaseModel):
    project_id: str
    project_name: str
    required_skills: list[PrioritizedSkill] = Field(default_factory=list)
    available_teams: list[TeamAssessment] = Field(default_factory=list)
    recommendations: GapRecommendations = Field(default_factory=GapRecommendations)


class TeamFilterResult(BaseModel):
    team_id: str
    team_name: str
    compatibility_score: float
    matching_skills: list[str] = Field(default_factory=list)


class SkillCoverageEntry(BaseModel):
    skill_id: str
    skill_name: str
    category: str
    team_ids: list[str] = Field(default_factory=list)
    coverage_count: int = 0
    is_well_covered: bool = False
    is_at_risk: bool = True


class CategoryCoverage(BaseModel):
    total_skills: int = 0
    covered_skills: int = 0
    coverage_percentage: float = 0.0
    average_teams_per_skill: float = 0.0


class CoverageRecommendations(BaseModel):
    skills_at_risk: list[str] = Field(default_factory=list)
    skills_well_covered: list[str] = Field(default_factory=list)
    categories_needing_attention: list[str] = Field(default_factory=list)


class SkillCoverageReport(BaseModel):
    total_skills: int = 0
    covered_skills: int = 0
    coverage_percentage: float = 0.0
    skill_coverage: list[SkillCoverageEntry] = Field(default_factory=list)
    category_analysis: dict[str, CategoryCoverage] = Field(default_factory=dict)
    recommendations: CoverageRecommendations = Field(default_factory=CoverageRecommendations)


class TeamRecommendation(BaseModel):
    team_id: str
    team_name: str
    compatibility: TeamProjectCompatibility
    rank: int
    recommendation: str
