# src/planning/skill_planning.py — v1
"""Skill-based planning — team/project compatibility and skill gap analysis.

A project needs the skills attached to it directly plus the skills of every
solution it uses. A team covers a skill when the skill is in its
target_skills. Scores are exact-match ratios with a small bonus for teams
that at least know the skill's category.
"""

from __future__ import annotations

import logging

import numpy as np

from planpulse.core.models import Project, Team
from planpulse.planning.models import (
    CategoryCount,
    CategoryCoverage,
    CoverageRecommendations,
    GapPriority,
    GapRecommendations,
    PrioritizedSkill,
    ProjectSkill,
    RequiredSkill,
    Recommendation,
    Skill,
    SkillCoverageEntry,
    SkillCoverageReport,
    SkillGap,
    SkillGapAnalysis,
    SkillMatch,
    Solution,
    TeamAssessment,
    TeamFilterResult,
    TeamProjectCompatibility,
    TeamRecommendation,
)

logger = logging.getLogger(__name__)

CATEGORY_BONUS_PER_SKILL = 0.1
MAX_CATEGORY_BONUS = 0.1
BEST_TEAM_MIN_SCORE = 0.5
CRITICAL_GAP_SHARE = 0.7
IMPORTANT_GAP_SHARE = 0.3
WELL_COVERED_SHARE = 0.3
CATEGORY_ATTENTION_PERCENT = 60.0
CATEGORY_ATTENTION_TEAMS = 1.5


def get_project_required_skills(
    project: Project,
    project_skills: list[ProjectSkill],
    solutions: list[Solution],
    skills: list[Skill],
) -> list[RequiredSkill]:
    """Skills a project needs, project-specific ones first.

    A skill listed both on the project and on one of its solutions is
    reported once with source "project". Unknown skill ids are ignored.
    """
    sources: dict[str, str] = {}
    for ps in project_skills:
        if ps.project_id == project.id:
            sources.setdefault(ps.skill_id, "project")

    solutions_by_id = {s.id: s for s in solutions}
    for solution_id in project.solution_ids:
        solution = solutions_by_id.get(solution_id)
        if solution is None:
            continue
        for skill_id in solution.skills:
            sources.setdefault(skill_id, "solution")

    skills_by_id = {s.id: s for s in skills}
    required: list[RequiredSkill] = []
    for skill_id, source in sources.items():
        skill = skills_by_id.get(skill_id)
        if skill is None:
            continue
        required.append(RequiredSkill(
            skill_id=skill.id,
            skill_name=skill.name,
            category=skill.category,
            source=source,
        ))
    return required


def calculate_team_project_compatibility(
    team: Team,
    project: Project,
    project_skills: list[ProjectSkill],
    solutions: list[Solution],
    skills: list[Skill],
) -> TeamProjectCompatibility:
    """Score how well ``team`` covers the skills ``project`` needs.

    Score = exact matches / required, plus 0.1 per category-only match
    divided by required (bonus capped at 0.1), capped at 1. A project with
    no required skills scores 0.
    """
    required = get_project_required_skills(project, project_skills, solutions, skills)
    skills_by_id = {s.id: s for s in skills}
    team_skill_ids = set(team.target_skills)
    team_categories = {
        skills_by_id[sid].category for sid in team.target_skills if sid in skills_by_id
    }

    matches: list[SkillMatch] = []
    distribution: dict[str, CategoryCount] = {}
    exact = 0
    category_only = 0

    for req in required:
        counts = distribution.setdefault(req.category, CategoryCount())
        counts.required += 1
        has_skill = req.skill_id in team_skill_ids
        if has_skill:
            match_type = "exact"
            exact += 1
            counts.matched += 1
        elif req.category in team_categories:
            match_type = "category"
            category_only += 1
        else:
            match_type = "missing"
        matches.append(SkillMatch(
            skill_id=req.skill_id,
            skill_name=req.skill_name,
            category=req.category,
            team_has_skill=has_skill,
            match_type=match_type,
        ))

    total = len(required)
    gap = total - exact
    score = 0.0
    if total:
        bonus = min(MAX_CATEGORY_BONUS, category_only * CATEGORY_BONUS_PER_SKILL / total)
        score = min(1.0, exact / total + bonus)

    recommendation, reasoning = _grade(score, gap)

    strong = [c for c, n in distribution.items() if n.required and n.matched == n.required]
    weak = [c for c, n in distribution.items() if n.required and n.matched == 0]
    if strong:
        reasoning.append(f"Strong in: {', '.join(strong)}")
    if weak:
        reasoning.append(f"Needs development in: {', '.join(weak)}")

    return TeamProjectCompatibility(
        team_id=team.id,
        project_id=project.id,
        compatibility_score=score,
        skill_matches=matches,
        skills_matched=exact,
        skills_required=total,
        skills_gap=gap,
        category_distribution=distribution,
        recommendation=recommendation,
        reasoning=reasoning,
    )


def _grade(score: float, gap: int) -> tuple[Recommendation, list[str]]:
    percent = round(score * 100)
    if score >= 0.9:
        return "excellent", [f"High skill match ({percent}%)"]
    if score >= 0.7:
        return "good", [f"Good skill compatibility ({percent}%)"]
    if score >= 0.5:
        reasoning = [f"Moderate skill match ({percent}%)"]
        if gap > 0:
            reasoning.append(f"{gap} skill gap{'s' if gap > 1 else ''} need addressing")
        return "fair", reasoning
    return "poor", [
        f"Low skill compatibility ({percent}%)",
        f"{gap} critical skills missing",
    ]


def analyze_project_skill_gaps(
    project: Project,
    teams: list[Team],
    project_skills: list[ProjectSkill],
    solutions: list[Solution],
    skills: list[Skill],
) -> SkillGapAnalysis:
    """Compare every team against the project and summarise the gaps.

    Gap priority depends on the share of teams missing the skill: at least
    70% is critical, at least 30% important, otherwise nice-to-have.
    Critical gaps are hiring needs; important gaps missing in more than one
    team are training needs. With no teams there is no best team and no gap.
    """
    required = get_project_required_skills(project, project_skills, solutions, skills)
    compatibilities = [
        calculate_team_project_compatibility(team, project, project_skills, solutions, skills)
        for team in teams
    ]

    assessments: list[TeamAssessment] = []
    gaps: dict[str, SkillGap] = {}
    for team, compat in zip(teams, compatibilities):
        missing = [m for m in compat.skill_matches if m.match_type == "missing"]
        assessments.append(TeamAssessment(
            team_id=team.id,
            team_name=team.name,
            compatibility=compat,
            missing_skills=[m.skill_name for m in missing],
            strengths=[m.skill_name for m in compat.skill_matches if m.match_type == "exact"],
        ))
        for m in missing:
            gap = gaps.setdefault(m.skill_id, SkillGap(
                skill_name=m.skill_name, category=m.category, priority="important",
            ))
            gap.teams_needing.append(team.name)

    for gap in gaps.values():
        gap.priority = _gap_priority(len(gap.teams_needing), len(teams))

    best_team: str | None = None
    if compatibilities:
        # First team wins ties.
        best = max(compatibilities, key=lambda c: c.compatibility_score)
        if best.compatibility_score > BEST_TEAM_MIN_SCORE:
            best_team = best.team_id

    skill_gaps = list(gaps.values())
    priority_by_id = {skill_id: gap.priority for skill_id, gap in gaps.items()}

    logger.debug(
        "Skill gaps for project %s: %d required, %d gaps across %d teams",
        project.id, len(required), len(skill_gaps), len(teams),
    )

    return SkillGapAnalysis(
        project_id=project.id,
        project_name=project.name,
        required_skills=[
            PrioritizedSkill(
                skill_id=r.skill_id,
                skill_name=r.skill_name,
                category=r.category,
                priority=priority_by_id.get(r.skill_id, "nice-to-have"),
            )
            for r in required
        ],
        available_teams=assessments,
        recommendations=GapRecommendations(
            best_team=best_team,
            skill_gaps=skill_gaps,
            training_needs=[
                g.skill_name for g in skill_gaps
                if g.priority == "important" and len(g.teams_needing) > 1
            ],
            hiring_needs=[g.skill_name for g in skill_gaps if g.priority == "critical"],
        ),
    )


def _gap_priority(teams_needing: int, team_count: int) -> GapPriority:
    if teams_needing >= team_count * CRITICAL_GAP_SHARE:
        return "critical"
    if teams_needing >= team_count * IMPORTANT_GAP_SHARE:
        return "important"
    return "nice-to-have"


def filter_teams_by_skills(
    teams: list[Team],
    required_skill_ids: list[str],
    skills: list[Skill],
    min_compatibility_score: float = 0.3,
) -> list[TeamFilterResult]:
    """Teams covering at least ``min_compatibility_score`` of the skills,
    best first. With no required skills every team qualifies with score 1.
    """
    if not required_skill_ids:
        return [
            TeamFilterResult(team_id=t.id, team_name=t.name, compatibility_score=1.0)
            for t in teams
        ]

    names = {s.id: s.name for s in skills}
    results: list[TeamFilterResult] = []
    for team in teams:
        owned = set(team.target_skills)
        matching = [sid for sid in required_skill_ids if sid in owned]
        score = len(matching) / len(required_skill_ids)
        if score < min_compatibility_score:
            continue
        results.append(TeamFilterResult(
            team_id=team.id,
            team_name=team.name,
            compatibility_score=score,
            matching_skills=[names[sid] for sid in matching if sid in names],
        ))
    results.sort(key=lambda r: r.compatibility_score, reverse=True)
    return results


def analyze_skill_coverage(teams: list[Team], skills: list[Skill]) -> SkillCoverageReport:
    """How many teams hold each skill, per skill and per category.

    A skill is well covered when at least max(2, 30% of teams) hold it and
    at risk when at most one does. Categories below 60% coverage or 1.5
    teams per skill need attention.
    """
    if not skills:
        return SkillCoverageReport()

    # coverage[i, j] is True when team i holds skill j.
    coverage = np.array(
        [[s.id in set(t.target_skills) for s in skills] for t in teams],
        dtype=bool,
    ).reshape(len(teams), len(skills))
    counts = coverage.sum(axis=0)
    well_covered_min = max(2.0, len(teams) * WELL_COVERED_SHARE)

    entries = [
        SkillCoverageEntry(
            skill_id=skill.id,
            skill_name=skill.name,
            category=skill.category,
            team_ids=[teams[i].id for i in np.flatnonzero(coverage[:, j])],
            coverage_count=int(counts[j]),
            is_well_covered=bool(counts[j] >= well_covered_min),
            is_at_risk=bool(counts[j] <= 1),
        )
        for j, skill in enumerate(skills)
    ]

    categories: dict[str, CategoryCoverage] = {}
    for category in dict.fromkeys(s.category for s in skills):
        in_category = np.array([s.category == category for s in skills])
        cat_counts = counts[in_category]
        covered = int((cat_counts > 0).sum())
        categories[category] = CategoryCoverage(
            total_skills=int(in_category.sum()),
            covered_skills=covered,
            coverage_percentage=covered / len(cat_counts) * 100,
            average_teams_per_skill=float(cat_counts.mean()),
        )

    covered_total = int((counts > 0).sum())
    return SkillCoverageReport(
        total_skills=len(skills),
        covered_skills=covered_total,
        coverage_percentage=covered_total / len(skills) * 100,
        skill_coverage=entries,
        category_analysis=categories,
        recommendations=CoverageRecommendations(
            skills_at_risk=[e.skill_name for e in entries if e.is_at_risk],
            skills_well_covered=[e.skill_name for e in entries if e.is_well_covered],
            categories_needing_attention=[
                c for c, data in categories.items()
                if data.coverage_percentage < CATEGORY_ATTENTION_PERCENT
                or data.average_teams_per_skill < CATEGORY_ATTENTION_TEAMS
            ],
        ),
    )


def recommend_teams_for_project(
    project: Project,
    teams: list[Team],
    project_skills: list[ProjectSkill],
    solutions: list[Solution],
    skills: list[Skill],
    max_recommendations: int = 3,
) -> list[TeamRecommendation]:
    """Top teams for a project, ranked from 1, each with a short verdict."""
    ranked = sorted(
        (
            (team, calculate_team_project_compatibility(
                team, project, project_skills, solutions, skills,
            ))
            for team in teams
        ),
        key=lambda pair: pair[1].compatibility_score,
        reverse=True,
    )[:max_recommendations]

    recommendations: list[TeamRecommendation] = []
    for index, (team, compat) in enumerate(ranked):
        recommendations.append(TeamRecommendation(
            team_id=team.id,
            team_name=team.name,
            compatibility=compat,
            rank=index + 1,
            recommendation=_verdict(compat.compatibility_score, first=index == 0),
        ))
    return recommendations


def _verdict(score: float, first: bool) -> str:
    if first:
        if score > 0.8:
            return "Excellent match - highly recommended"
        if score > 0.6:
            return "Good match with some skill gaps"
        return "Best available option but requires skill development"
    if score > 0.7:
        return "Strong alternative choice"
    if score > 0.5:
        return "Viable option with training"
    return "Requires significant skill development"
