# src/extraction/templates.py — v1
"""Built-in steering-committee templates.

A template bundles the regex patterns used to pull each entity type out of
OCR text plus the section headings used to classify commentary. Additional
layouts are added to BUILTIN_STEERCO_TEMPLATES.
"""

from __future__ import annotations

from planpulse.extraction.models import SectionDefinition, SteerCoTemplate

DEFAULT_TEMPLATE_ID = "standard-steerco"

STATUS_WORDS = (
    r"red|amber|yellow|orange|green|blue|completed?|done|finished"
    r"|on[ \t-]?track|at[ \t-]?risk|delayed|blocked|critical"
)

DATE_PATTERN = (
    r"(\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}/\d{1,2}/\d{4}"
    r"|\d{1,2}[ \t]+[A-Za-z]{3,9}[ \t]+\d{4}"
    r"|[A-Za-z]{3,9}[ \t]+\d{1,2},?[ \t]+\d{4})"
)

_STANDARD_STATUS = [
    # "Project Alpha: Green", "Epic Checkout - at risk"
    r"^[ \t]*((?:project|epic)[ \t]+[^:\n]+?)[ \t]*[:\-–][ \t]*(" + STATUS_WORDS + r")\b",
    # "Customer Portal status: Amber", "Data Platform RAG: red"
    r"^[ \t]*([^:\n]{3,80}?)[ \t]+(?:status|rag(?:[ \t]+status)?)[ \t]*[:\-–][ \t]*("
    + STATUS_WORDS + r")\b",
]

_STANDARD_RISKS = [
    # "Risk: Vendor delay - High impact - Mitigation: escalate"
    r"^[ \t]*(?:risk|issue|problem)[ \t]*\d*[ \t]*:[ \t]*(.+?)(?=[ \t]+[-–][ \t]+|[ \t]*$)",
]

_STANDARD_FINANCIALS = [
    # "Budget: $150,000", "Spent 1.2m", "Forecast: €210k"
    r"\b(budget|actual|spent|forecast|projected)[ \t]*:?[ \t]*([$£€])?[ \t]*"
    r"(\d[\d,]*(?:\.\d+)?)[ \t]*([km])?\b",
]

_STANDARD_MILESTONES = [
    # "Milestone: Alpha MVP due 2024-06-15 - Completed on 2024-06-12"
    r"^[ \t]*milestone[ \t]*\d*[ \t]*:[ \t]*(.+?)[ \t]+"
    r"(?:due|by|target(?:ed)?(?:[ \t]+for)?|planned(?:[ \t]+for)?)[ \t]*:?[ \t]*" + DATE_PATTERN,
]

_STANDARD_TEAMS = [
    # "Team Engineering: 85% utilization", "Platform Team capacity: 70%"
    r"^[ \t]*(team[ \t]+[^:\n%]+?|[^:\n%]+?[ \t]+team)"
    r"(?:[ \t]+(?:utili[sz]ation|capacity|allocation))?[ \t]*:[ \t]*(\d{1,3}(?:\.\d+)?)[ \t]*%",
]

# Commentary sections come first so "Progress Commentary" is not read as a
# status heading.
_STANDARD_SECTIONS = [
    SectionDefinition(
        name="Progress",
        keywords=["progress", "commentary", "notes", "comments"],
        commentary_section="progress",
    ),
    SectionDefinition(
        name="Achievements",
        keywords=["achievement", "highlight", "accomplishment"],
        commentary_section="achievements",
    ),
    SectionDefinition(
        name="Next Steps",
        keywords=["next steps", "next-steps", "action items", "actions"],
        commentary_section="next-steps",
    ),
    SectionDefinition(name="Summary", keywords=["summary", "overview"]),
    SectionDefinition(name="Status", keywords=["status", "rag"]),
    SectionDefinition(name="Financials", keywords=["financial", "budget", "cost"]),
    SectionDefinition(name="Risks", keywords=["risk", "issue"]),
    SectionDefinition(name="Milestones", keywords=["milestone", "timeline"]),
    SectionDefinition(
        name="Teams", keywords=["team", "utilization", "utilisation", "resourcing"]
    ),
]

BUILTIN_STEERCO_TEMPLATES: dict[str, SteerCoTemplate] = {
    DEFAULT_TEMPLATE_ID: SteerCoTemplate(
        id=DEFAULT_TEMPLATE_ID,
        name="Standard Steering Committee",
        description="Standard steering committee format with RAG status, risks and milestones",
        project_status_patterns=_STANDARD_STATUS,
        risk_patterns=_STANDARD_RISKS,
        financial_patterns=_STANDARD_FINANCIALS,
        milestone_patterns=_STANDARD_MILESTONES,
        team_update_patterns=_STANDARD_TEAMS,
        sections=_STANDARD_SECTIONS,
    ),
}


def get_template(template_id: str | None = None) -> SteerCoTemplate:
    """Return a built-in template; None selects the standard layout.

    Raises:
        KeyError: If ``template_id`` names no built-in template.
    """
    if template_id is None:
        return BUILTIN_STEERCO_TEMPLATES[DEFAULT_TEMPLATE_ID]
    try:
        return BUILTIN_STEERCO_TEMPLATES[template_id]
    except KeyError:
        known = ", ".join(sorted(BUILTIN_STEERCO_TEMPLATES))
        raise KeyError(f"Unknown extraction template {template_id!r} (known: {known})") from None
