# src/extraction/heuristics.py — v1
"""Line-level heuristics used by the entity extractor.

Everything here works on a single matched line (or a short window of text)
and never raises on odd input: unknown values come back as None or as the
documented default.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from planpulse.core.models import (
    ImpactLevel,
    MilestoneStatus,
    ProbabilityLevel,
    RAGStatus,
    Sentiment,
)
from planpulse.extraction.models import SectionDefinition, SteerCoTemplate

STATUS_SYNONYMS: dict[str, RAGStatus] = {
    "red": "red",
    "amber": "amber",
    "yellow": "amber",
    "orange": "amber",
    "green": "green",
    "blue": "blue",
    "complete": "complete",
    "completed": "complete",
    "done": "complete",
    "finished": "complete",
    "ontrack": "green",
    "atrisk": "amber",
    "delayed": "red",
    "blocked": "red",
    "critical": "red",
}

POSITIVE_WORDS = ("good", "great", "excellent", "success", "complete", "on track", "ahead")
NEGATIVE_WORDS = ("bad", "poor", "failed", "delayed", "behind", "risk", "issue", "problem")

# Checked in order; the first hit wins.
RISK_CATEGORIES: list[tuple[str, re.Pattern[str]]] = [
    ("external", re.compile(r"vendor|supplier|third[- ]party|regulat|external|market", re.I)),
    ("financial", re.compile(r"budget|cost|funding|spend|financial", re.I)),
    ("resource", re.compile(r"resourc|staff|capacity|hiring|headcount|skill", re.I)),
    ("schedule", re.compile(r"delay|schedule|timeline|deadline|slip", re.I)),
    ("technical", re.compile(r"technical|integration|migration|performance|api|database|security", re.I)),
]

DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
)

_PROJECT_MENTION_RE = re.compile(r"\b((?:Project|Epic)[ \t]+[A-Z][\w-]*)")
_MENTION_STOPWORDS = {"status", "update", "updates", "summary", "overview", "budget", "team"}
_NAME_NOISE = {"project", "epic", "the", "programme", "program"}
_UNDERLINE_RE = re.compile(r"[=\-_~]{3,}")


def normalize_status(raw: str) -> RAGStatus | None:
    """Map a status word or phrase ('On Track', 'at-risk') to a RAG value."""
    key = re.sub(r"[^a-z]", "", raw.lower())
    return STATUS_SYNONYMS.get(key)


def calculate_confidence(match_text: str, entity_type: str) -> float:
    """Score a match from its context clues, capped at 1.0.

    Base 0.5, plus 0.1 for a colon, 0.05 for a dash, 0.05 for an uppercase
    letter, 0.1 for a digit, and 0.2 for an entity-specific marker.
    """
    confidence = 0.5
    if ":" in match_text:
        confidence += 0.1
    if "-" in match_text:
        confidence += 0.05
    if re.search(r"[A-Z]", match_text):
        confidence += 0.05
    if re.search(r"\d", match_text):
        confidence += 0.1

    if entity_type == "project_status" and re.search(r"project|epic", match_text, re.I):
        confidence += 0.2
    elif entity_type == "financial" and re.search(r"[$£€]", match_text):
        confidence += 0.2
    elif entity_type == "risk" and re.search(r"risk|issue|problem", match_text, re.I):
        confidence += 0.2

    return round(min(confidence, 1.0), 4)


def status_reason(segment: str) -> str | None:
    """Text after 'because', 'due to' or 'reason:' in a status line."""
    match = re.search(r"(?:because|due to|reason)[ \t]*:?[ \t]*([^\n.]+)", segment, re.I)
    return match.group(1).strip() if match else None


def impact_level(segment: str) -> ImpactLevel:
    explicit = re.search(
        r"\b(critical|high|medium|low)[ \t]+impact\b"
        r"|\bimpact[ \t]*:?[ \t]*(critical|high|medium|low)\b",
        segment,
        re.I,
    )
    if explicit:
        return (explicit.group(1) or explicit.group(2)).lower()  # type: ignore[return-value]
    if re.search(r"critical|severe|major", segment, re.I):
        return "critical"
    if re.search(r"\bhigh\b|significant", segment, re.I):
        return "high"
    if re.search(r"\bmedium\b|moderate", segment, re.I):
        return "medium"
    return "low"


def probability_level(segment: str) -> ProbabilityLevel | None:
    explicit = re.search(
        r"\b(high|medium|low)[ \t]+(?:probability|likelihood)\b"
        r"|\b(?:probability|likelihood)[ \t]*:?[ \t]*(high|medium|low)\b",
        segment,
        re.I,
    )
    if explicit:
        return (explicit.group(1) or explicit.group(2)).lower()  # type: ignore[return-value]
    if re.search(r"\bunlikely\b", segment, re.I):
        return "low"
    if re.search(r"\blikely\b|\bprobable\b", segment, re.I):
        return "high"
    if re.search(r"\bpossible\b", segment, re.I):
        return "medium"
    return None


def mitigation(segment: str) -> str | None:
    match = re.search(
        r"(?:mitigation|action|plan)[ \t]*:[ \t]*([^\n.]+?)(?=[ \t]+[-–][ \t]+|[.\n]|$)",
        segment,
        re.I,
    )
    if not match:
        return None
    return match.group(1).strip() or None


def risk_category(segment: str) -> str:
    for category, pattern in RISK_CATEGORIES:
        if pattern.search(segment):
            return category
    return "operational"


def milestone_status(segment: str) -> MilestoneStatus:
    if re.search(r"complete|done|finished|delivered|achieved", segment, re.I):
        return "completed"
    if re.search(r"delayed|late|overdue|slipped|postponed", segment, re.I):
        return "delayed"
    if re.search(r"progress|working|ongoing|underway|started", segment, re.I):
        return "in-progress"
    return "not-started"


def normalize_date(raw: str) -> date | None:
    """Parse the date formats seen in steering packs; None if unparseable."""
    cleaned = re.sub(r"[ \t]+", " ", raw.strip())
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def analyze_sentiment(text: str) -> Sentiment:
    lowered = text.lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in lowered)
    negative = sum(1 for word in NEGATIVE_WORDS if word in lowered)
    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def project_mentions(text: str) -> list[str]:
    """'Project X' / 'Epic X' mentions in order of first appearance."""
    seen: dict[str, str] = {}
    for match in _PROJECT_MENTION_RE.finditer(text):
        name = match.group(1)
        last_word = name.split()[-1].lower()
        if last_word in _MENTION_STOPWORDS:
            continue
        seen.setdefault(name.casefold(), name)
    return list(seen.values())


def find_related_project(line: str, project_names: list[str]) -> str | None:
    """Project a line talks about: a full-name mention, else a shared token.

    'Alpha team demonstrates...' relates to 'Project Alpha' through the
    distinctive token 'alpha'.
    """
    lowered = line.casefold()
    for name in project_names:
        if name.casefold() in lowered:
            return name

    tokens = set(re.findall(r"[a-z0-9]+", lowered))
    for name in project_names:
        distinctive = [
            t for t in re.findall(r"[a-z0-9]+", name.casefold()) if t not in _NAME_NOISE
        ]
        if distinctive and any(t in tokens for t in distinctive):
            return name
    return None


def nearest_preceding_project(text: str, position: int, project_names: list[str]) -> str | None:
    """Last known project mentioned before ``position``, if any."""
    window = text[:position].casefold()
    best: tuple[int, str] | None = None
    for name in project_names:
        found = window.rfind(name.casefold())
        if found >= 0 and (best is None or found > best[0]):
            best = (found, name)
    return best[1] if best else None


def is_underline(line: str) -> bool:
    return bool(_UNDERLINE_RE.fullmatch(line.strip()))


def match_section(line: str, template: SteerCoTemplate) -> SectionDefinition | None:
    lowered = line.strip().lower()
    for section in template.sections:
        if any(re.search(r"\b" + re.escape(keyword), lowered) for keyword in section.keywords):
            return section
    return None


def classify_heading(
    line: str,
    next_line: str | None,
    template: SteerCoTemplate,
) -> tuple[bool, SectionDefinition | None]:
    """Decide whether ``line`` is a section heading, and which section.

    Underlined lines and lines ending in a colon are headings even when no
    section keyword matches (they close the current section). Short bare
    lines only count when they name a known section.

    Returns:
        (is_heading, section) where section may be None for an unknown
        heading.
    """
    stripped = line.strip()
    if not stripped or len(stripped) > 60 or is_underline(stripped):
        return False, None

    section = match_section(stripped, template)
    underlined = next_line is not None and is_underline(next_line)
    if underlined or stripped.endswith(":"):
        return True, section

    bare = (
        len(stripped.split()) <= 4
        and ":" not in stripped
        and not re.search(r"\d", stripped)
    )
    if bare and section is not None:
        return True, section
    return False, None
