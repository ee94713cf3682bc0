# src/extraction/entity_extractor.py — v1
"""Entity extractor — OCR'd steering-committee text to OCRExtractionResult.

Regex patterns come from the selected SteerCoTemplate; the per-line
heuristics (status synonyms, impact, dates, sentiment) live in
extraction.heuristics. Extraction never fails on odd text: lines that do
not parse are simply not turned into entities.

Quick mode only looks for project statuses, risks and milestones.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import TypeVar

from planpulse.config.settings import Settings
from planpulse.core.models import (
    ExtractedCommentary,
    ExtractedFinancial,
    ExtractedMilestone,
    ExtractedProjectStatus,
    ExtractedRisk,
    ExtractedTeamUpdate,
    ExtractionMetadata,
    OCRExtractionResult,
)
from planpulse.extraction import heuristics
from planpulse.extraction.models import ProcessingOptions, SteerCoTemplate
from planpulse.extraction.templates import DATE_PATTERN, get_template
from planpulse.logging.context import set_stage_context

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FLAGS = re.IGNORECASE | re.MULTILINE
_CURRENCIES = {"$": "USD", "£": "GBP", "€": "EUR"}
_MULTIPLIERS = {"k": 1_000.0, "m": 1_000_000.0}
_FINANCIAL_FIELDS = {
    "budget": "budget_amount",
    "actual": "actual_amount",
    "spent": "actual_amount",
    "forecast": "forecast_amount",
    "projected": "forecast_amount",
}
_NOT_A_PROJECT = {"project", "epic", "overall", "rag", "status", "milestone", "team"}
_ACTUAL_DATE_RE = re.compile(
    r"(?:completed|done|finished|delivered|achieved)[ \t]+(?:on[ \t]+)?" + DATE_PATTERN,
    re.IGNORECASE,
)
_MIN_COMMENTARY_LENGTH = 20


def default_options(settings: Settings | None = None) -> ProcessingOptions:
    """ProcessingOptions built from the extraction settings."""
    settings = settings or Settings()
    return ProcessingOptions(
        extraction_mode=settings.extraction_mode,
        confidence_threshold=settings.extraction_confidence_threshold,
        template_id=settings.extraction_template,
    )


def extract_entities_from_text(
    raw_text: str,
    options: ProcessingOptions | None = None,
    settings: Settings | None = None,
) -> OCRExtractionResult:
    """Extract project statuses, risks, financials, milestones, team updates
    and commentary from steering-committee text.

    Args:
        raw_text: OCR output of one document.
        options: Extraction options. Built from settings if None.
        settings: Used only when options is None.

    Returns:
        OCRExtractionResult with entities under the confidence threshold
        dropped and duplicates removed.

    Raises:
        KeyError: If options.template_id names no built-in template.
    """
    start = time.perf_counter()
    options = options or default_options(settings)
    template = get_template(options.template_id)
    set_stage_context("extraction")
    text = raw_text or ""

    statuses = _extract_project_statuses(text, template)
    project_names = _known_projects(text, statuses)
    risks = _extract_risks(text, template, project_names)
    milestones = _extract_milestones(text, template, project_names)

    financials: list[ExtractedFinancial] = []
    team_updates: list[ExtractedTeamUpdate] = []
    commentary: list[ExtractedCommentary] = []
    if options.extraction_mode == "comprehensive":
        financials = _extract_financials(text, template, project_names)
        team_updates = _extract_team_updates(text, template)
        commentary = _extract_commentary(text, template, project_names)

    threshold = options.confidence_threshold
    result = OCRExtractionResult(
        raw_text=text,
        project_statuses=_dedupe(_above(statuses, threshold), lambda e: e.project_name),
        risks=_dedupe(_above(risks, threshold), lambda e: e.risk_description),
        financials=consolidate_financials(_above(financials, threshold)),
        milestones=_dedupe(_above(milestones, threshold), lambda e: e.milestone_name),
        team_updates=_dedupe(_above(team_updates, threshold), lambda e: e.team_name),
        commentary=_dedupe(_above(commentary, threshold), lambda e: e.content),
    )

    entities = result.all_entities()
    total_confidence = (
        round(sum(e.confidence for e in entities) / len(entities), 4) if entities else 0.0
    )
    elapsed_ms = (time.perf_counter() - start) * 1000
    result = result.model_copy(update={
        "extraction_metadata": ExtractionMetadata(
            total_confidence=total_confidence,
            processing_time_ms=round(elapsed_ms, 3),
            extracted_entities=len(entities),
            document_type=options.document_type,
            extracted_at=datetime.now(timezone.utc),
        ),
    })

    logger.info(
        "Extracted %d entities (%s mode, template %s) in %.1f ms, mean confidence %.2f",
        len(entities), options.extraction_mode, template.id, elapsed_ms, total_confidence,
    )
    return result


# --- Per-type extraction ----------------------------------------------------


def _extract_project_statuses(text: str, template: SteerCoTemplate) -> list[ExtractedProjectStatus]:
    found: list[ExtractedProjectStatus] = []
    for pattern in _compile(template.project_status_patterns):
        for match in pattern.finditer(text):
            name = _clean_project_name(match.group(1))
            status = heuristics.normalize_status(match.group(2))
            if name is None or status is None:
                continue
            matched = match.group(0).strip()
            found.append(ExtractedProjectStatus(
                text=matched,
                confidence=heuristics.calculate_confidence(matched, "project_status"),
                project_name=name,
                status=status,
                rag_reason=heuristics.status_reason(_rest_of_line(text, match.end())),
            ))
    return found


def _extract_risks(
    text: str,
    template: SteerCoTemplate,
    project_names: list[str],
) -> list[ExtractedRisk]:
    found: list[ExtractedRisk] = []
    for pattern in _compile(template.risk_patterns):
        for match in pattern.finditer(text):
            description = match.group(1).strip()
            if len(description) < 3:
                continue
            line = _line_at(text, match.start())
            matched = match.group(0).strip()
            found.append(ExtractedRisk(
                text=matched,
                confidence=heuristics.calculate_confidence(matched, "risk"),
                risk_description=description,
                impact=heuristics.impact_level(line),
                probability=heuristics.probability_level(line),
                mitigation=heuristics.mitigation(line),
                category=heuristics.risk_category(line),
                project_name=heuristics.find_related_project(description, project_names),
            ))
    return found


def _extract_financials(
    text: str,
    template: SteerCoTemplate,
    project_names: list[str],
) -> list[ExtractedFinancial]:
    found: list[ExtractedFinancial] = []
    for pattern in _compile(template.financial_patterns):
        for match in pattern.finditer(text):
            kind, symbol, amount, multiplier = match.groups()
            line = _line_at(text, match.start())
            project = (
                heuristics.find_related_project(line, project_names)
                or heuristics.nearest_preceding_project(text, match.start(), project_names)
            )
            if project is None:
                logger.debug("Financial figure without a project: %r", match.group(0))
                continue
            value = float(amount.replace(",", ""))
            if multiplier:
                value *= _MULTIPLIERS[multiplier.lower()]
            matched = match.group(0).strip()
            found.append(ExtractedFinancial(
                text=matched,
                confidence=heuristics.calculate_confidence(matched, "financial"),
                project_name=project,
                currency=_CURRENCIES.get(symbol or "", "USD"),
                **{_FINANCIAL_FIELDS[kind.lower()]: value},
            ))
    return found


def _extract_milestones(
    text: str,
    template: SteerCoTemplate,
    project_names: list[str],
) -> list[ExtractedMilestone]:
    found: list[ExtractedMilestone] = []
    for pattern in _compile(template.milestone_patterns):
        for match in pattern.finditer(text):
            name = match.group(1).strip(" \t-–:")
            if not name:
                continue
            rest = _rest_of_line(text, match.end())
            actual = _ACTUAL_DATE_RE.search(rest)
            matched = match.group(0).strip()
            found.append(ExtractedMilestone(
                text=matched,
                confidence=heuristics.calculate_confidence(matched, "milestone"),
                milestone_name=name,
                project_name=heuristics.find_related_project(name, project_names),
                target_date=heuristics.normalize_date(match.group(2)),
                actual_date=heuristics.normalize_date(actual.group(1)) if actual else None,
                status=heuristics.milestone_status(rest),
            ))
    return found


def _extract_team_updates(text: str, template: SteerCoTemplate) -> list[ExtractedTeamUpdate]:
    found: list[ExtractedTeamUpdate] = []
    for pattern in _compile(template.team_update_patterns):
        for match in pattern.finditer(text):
            rest = re.sub(
                r"^[ \t]*(?:utili[sz]ation|capacity|allocation)?[ \t]*[-–:.,]*[ \t]*",
                "",
                _rest_of_line(text, match.end()),
                flags=re.IGNORECASE,
            ).strip()
            matched = match.group(0).strip()
            found.append(ExtractedTeamUpdate(
                text=matched,
                confidence=heuristics.calculate_confidence(matched, "team_update"),
                team_name=match.group(1).strip(),
                utilization=float(match.group(2)),
                commentary=rest or None,
            ))
    return found


def _extract_commentary(
    text: str,
    template: SteerCoTemplate,
    project_names: list[str],
) -> list[ExtractedCommentary]:
    """Lines under a commentary heading (progress, achievements, next steps)."""
    found: list[ExtractedCommentary] = []
    lines = text.splitlines()
    current = None

    for i, line in enumerate(lines):
        next_line = lines[i + 1] if i + 1 < len(lines) else None
        is_heading, section = heuristics.classify_heading(line, next_line, template)
        if is_heading:
            current = section
            continue
        if current is None or current.commentary_section is None:
            continue

        stripped = line.strip()
        if heuristics.is_underline(stripped):
            continue
        content = re.sub(r"^[-*•·][ \t]*", "", stripped)
        if len(content) < _MIN_COMMENTARY_LENGTH:
            continue
        found.append(ExtractedCommentary(
            text=stripped,
            confidence=heuristics.calculate_confidence(stripped, "commentary"),
            project_name=heuristics.find_related_project(content, project_names),
            section=current.commentary_section,
            content=content,
            sentiment=heuristics.analyze_sentiment(content),
        ))
    return found


# --- Post-processing --------------------------------------------------------


def consolidate_financials(financials: list[ExtractedFinancial]) -> list[ExtractedFinancial]:
    """Merge figures for the same project (case-insensitive) into one entity.

    Later figures of the same kind overwrite earlier ones; confidence is the
    highest seen.
    """
    merged: dict[str, ExtractedFinancial] = {}
    for financial in financials:
        key = financial.project_name.casefold()
        existing = merged.get(key)
        if existing is None:
            merged[key] = financial
            continue
        amounts = {
            field: getattr(financial, field)
            for field in ("budget_amount", "actual_amount", "forecast_amount")
            if getattr(financial, field) is not None
        }
        merged[key] = existing.model_copy(update={
            **amounts,
            "confidence": max(existing.confidence, financial.confidence),
        })
    return list(merged.values())


def _dedupe(entities: Iterable[T], key: Callable[[T], str]) -> list[T]:
    seen: set[str] = set()
    unique: list[T] = []
    for entity in entities:
        k = key(entity).casefold()
        if k in seen:
            continue
        seen.add(k)
        unique.append(entity)
    return unique


def _above(entities: list[T], threshold: float) -> list[T]:
    return [e for e in entities if e.confidence >= threshold]  # type: ignore[attr-defined]


def _known_projects(text: str, statuses: list[ExtractedProjectStatus]) -> list[str]:
    names: dict[str, str] = {}
    for status in statuses:
        names.setdefault(status.project_name.casefold(), status.project_name)
    for mention in heuristics.project_mentions(text):
        names.setdefault(mention.casefold(), mention)
    return list(names.values())


def _clean_project_name(raw: str) -> str | None:
    name = raw.strip(" \t-–:")
    name = re.sub(r"[ \t]+(?:rag[ \t]+)?(?:status|rag)$", "", name, flags=re.IGNORECASE)
    name = name.strip()
    if not name or name.casefold() in _NOT_A_PROJECT:
        return None
    return name


def _compile(patterns: list[str]) -> list[re.Pattern[str]]:
    return [re.compile(p, _FLAGS) for p in patterns]


def _line_at(text: str, position: int) -> str:
    start = text.rfind("\n", 0, position) + 1
    end = text.find("\n", position)
    return text[start:] if end < 0 else text[start:end]


def _rest_of_line(text: str, position: int) -> str:
    end = text.find("\n", position)
    return text[position:] if end < 0 else text[position:end]
