# src/extraction/models.py — v2
"""Extraction models: ProcessingOptions, SectionDefinition, SteerCoTemplate."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from planpulse.core.models import CommentarySection


class ProcessingOptions(BaseModel):
    """Per-call extraction options."""

    language: str = "en"
    document_type: str = "steering-committee"
    extraction_mode: Literal["quick", "comprehensive"] = "comprehensive"
    confidence_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    template_id: str = "standard-steerco"


class SectionDefinition(BaseModel):
    """A document section recognised by its heading keywords.

    Only sections with a commentary_section produce commentary entities;
    the others just close the previous section.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    keywords: list[str]
    commentary_section: CommentarySection | None = None


class SteerCoTemplate(BaseModel):
    """Regex patterns and sections for one steering-committee layout.

    Patterns are compiled with IGNORECASE and MULTILINE. Capture groups:
      - project_status: (name, status word)
      - risks: (description)
      - financials: (kind, currency symbol, amount, k/m multiplier)
      - milestones: (name, date)
      - team_updates: (team name, utilization percent)
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    project_status_patterns: list[str] = Field(default_factory=list)
    risk_patterns: list[str] = Field(default_factory=list)
    financial_patterns: list[str] = Field(default_factory=list)
    milestone_patterns: list[str] = Field(default_factory=list)
    team_update_patterns: list[str] = Field(default_factory=list)
    sections: list[SectionDefinition] = Field(default_factory=list)
