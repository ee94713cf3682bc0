# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for matching thresholds, RAG status tables,
extraction defaults and logging. Every variable takes the PLANPULSE_
prefix, e.g. PLANPULSE_AUTO_APPLY_THRESHOLD=0.85. Dict and list fields are
read as JSON.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RAG_VALUES = ("red", "amber", "green", "blue", "complete")

DEFAULT_RAG_PROJECT_STATUS_MAP: dict[str, str] = {
    "green": "in-progress",
    "amber": "in-progress",
    "red": "in-progress",
    "blue": "on-hold",
    "complete": "completed",
}

DEFAULT_RAG_EPIC_STATUS_MAP: dict[str, str] = {
    "green": "in-progress",
    "amber": "in-progress",
    "red": "in-progress",
    "blue": "todo",
    "complete": "completed",
}

# Position of each internal status on the delivery ladder. Conflict
# severity grows with the distance between two rungs.
DEFAULT_STATUS_SEVERITY: dict[str, int] = {
    "cancelled": 0,
    "not-started": 1,
    "todo": 1,
    "planning": 2,
    "on-hold": 2,
    "in-progress": 3,
    "completed": 4,
}


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from environment and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="PLANPULSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Similarity scorer ===
    similarity_min_score: float = 0.3
    similarity_substring_floor: float = 0.6

    # === Candidate matching ===
    match_confidence_floor: float = 0.5
    auto_apply_threshold: float = 0.8
    epic_fallback_threshold: float = 0.6
    milestone_project_threshold: float = 0.7
    auto_apply_conflict_levels: list[Literal["none", "low", "medium", "high"]] = Field(
        default_factory=lambda: ["none", "low"]
    )

    # === Status tables ===
    rag_project_status_map: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_RAG_PROJECT_STATUS_MAP)
    )
    rag_epic_status_map: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_RAG_EPIC_STATUS_MAP)
    )
    default_project_status: str = "in-progress"
    default_epic_status: str = "in-progress"
    status_severity: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_STATUS_SEVERITY)
    )

    # === Conflict grading ===
    milestone_low_gap_days: int = 7
    milestone_medium_gap_days: int = 30
    utilization_low_gap: float = 10.0
    utilization_medium_gap: float = 25.0
    budget_low_gap_ratio: float = 0.10
    budget_medium_gap_ratio: float = 0.25

    # === Context updates ===
    new_risk_source: str = "steering-committee-ocr"

    # === Extraction ===
    extraction_template: str = "standard-steerco"
    extraction_mode: Literal["quick", "comprehensive"] = "comprehensive"
    extraction_confidence_threshold: float = 0.5

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator(
        "similarity_min_score",
        "similarity_substring_floor",
        "match_confidence_floor",
        "auto_apply_threshold",
        "epic_fallback_threshold",
        "milestone_project_threshold",
        "extraction_confidence_threshold",
    )
    @classmethod
    def validate_unit_interval(cls, v: float, info) -> float:  # noqa: N805
        """Thresholds are confidences and must lie in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"{info.field_name} must be within [0, 1]")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.match_confidence_floor > self.auto_apply_threshold:
            errors.append(
                "MATCH_CONFIDENCE_FLOOR must not exceed AUTO_APPLY_THRESHOLD"
            )

        if self.milestone_low_gap_days > self.milestone_medium_gap_days:
            errors.append(
                "MILESTONE_LOW_GAP_DAYS must not exceed MILESTONE_MEDIUM_GAP_DAYS"
            )

        for table_name in ("rag_project_status_map", "rag_epic_status_map"):
            table: dict[str, str] = getattr(self, table_name)
            unknown = sorted(set(table) - set(RAG_VALUES))
            if unknown:
                errors.append(
                    f"{table_name.upper()} has unknown RAG values: {', '.join(unknown)}"
                )
            unranked = sorted(set(table.values()) - set(self.status_severity))
            if unranked:
                errors.append(
                    f"{table_name.upper()} maps to statuses missing from "
                    f"STATUS_SEVERITY: {', '.join(unranked)}"
                )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-call config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
