# src/mapping/status_map.py — v1
"""RAG colour to internal status translation.

The tables live in Settings so a deployment can re-map colours without code
changes. Unknown colours fall back to the configured default status.
"""

from __future__ import annotations

from planpulse.config.settings import Settings


def rag_to_project_status(rag_status: str, settings: Settings) -> str:
    """Internal project status implied by a RAG colour."""
    return settings.rag_project_status_map.get(
        rag_status.lower(), settings.default_project_status
    )


def rag_to_epic_status(rag_status: str, settings: Settings) -> str:
    """Internal epic status implied by a RAG colour."""
    return settings.rag_epic_status_map.get(
        rag_status.lower(), settings.default_epic_status
    )


def status_rank(status: str | None, settings: Settings) -> int:
    """Rung of a status on the delivery ladder. Unknown statuses sit at 2."""
    if status is None:
        return 2
    return settings.status_severity.get(status.lower(), 2)
