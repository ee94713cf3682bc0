# src/logging/context.py — v2
"""Contextual logging support — attach document_id, session_id, stage to log records.

The CLI and the facade set these so every line logged while a document is
extracted, mapped or applied carries the same identifiers.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per processed document.
_document_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "document_id", default=None
)
_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    document_id: str | None = None
    session_id: str | None = None
    stage: str | None = None
    step: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        document_id=_document_id.get(),
        session_id=_session_id.get(),
        stage=_stage.get(),
        step=_step.get(),
    )


def set_document_context(document_id: str, session_id: str | None = None) -> None:
    """Set document-level context (called once per processed document)."""
    _document_id.set(document_id)
    _session_id.set(session_id)


def set_stage_context(stage: str, step: str | None = None) -> None:
    """Set stage-level context: extraction, mapping or update."""
    _stage.set(stage)
    _step.set(step)


def clear_context() -> None:
    """Reset all context variables."""
    _document_id.set(None)
    _session_id.set(None)
    _stage.set(None)
    _step.set(None)
