# src/__init__.py — v1
"""planpulse: steering-committee reports to planning updates."""

from planpulse.version import __version__

__all__ = ["__version__"]
