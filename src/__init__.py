# src/__init__.py — v1
"""runbook — staged run-book executor for the Monitor deployment manager."""

from runbook.version import __version__

__all__ = ["__version__"]
