# src/client/__init__.py — v1
"""Remote Monitor client: abstract interface, HTTP implementation, factory."""
