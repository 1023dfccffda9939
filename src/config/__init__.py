# src/config/__init__.py — v1
"""Settings and input document loaders."""
