# src/version.py — v2
"""Package version."""

__version__ = "0.1.0"
