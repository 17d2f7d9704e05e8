# src/__init__.py — v1
"""batchmint — resumable asset publishing pipeline."""

from batchmint.version import __version__

__all__ = ["__version__"]
