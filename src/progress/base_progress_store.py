# src/progress/base_progress_store.py — v1
"""Abstract progress store interface.

One document per (env, cache name) pair. The document is loaded whole,
mutated in memory and replaced whole on save; there are no field-level
writes. A store is owned by a single pipeline run: concurrent runs
against the same pair are unsupported and produce undefined results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from batchmint.core.models import ProgressDocument


class BaseProgressStore(ABC):
    """Unified interface for progress document backends."""

    @abstractmethod
    async def load(self, cache_name: str, env: str) -> ProgressDocument | None:
        """Load the document, or None when no prior run exists."""

    @abstractmethod
    async def save(self, cache_name: str, env: str, document: ProgressDocument) -> None:
        """Atomically replace the stored document."""

    async def load_or_create(self, cache_name: str, env: str) -> ProgressDocument:
        """Load the document, starting an empty one when absent."""
        document = await self.load(cache_name, env)
        if document is None:
            document = ProgressDocument(env=env, cache_name=cache_name)
        return document
