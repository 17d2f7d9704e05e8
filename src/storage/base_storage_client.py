# src/storage/base_storage_client.py — v1
"""Abstract durable storage client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from batchmint.core.models import StoredFile


class BaseStorageClient(ABC):
    """Unified interface for durable content storage backends."""

    @abstractmethod
    async def upload(self, files: list[StoredFile], manifest: bytes, index: str) -> str:
        """Upload media files plus the rewritten manifest.

        Returns:
            Stable content link of the uploaded manifest.

        Raises:
            StorageError: On any transport or payment failure.
        """
