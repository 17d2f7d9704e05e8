# src/storage/storage_factory.py — v1
"""Factory: instantiate the durable storage client from configuration."""

from __future__ import annotations

from batchmint.config.settings import Settings
from batchmint.ledger.base_ledger_client import BaseLedgerClient
from batchmint.storage.base_storage_client import BaseStorageClient


def create_storage_client(
    settings: Settings,
    ledger: BaseLedgerClient,
    env: str,
    backend: str | None = None,
) -> BaseStorageClient:
    """Create the storage client for the selected backend.

    Args:
        settings: Application settings.
        ledger: Ledger client, pays for arweave storage.
        env: Ledger environment name forwarded to the upload service.
        backend: Per-run override of STORAGE_BACKEND.

    Raises:
        ValueError: If the backend is not supported or not configured.
    """
    backend = backend or settings.storage_backend

    if backend == "arweave":
        from batchmint.storage.arweave_client import ArweaveStorageClient
        return ArweaveStorageClient(
            payer=ledger.pay_storage,
            env=env,
            endpoint=settings.arweave_upload_endpoint,
            timeout=settings.upload_timeout_seconds,
        )

    if backend == "s3":
        from batchmint.storage.s3_client import S3StorageClient
        if not settings.s3_bucket:
            raise ValueError("S3_BUCKET must be set when storage backend is s3")
        return S3StorageClient(
            bucket=settings.s3_bucket,
            prefix=settings.s3_prefix,
            region=settings.s3_region or None,
            endpoint_url=settings.s3_endpoint_url or None,
            public_base_url=settings.s3_public_base_url or None,
        )

    raise ValueError(f"Unsupported storage backend: {backend!r}")
