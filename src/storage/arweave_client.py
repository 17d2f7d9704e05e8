# src/storage/arweave_client.py — v1
"""Arweave upload client (STORAGE_BACKEND=arweave).

Payment happens first through the ledger (``pay_storage``); the upload
service then receives the payment transaction id alongside a multipart
body of ``file[]`` parts. The reply lists one transaction per stored
file; the link of the run is the one for ``manifest.json``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable

import httpx

from batchmint.core.errors import BatchMintError, StorageError
from batchmint.core.models import StoredFile
from batchmint.storage.base_storage_client import BaseStorageClient

logger = logging.getLogger(__name__)

ARWEAVE_GATEWAY = "https://arweave.net"
DEFAULT_UPLOAD_ENDPOINT = (
    "https://us-central1-metaplex-studios.cloudfunctions.net/uploadFile"
)
MANIFEST_FILENAME = "metadata.json"
RESULT_MANIFEST_FILENAME = "manifest.json"

Payer = Callable[[list[int]], Awaitable[str]]


class ArweaveStorageClient(BaseStorageClient):
    """Upload bundles through the arweave upload service."""

    def __init__(
        self,
        payer: Payer,
        env: str,
        endpoint: str = DEFAULT_UPLOAD_ENDPOINT,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._payer = payer
        self._env = env
        self._endpoint = endpoint
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def upload(self, files: list[StoredFile], manifest: bytes, index: str) -> str:
        contents = await asyncio.gather(
            *(asyncio.to_thread(Path(f.file).read_bytes) for f in files)
        )
        sizes = [len(c) for c in contents] + [len(manifest)]

        try:
            tx_id = await self._payer(sizes)
        except BatchMintError as e:
            raise StorageError(f"storage payment for {index} failed: {e}") from e
        logger.debug("Storage payment (%s) for %s: %s", self._env, index, tx_id)

        multipart = [
            ("file[]", (f.filename, body, f.content_type))
            for f, body in zip(files, contents)
        ]
        multipart.append(("file[]", (MANIFEST_FILENAME, manifest, "application/json")))

        logger.debug("Uploading %s (%d files)", index, len(multipart))
        try:
            response = await self._client.post(
                self._endpoint,
                data={"transaction": tx_id, "env": self._env},
                files=multipart,
            )
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPError as e:
            raise StorageError(f"upload of {index} failed: {e}") from e
        except ValueError as e:
            raise StorageError(f"upload of {index} returned invalid JSON: {e}") from e

        messages = result.get("messages") if isinstance(result, dict) else None
        for message in messages or []:
            if message.get("filename") == RESULT_MANIFEST_FILENAME and message.get("transactionId"):
                link = f"{ARWEAVE_GATEWAY}/{message['transactionId']}"
                logger.debug("File uploaded: %s", link)
                return link

        raise StorageError(f"No transaction ID for upload: {index}")
