# src/storage/s3_client.py — v1
"""S3-compatible storage client (STORAGE_BACKEND=s3).

Supports AWS S3, MinIO, and other S3-compatible storage.
Requires 'boto3' package: pip install boto3.

Layout per bundle::

    <prefix><index>/<placeholder>     media files
    <prefix><index>/metadata.json     rewritten manifest (the content link)

Placeholder tokens in the manifest are replaced with the public URLs of
the uploaded media before the manifest itself is written.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from batchmint.core.errors import StorageError
from batchmint.core.models import StoredFile
from batchmint.storage.base_storage_client import BaseStorageClient

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "metadata.json"


class S3StorageClient(BaseStorageClient):
    """Upload bundles to S3-compatible object storage."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "batchmint/",
        region: str | None = None,
        endpoint_url: str | None = None,
        public_base_url: str | None = None,
        s3_client: object | None = None,
    ) -> None:
        """Initialize S3 storage client.

        Args:
            bucket: S3 bucket name.
            prefix: Key prefix for all objects (e.g. "batchmint/").
            region: AWS region (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for MinIO/compatible storage.
            public_base_url: Base URL content is served from. Defaults to
                the virtual-hosted bucket URL.
            s3_client: Preconfigured boto3 client (tests pass a mock).
        """
        if s3_client is None:
            try:
                import boto3
            except ImportError as e:
                raise ImportError(
                    "boto3 package required for S3 storage: pip install boto3"
                ) from e

            kwargs: dict = {}
            if region:
                kwargs["region_name"] = region
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            s3_client = boto3.client("s3", **kwargs)

        self._s3 = s3_client
        self._bucket = bucket
        self._prefix = prefix.rstrip("/") + "/" if prefix else ""
        self._public_base = (
            public_base_url or f"https://{bucket}.s3.amazonaws.com"
        ).rstrip("/")

    def _full_key(self, index: str, name: str) -> str:
        return f"{self._prefix}{index}/{name}"

    def _put(self, key: str, body: bytes, content_type: str) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self._s3.put_object(
                Bucket=self._bucket, Key=key, Body=body, ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 put of {key} failed: {e}") from e
        logger.debug("S3 write: s3://%s/%s (%d bytes)", self._bucket, key, len(body))

    def public_url(self, key: str) -> str:
        return f"{self._public_base}/{key}"

    async def upload(self, files: list[StoredFile], manifest: bytes, index: str) -> str:
        text = manifest.decode("utf-8")
        for f in files:
            body = await asyncio.to_thread(Path(f.file).read_bytes)
            key = self._full_key(index, f.filename)
            await asyncio.to_thread(self._put, key, body, f.content_type)
            text = text.replace(f.filename, self.public_url(key))
        manifest = text.encode("utf-8")

        manifest_key = self._full_key(index, MANIFEST_FILENAME)
        await asyncio.to_thread(self._put, manifest_key, manifest, "application/json")
        return self.public_url(manifest_key)
