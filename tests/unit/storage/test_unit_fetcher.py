# tests/unit/storage/test_unit_fetcher.py — v1
"""Tests for storage.fetcher and storage.storage_factory."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest

from batchmint.config.settings import load_settings
from batchmint.core.errors import FetchError
from batchmint.storage.arweave_client import ArweaveStorageClient
from batchmint.storage.fetcher import ContentFetcher
from batchmint.storage.models import FetchedContent
from batchmint.storage.storage_factory import create_storage_client


class TestContentFetcher:
    @pytest.mark.asyncio
    async def test_returns_status_and_text(self):
        http = httpx.AsyncClient(transport=httpx.MockTransport(
            lambda r: httpx.Response(404, text="Not Found"),
        ))
        result = await ContentFetcher(client=http).fetch("https://x.test/a")
        assert result == FetchedContent(status=404, text="Not Found")
        assert not result.ok

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        with pytest.raises(FetchError, match="refused"):
            await ContentFetcher(client=http).fetch("https://x.test/a")

    def test_ok_statuses(self):
        assert FetchedContent(status=202, text="").ok
        assert not FetchedContent(status=301, text="").ok


class TestStorageFactory:
    def test_arweave(self, fake_ledger):
        client = create_storage_client(load_settings(_env_file=None), fake_ledger, "devnet")
        assert isinstance(client, ArweaveStorageClient)

    def test_s3_requires_bucket(self, fake_ledger):
        with pytest.raises(ValueError, match="S3_BUCKET"):
            create_storage_client(load_settings(_env_file=None), fake_ledger, "devnet", "s3")

    def test_s3(self, fake_ledger):
        settings = load_settings(_env_file=None, s3_bucket="bkt")
        with patch("boto3.client", return_value=MagicMock()) as boto_client:
            client = create_storage_client(settings, fake_ledger, "devnet", "s3")
        boto_client.assert_called_once_with("s3")
        assert client.public_url("k") == "https://bkt.s3.amazonaws.com/k"

    def test_unknown_backend(self, fake_ledger):
        with pytest.raises(ValueError, match="Unsupported"):
            create_storage_client(load_settings(_env_file=None), fake_ledger, "devnet", "ipfs")
