# src/storage/fetcher.py — v1
"""Read hosted content back over HTTP for verification."""

from __future__ import annotations

import logging

import httpx

from batchmint.core.errors import FetchError
from batchmint.storage.models import FetchedContent

logger = logging.getLogger(__name__)


class ContentFetcher:
    """Thin httpx wrapper returning status and body text."""

    def __init__(
        self, timeout: float = 30.0, client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(self, url: str) -> FetchedContent:
        """GET a URL. Non-2xx statuses are returned, not raised.

        Raises:
            FetchError: Transport failure (connection, timeout, bad URL).
        """
        try:
            response = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"GET {url} failed: {e}") from e
        logger.debug("GET %s -> %d", url, response.status_code)
        return FetchedContent(status=response.status_code, text=response.text)
