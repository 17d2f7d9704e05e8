# src/storage/models.py — v2
"""Storage domain models: FetchedContent."""

from __future__ import annotations

from pydantic import BaseModel


class FetchedContent(BaseModel):
    """Status and body of a hosted content read."""

    status: int
    text: str

    @property
    def ok(self) -> bool:
        return self.status in (200, 202, 204)
