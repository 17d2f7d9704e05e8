# src/pipeline/models.py — v2
"""Pipeline phase results: upload pass, retry outcome, reconciliation, verify."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class UploadPassResult(BaseModel):
    """Outcome of one upload pass over all bundles."""

    successful: bool = True
    uploaded: list[str] = Field(default_factory=list)
    skipped: int = 0
    failed: list[str] = Field(default_factory=list)


class RetryOutcome(BaseModel):
    """Outcome of a bounded whole-pass retry loop."""

    succeeded: bool
    attempts: int
    remaining: list[str] = Field(default_factory=list)


class ReconcileResult(BaseModel):
    """Outcome of one reconciliation pass."""

    successful: bool = True
    written_batches: int = 0
    skipped_batches: int = 0
    failed_ranges: list[str] = Field(default_factory=list)
    committed: int = 0


class VerifyReport(BaseModel):
    """Outcome of a verification pass."""

    status: Literal["ready", "failed", "count_deficit"]
    checked: int = 0
    failed: list[str] = Field(default_factory=list)
    pending: list[str] = Field(default_factory=list)
    item_count: int | None = None
    max_item_count: int | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ready"
