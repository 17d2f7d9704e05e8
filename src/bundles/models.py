# src/bundles/models.py — v1
"""Bundle validation models: ValidationFailure, ValidationReport."""

from __future__ import annotations

from pydantic import BaseModel, Field

from batchmint.core.models import Bundle


class ValidationFailure(BaseModel):
    """A bundle that failed validation and why."""

    index: str
    reason: str


class ValidationReport(BaseModel):
    """Aggregated outcome of validating all bundles."""

    valid: list[Bundle] = Field(default_factory=list)
    failures: list[ValidationFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_indices(self) -> list[str]:
        return [f.index for f in self.failures]
