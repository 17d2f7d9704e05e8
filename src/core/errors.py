# src/core/errors.py — v1
"""Exception hierarchy shared by all batchmint modules.

Validation and transient remote errors are caught per item by the
pipeline loops and folded into result models. Configuration and
persistence errors propagate to the CLI and terminate the command.
"""

from __future__ import annotations


class BatchMintError(Exception):
    """Base class for all batchmint errors."""


# === VALIDATION ===


class DuplicateIndexError(BatchMintError):
    """Two manifests resolve to the same bundle index."""

    def __init__(self, index: str, first: str, second: str) -> None:
        self.index = index
        self.first = first
        self.second = second
        super().__init__(
            f"Duplicate bundle index {index!r}: {first} and {second}"
        )


class BundleValidationError(BatchMintError):
    """A single bundle is malformed or references missing media."""

    def __init__(self, index: str, reason: str) -> None:
        self.index = index
        self.reason = reason
        super().__init__(f"Bundle {index}: {reason}")


# === TRANSIENT REMOTE ===


class StorageError(BatchMintError):
    """Durable storage transport or payment failure."""


class StorageUploadError(StorageError):
    """Upload of one bundle failed; carries the index and the cause."""

    def __init__(self, index: str, cause: BaseException) -> None:
        self.index = index
        self.cause = cause
        super().__init__(f"Upload of bundle {index} failed: {cause}")


class LedgerError(BatchMintError):
    """Remote ledger call failed or returned an error object."""


class FetchError(BatchMintError):
    """Hosted content could not be fetched."""


# === FATAL ===


class ConfigurationError(BatchMintError):
    """Configuration is missing or internally inconsistent."""


class ProgressStoreError(BatchMintError):
    """The progress document exists but cannot be read."""
