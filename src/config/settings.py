# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: cache location,
storage backend, ledger endpoint, pipeline bounds and logging. Per-run
choices (env, cache name, keypair) come from the CLI as RunConfig.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from batchmint.core.errors import ConfigurationError

__all__ = ["ConfigurationError", "Settings", "load_settings"]


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Progress store ===
    cache_root: Path = Path(".cache")

    # === Durable storage ===
    storage_backend: Literal["arweave", "s3"] = "arweave"
    arweave_upload_endpoint: str = (
        "https://us-central1-metaplex-studios.cloudfunctions.net/uploadFile"
    )
    s3_bucket: str = ""
    s3_prefix: str = "batchmint/"
    s3_region: str = ""
    s3_endpoint_url: str = ""
    s3_public_base_url: str = ""

    # === Ledger ===
    ledger_rpc_url: str = "http://localhost:8899"

    # === HTTP ===
    http_timeout_seconds: float = 30.0
    upload_timeout_seconds: float = 120.0

    # === Pipeline bounds ===
    upload_max_attempts: int = 100
    reconcile_batch_size: int = 10
    reconcile_group_size: int = 1000
    verify_group_size: int = 500

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator(
        "upload_max_attempts",
        "reconcile_batch_size",
        "reconcile_group_size",
        "verify_group_size",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.storage_backend == "s3" and not self.s3_bucket:
            errors.append("STORAGE_BACKEND=s3 requires S3_BUCKET")

        if self.reconcile_batch_size > self.reconcile_group_size:
            errors.append("RECONCILE_BATCH_SIZE must be <= RECONCILE_GROUP_SIZE")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
