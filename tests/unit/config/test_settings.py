# tests/unit/config/test_settings.py — v2
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest

from batchmint.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_storage(self):
        s = Settings(_env_file=None)
        assert s.storage_backend == "arweave"
        assert s.cache_root == Path(".cache")

    def test_default_bounds(self):
        s = Settings(_env_file=None)
        assert s.upload_max_attempts == 100
        assert s.reconcile_batch_size == 10
        assert s.reconcile_group_size == 1000
        assert s.verify_group_size == 500

    def test_default_logging(self):
        s = Settings(_env_file=None)
        assert s.log_level == "INFO"
        assert s.log_format == "text"
        assert s.log_file is None


class TestSettingsValidation:
    def test_s3_without_bucket(self):
        with pytest.raises(ConfigurationError, match="S3_BUCKET"):
            Settings(_env_file=None, storage_backend="s3")

    def test_batch_larger_than_group(self):
        with pytest.raises(ConfigurationError, match="RECONCILE_BATCH_SIZE"):
            Settings(_env_file=None, reconcile_batch_size=50, reconcile_group_size=20)

    def test_non_positive_bound(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, upload_max_attempts=0)


class TestLoadSettings:
    def test_overrides(self):
        s = load_settings(_env_file=None, storage_backend="s3", s3_bucket="bkt")
        assert s.s3_bucket == "bkt"

    def test_env_file(self, tmp_path: Path):
        env = tmp_path / ".env"
        env.write_text("LEDGER_RPC_URL=http://rpc.test\nVERIFY_GROUP_SIZE=50\n")
        s = Settings(_env_file=str(env))
        assert s.ledger_rpc_url == "http://rpc.test"
        assert s.verify_group_size == 50

    def test_environment_variable(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        assert Settings(_env_file=None).log_format == "json"
