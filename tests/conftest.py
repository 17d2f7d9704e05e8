# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides in-memory fakes for the storage backend, the program ledger and
the content fetcher, plus a factory writing bundle files to tmp_path.
No external dependencies — all remote I/O is faked.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from batchmint.core.errors import LedgerError, StorageError
from batchmint.core.models import (
    DecodedAccount,
    LedgerRecord,
    ProgramConfig,
    ProgramIdentity,
    RunConfig,
    StoredFile,
)
from batchmint.ledger import layout
from batchmint.ledger.base_ledger_client import BaseLedgerClient
from batchmint.progress.json_store import JsonProgressStore
from batchmint.storage.base_storage_client import BaseStorageClient
from batchmint.storage.models import FetchedContent


# === FAKES ===


class FakeStorageClient(BaseStorageClient):
    """Records uploads; links are https://storage.test/<index>."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.manifests: dict[str, bytes] = {}
        self.files: dict[str, list[StoredFile]] = {}
        self.fail_indices: set[str] = set()

    async def upload(self, files: list[StoredFile], manifest: bytes, index: str) -> str:
        self.calls.append(index)
        if index in self.fail_indices:
            raise StorageError(f"simulated failure for {index}")
        self.manifests[index] = manifest
        self.files[index] = files
        return f"https://storage.test/{index}"


class FakeLedgerClient(BaseLedgerClient):
    """In-memory program ledger keeping one record per slot."""

    signer = "wallet.json"

    def __init__(self) -> None:
        self.program: ProgramIdentity | None = None
        self.config: ProgramConfig | None = None
        self.slots: dict[int, LedgerRecord] = {}
        self.init_calls = 0
        self.append_calls: list[tuple[int, int]] = []
        self.fail_starts: set[int] = set()
        self.fail_init = False
        self.collections: list[dict[str, Any]] = []
        self.updates: list[tuple[str, int | None, int | None]] = []
        self.decimals = 9
        self.paid: list[list[int]] = []
        self.mints: list[str] = []

    async def initialize_program(self, config: ProgramConfig) -> ProgramIdentity:
        self.init_calls += 1
        if self.fail_init:
            raise LedgerError("simulated init failure")
        self.config = config
        self.program = ProgramIdentity(identity="Prog1111", uuid="Prog11", tx_id="tx-init")
        return self.program

    async def append_records(
        self, identity: ProgramIdentity, start_index: int, records: list[LedgerRecord],
    ) -> str:
        self.append_calls.append((start_index, len(records)))
        if start_index in self.fail_starts:
            raise LedgerError(f"simulated append failure at {start_index}")
        for offset, record in enumerate(records):
            self.slots[start_index + offset] = record
        return f"tx-append-{start_index}"

    async def read_raw_account(self, identity: ProgramIdentity) -> bytes:
        size = max(self.slots, default=-1) + 1
        records = [self.slots.get(i, LedgerRecord(uri="", name="")) for i in range(size)]
        return layout.encode_account(records, item_count=len(self.slots))

    async def read_decoded_account(self, identity: ProgramIdentity) -> DecodedAccount:
        max_items = self.config.max_item_count if self.config else 0
        return DecodedAccount(max_item_count=max_items, item_count=len(self.slots))

    async def pay_storage(self, file_sizes: list[int]) -> str:
        self.paid.append(file_sizes)
        return "tx-pay"

    async def create_collection(
        self,
        identity: ProgramIdentity,
        price: int,
        treasury: str | None,
        token_mint: str | None,
        items_available: int,
    ) -> str:
        self.collections.append({
            "program": identity.identity,
            "price": price,
            "treasury": treasury,
            "token_mint": token_mint,
            "items_available": items_available,
        })
        return "Coll1111"

    async def update_collection(
        self, address: str, price: int | None, go_live_date: int | None,
    ) -> str:
        self.updates.append((address, price, go_live_date))
        return "tx-update"

    async def token_decimals(self, mint: str) -> int:
        return self.decimals

    async def mint_one(self, identity: ProgramIdentity) -> str:
        self.mints.append(identity.identity)
        return f"tx-mint-{len(self.mints)}"


class FakeFetcher:
    """Serves preloaded URL bodies; unknown URLs return 404."""

    def __init__(self, pages: dict[str, FetchedContent] | None = None) -> None:
        self.pages: dict[str, FetchedContent] = dict(pages or {})
        self.requested: list[str] = []

    def serve(self, url: str, text: str, status: int = 200) -> None:
        self.pages[url] = FetchedContent(status=status, text=text)

    async def fetch(self, url: str) -> FetchedContent:
        self.requested.append(url)
        return self.pages.get(url, FetchedContent(status=404, text="Not Found"))


# === FIXTURES: Fakes ===


@pytest.fixture
def fake_storage() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def fake_ledger() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def store(tmp_path: Path) -> JsonProgressStore:
    """Progress store rooted in a temp cache directory."""
    return JsonProgressStore(tmp_path / ".cache")


@pytest.fixture
def run_config() -> RunConfig:
    return RunConfig(env="devnet", cache_name="temp")


# === FIXTURES: Bundle files ===


def manifest_for(index: str, image: str | None = "image.png", **extra: Any) -> dict[str, Any]:
    """Minimal manifest document for a bundle index."""
    doc: dict[str, Any] = {
        "name": f"Item #{index}",
        "symbol": "TST",
        "seller_fee_basis_points": 500,
        "properties": {
            "files": [{"uri": "image.png", "type": "image/png"}],
            "creators": [{"address": "Creator1111", "share": 100}],
        },
    }
    if image is not None:
        doc["image"] = image
    doc.update(extra)
    return doc


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    path = tmp_path / "assets"
    path.mkdir()
    return path


@pytest.fixture
def write_bundle(assets_dir: Path) -> Callable[..., Path]:
    """Factory writing <index>.json and its media into assets_dir.

    Usage: write_bundle("0"), write_bundle("3", media=(".mp4",), image="video.mp4")
    """

    def _write(
        index: str,
        media: tuple[str, ...] = (".png",),
        manifest: dict[str, Any] | str | None = None,
        **manifest_kwargs: Any,
    ) -> Path:
        path = assets_dir / f"{index}.json"
        if manifest is None:
            manifest = manifest_for(index, **manifest_kwargs)
        text = manifest if isinstance(manifest, str) else json.dumps(manifest)
        path.write_text(text, encoding="utf-8")
        for ext in media:
            (assets_dir / f"{index}{ext}").write_bytes(b"media-" + index.encode() + ext.encode())
        return path

    return _write
