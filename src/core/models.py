# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types — all imports come from core.models.
Persisted models (ProgressRecord, ProgressDocument) serialize with
camelCase keys so the progress document stays readable by other tools.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_NUMERIC_KEY = re.compile(r"^\d+$")


# === BUNDLES ===


class MediaKind(BaseModel):
    """One row of the media kind registry."""

    model_config = ConfigDict(frozen=True)

    extension: str
    kind: Literal["image", "audio", "video"]
    placeholder: str
    content_type: str


class MediaFile(BaseModel):
    """A media file assigned to a bundle."""

    model_config = ConfigDict(frozen=True)

    path: str
    kind: MediaKind


class Bundle(BaseModel):
    """One publishable unit: a manifest plus its media files."""

    model_config = ConfigDict(frozen=True)

    index: str
    manifest_path: str
    media_files: tuple[MediaFile, ...] = ()

    @property
    def placeholders(self) -> set[str]:
        """Placeholder tokens this bundle can satisfy."""
        return {m.kind.placeholder for m in self.media_files}

    def media_for(self, kind: str) -> list[MediaFile]:
        """Media files of the given kind (image, audio, video)."""
        return [m for m in self.media_files if m.kind.kind == kind]


class Creator(BaseModel):
    """Creator entry of a manifest (royalty split)."""

    model_config = ConfigDict(extra="allow")

    address: str
    share: int
    verified: bool = True


class ManifestProperties(BaseModel):
    model_config = ConfigDict(extra="allow")

    creators: list[Creator] = Field(default_factory=list)


class ManifestMetadata(BaseModel):
    """Parsed manifest document. Unknown keys are preserved."""

    model_config = ConfigDict(extra="allow")

    name: str
    symbol: str = ""
    seller_fee_basis_points: int = 0
    image: str | None = None
    properties: ManifestProperties = Field(default_factory=ManifestProperties)


# === PROGRESS ===


class StoredFile(BaseModel):
    """A file as it was handed to durable storage."""

    model_config = ConfigDict(populate_by_name=True)

    file: str
    content_type: str = Field(alias="format")
    filename: str


class ProgressRecord(BaseModel):
    """Durable pipeline state for one bundle index."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    content_link: str | None = None
    stored_files: list[StoredFile] | None = None
    display_name: str | None = None
    committed: bool = False
    slot: int | None = None

    @property
    def is_uploaded(self) -> bool:
        return bool(self.content_link) and self.stored_files is not None

    def mark_committed(self, slot: int) -> None:
        """Record a confirmed ledger write at slot."""
        self.committed = True
        self.slot = slot

    def uncommit(self) -> None:
        self.committed = False
        self.slot = None

    def reset(self) -> None:
        """Force re-upload and re-commit on the next run."""
        self.content_link = None
        self.uncommit()


class ProgramIdentity(BaseModel):
    """Ledger program instance that all items of a run are bound to."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    identity: str
    uuid: str
    tx_id: str | None = None


class ProgressDocument(BaseModel):
    """Whole progress document for one (env, cache name) pair."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    program: ProgramIdentity | None = None
    items: dict[str, ProgressRecord] = Field(default_factory=dict)
    authority: str | None = None
    env: str = ""
    cache_name: str = ""
    published_address: str | None = None
    start_date: int | None = None

    def ordered_indices(self) -> list[str]:
        """Item keys, integer keys ascending first, then the rest lexically.

        An item's position in this list is its ledger slot.
        """
        numeric = sorted((k for k in self.items if _NUMERIC_KEY.match(k)), key=int)
        other = sorted(k for k in self.items if not _NUMERIC_KEY.match(k))
        return numeric + other

    def release_moved(self) -> list[str]:
        """Uncommit records whose confirmed slot is not their current position.

        A key that arrives later shifts every key ordered after it, so a
        record committed at its old slot no longer backs its new one.
        """
        moved = []
        for slot, key in enumerate(self.ordered_indices()):
            record = self.items[key]
            if record.committed and record.slot != slot:
                record.uncommit()
                moved.append(key)
        return moved

    def record(self, index: str) -> ProgressRecord:
        """Return the record for index, creating an empty one if absent."""
        if index not in self.items:
            self.items[index] = ProgressRecord()
        return self.items[index]


# === RUN ===


class RunConfig(BaseModel):
    """Per-invocation settings, fixed at process start."""

    model_config = ConfigDict(frozen=True)

    env: str
    cache_name: str
    total_items: int | None = None
    storage: Literal["arweave", "s3"] = "arweave"
    mutable: bool = True
    retain_authority: bool = True
    keypair: str | None = None


# === LEDGER ===


class ProgramConfig(BaseModel):
    """Arguments for initializing the ledger program account."""

    max_item_count: int
    symbol: str
    seller_fee_basis_points: int
    is_mutable: bool
    retain_authority: bool
    max_supply: int = 0
    creators: list[Creator] = Field(default_factory=list)


class LedgerRecord(BaseModel):
    """One (link, name) pair appended to the program account."""

    uri: str
    name: str


class DecodedAccount(BaseModel):
    """Decoded fields of the program account."""

    max_item_count: int
    item_count: int | None = None
