# src/pipeline/upload.py — v1
"""Upload orchestrator — publish bundles to durable storage, one pass.

A pass walks the bundles sequentially. For every bundle that is not yet
fully recorded it rewrites the manifest with placeholder tokens, uploads
media plus manifest, writes the resulting link into the progress
document and saves the document before moving on. A crash after a save
never causes that bundle to be uploaded again.

The first processed bundle also initializes the ledger program identity
(symbol, royalty fee, creators come from its manifest) when the document
has none yet. That identity is saved before any upload happens and is
not rolled back if the upload then fails.
"""

from __future__ import annotations

import asyncio
import logging

from batchmint.bundles.manifest import (
    read_manifest_text,
    render_manifest,
    substitute_placeholders,
)
from batchmint.core.errors import StorageUploadError
from batchmint.core.models import (
    Bundle,
    ManifestMetadata,
    ProgramConfig,
    ProgressDocument,
    RunConfig,
    StoredFile,
)
from batchmint.ledger.base_ledger_client import BaseLedgerClient
from batchmint.logging.context import set_item_context, set_phase_context
from batchmint.pipeline.models import UploadPassResult
from batchmint.progress.base_progress_store import BaseProgressStore
from batchmint.storage.base_storage_client import BaseStorageClient

logger = logging.getLogger(__name__)

PROGRESS_LOG_EVERY = 50


def stored_files_for(bundle: Bundle) -> list[StoredFile]:
    """Files handed to storage, named by their placeholder tokens."""
    return [
        StoredFile(
            file=m.path,
            content_type=m.kind.content_type,
            filename=m.kind.placeholder,
        )
        for m in bundle.media_files
    ]


class UploadOrchestrator:
    """Drive bundles through durable storage and record the results.

    Args:
        store: Progress store (single writer).
        storage: Durable storage client.
        ledger: Ledger client, used once to initialize the program identity.
        run: Run configuration.
        authority: Identity recorded as the run's authority.
    """

    def __init__(
        self,
        store: BaseProgressStore,
        storage: BaseStorageClient,
        ledger: BaseLedgerClient,
        run: RunConfig,
        authority: str | None = None,
    ) -> None:
        self._store = store
        self._storage = storage
        self._ledger = ledger
        self._run = run
        self._authority = authority

    async def run_pass(self, bundles: list[Bundle]) -> UploadPassResult:
        """Run one upload pass over all bundles.

        Per-bundle failures are logged and recorded; the pass continues.
        Program initialization failures propagate.
        """
        set_phase_context("upload")
        document = await self._store.load_or_create(self._run.cache_name, self._run.env)
        result = UploadPassResult()
        total_items = self._run.total_items or len(bundles)

        for position, bundle in enumerate(bundles):
            set_item_context(bundle.index)
            if position % PROGRESS_LOG_EVERY == 0:
                logger.info("Processing bundle %d of %d", position + 1, len(bundles))
            else:
                logger.debug("Processing bundle %d", position)

            record = document.items.get(bundle.index)
            if record is not None and record.is_uploaded and document.program is not None:
                result.skipped += 1
                continue

            try:
                text = substitute_placeholders(bundle, await asyncio.to_thread(read_manifest_text, bundle))
                metadata, manifest_bytes = render_manifest(text)
            except (OSError, ValueError) as e:
                logger.error("Cannot prepare manifest for bundle %s: %s", bundle.index, e)
                result.successful = False
                result.failed.append(bundle.index)
                continue

            if document.program is None:
                await self._initialize_program(document, metadata, total_items)

            files = stored_files_for(bundle)
            if record is not None and record.content_link:
                if record.stored_files is None:
                    record.stored_files = files
                    await self._store.save(self._run.cache_name, self._run.env, document)
                result.skipped += 1
                continue

            try:
                link = await self._upload(bundle.index, files, manifest_bytes)
            except StorageUploadError as e:
                logger.error("Error uploading bundle %s: %s", e.index, e.cause)
                result.successful = False
                result.failed.append(bundle.index)
                continue

            record = document.record(bundle.index)
            record.content_link = link
            record.stored_files = files
            record.display_name = metadata.name
            record.uncommit()
            if self._authority:
                document.authority = self._authority
            await self._store.save(self._run.cache_name, self._run.env, document)
            result.uploaded.append(bundle.index)
            logger.debug("Recorded %s -> %s", bundle.index, link)

        set_item_context(None)
        if result.failed and document.program is not None and not any(
            r.content_link for r in document.items.values()
        ):
            logger.warning(
                "Program %s is initialized but no bundle has been uploaded yet",
                document.program.identity,
            )
        logger.info(
            "Upload pass done: %d uploaded, %d already recorded, %d failed",
            len(result.uploaded), result.skipped, len(result.failed),
        )
        return result

    async def _upload(self, index: str, files: list[StoredFile], manifest: bytes) -> str:
        try:
            return await self._storage.upload(files, manifest, index)
        except Exception as e:
            raise StorageUploadError(index, e) from e

    async def _initialize_program(
        self,
        document: ProgressDocument,
        metadata: ManifestMetadata,
        total_items: int,
    ) -> None:
        """One-time program identity creation, saved before any upload."""
        logger.info("Initializing program")
        config = ProgramConfig(
            max_item_count=total_items,
            symbol=metadata.symbol,
            seller_fee_basis_points=metadata.seller_fee_basis_points,
            is_mutable=self._run.mutable,
            retain_authority=self._run.retain_authority,
            creators=[c.model_copy(update={"verified": True}) for c in metadata.properties.creators],
        )
        try:
            identity = await self._ledger.initialize_program(config)
        except Exception:
            logger.exception("Error initializing program on the ledger")
            raise
        document.program = identity
        if self._authority:
            document.authority = self._authority
        await self._store.save(self._run.cache_name, self._run.env, document)
        logger.info("Initialized program %s", identity.identity)
