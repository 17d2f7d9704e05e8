# src/pipeline/reconcile.py — v1
"""Reconciliation driver — push uploaded records into the ledger.

Item slots (positions in ProgressDocument.ordered_indices()) are split
into groups dispatched concurrently; each group writes its batches one
after the other, one ledger call per batch.

A batch always rewrites the same contiguous slot range with the same
values, so resubmitting a partially committed batch is safe. The ledger
is not assumed to deduplicate: a batch whose members are all committed
is never sent again. Each record remembers the slot it was committed
at; a record whose position has since moved is committed again.
"""

from __future__ import annotations

import asyncio
import logging

from batchmint.core.errors import ConfigurationError
from batchmint.core.models import LedgerRecord, ProgressDocument, RunConfig
from batchmint.ledger.base_ledger_client import BaseLedgerClient
from batchmint.logging.context import set_phase_context
from batchmint.pipeline.models import ReconcileResult
from batchmint.progress.base_progress_store import BaseProgressStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_GROUP_SIZE = 1000


def chunks(items: list[int], size: int) -> list[list[int]]:
    """Split a list into consecutive pieces of at most size elements."""
    return [items[i:i + size] for i in range(0, len(items), size)]


class Reconciler:
    """Commit uploaded-but-uncommitted records to the ledger in batches.

    Args:
        store: Progress store (single writer).
        ledger: Ledger client.
        run: Run configuration.
        batch_size: Records per ledger write.
        group_size: Slots per concurrently dispatched group.
    """

    def __init__(
        self,
        store: BaseProgressStore,
        ledger: BaseLedgerClient,
        run: RunConfig,
        batch_size: int = DEFAULT_BATCH_SIZE,
        group_size: int = DEFAULT_GROUP_SIZE,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._run = run
        self._batch_size = batch_size
        self._group_size = group_size

    async def run(self) -> ReconcileResult:
        """Run one reconciliation pass.

        Raises:
            ConfigurationError: No progress document or no program identity.
        """
        set_phase_context("reconcile")
        document = await self._store.load(self._run.cache_name, self._run.env)
        if document is None:
            raise ConfigurationError(
                f"No progress document for {self._run.env}-{self._run.cache_name}; run upload first"
            )
        if document.program is None:
            raise ConfigurationError("Program identity is not initialized; run upload first")

        moved = document.release_moved()
        if moved:
            logger.warning(
                "%d committed records changed slot and will be written again: %s",
                len(moved), ", ".join(moved),
            )
        keys = document.ordered_indices()
        result = ReconcileResult()
        try:
            await asyncio.gather(
                *(
                    self._run_group(document, keys, group, result)
                    for group in chunks(list(range(len(keys))), self._group_size)
                )
            )
        finally:
            await self._save(document)

        result.committed = sum(1 for r in document.items.values() if r.committed)
        logger.info(
            "Reconcile done: %d batches written, %d already committed, %d failed; %d/%d committed",
            result.written_batches, result.skipped_batches, len(result.failed_ranges),
            result.committed, len(keys),
        )
        return result

    async def _run_group(
        self,
        document: ProgressDocument,
        keys: list[str],
        slots: list[int],
        result: ReconcileResult,
    ) -> None:
        for batch in chunks(slots, self._batch_size):
            members = [keys[s] for s in batch]
            records = [document.items[k] for k in members]
            label = f"{members[0]}-{members[-1]}"

            if all(r.committed for r in records):
                result.skipped_batches += 1
                continue

            if not all(r.content_link for r in records):
                missing = [k for k, r in zip(members, records) if not r.content_link]
                logger.warning(
                    "Cannot write indices %s: not uploaded yet (%s)", label, ", ".join(missing),
                )
                result.successful = False
                result.failed_ranges.append(label)
                continue

            logger.info("Writing indices %s", label)
            try:
                await self._ledger.append_records(
                    document.program,  # type: ignore[arg-type]
                    batch[0],
                    [LedgerRecord(uri=r.content_link or "", name=r.display_name or "") for r in records],
                )
            except Exception as e:
                logger.error("Saving ledger records %s failed: %s", label, e)
                result.successful = False
                result.failed_ranges.append(label)
                continue

            for slot, record in zip(batch, records):
                record.mark_committed(slot)
            result.written_batches += 1
            await self._save(document)

    async def _save(self, document: ProgressDocument) -> None:
        await self._store.save(self._run.cache_name, self._run.env, document)
