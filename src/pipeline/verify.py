# src/pipeline/verify.py — v1
"""Verifier — cross-check the progress document against ledger and content.

For every committed record:
  1. Decode its slot from the raw program account and compare name/link
  2. Fetch the link; the body must be JSON with an ``image`` reference
  3. Fetch the image; it must exist and be non-empty

Any failure resets that record (link cleared, committed false) so the
next upload/reconcile run repairs it. Records are only ever un-committed
here, never committed. A committed record whose slot moved since its
write is reported as pending, like an uncommitted one. When every record passes, the ledger's committed
count is compared against the program's declared item count.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from urllib.parse import urlsplit

from batchmint.core.errors import ConfigurationError, FetchError
from batchmint.core.models import ProgressDocument, ProgressRecord, RunConfig
from batchmint.ledger import layout
from batchmint.ledger.base_ledger_client import BaseLedgerClient
from batchmint.logging.context import set_phase_context
from batchmint.pipeline.models import VerifyReport
from batchmint.pipeline.reconcile import chunks
from batchmint.progress.base_progress_store import BaseProgressStore
from batchmint.storage.fetcher import ContentFetcher

logger = logging.getLogger(__name__)

DEFAULT_GROUP_SIZE = 500

_NOT_FOUND = re.compile(r"not found", re.IGNORECASE)


def resolve_media_url(link: str, reference: str) -> str:
    """Absolute references are used as-is; relative ones live under the link."""
    if urlsplit(reference).scheme:
        return reference
    return f"{link.rstrip('/')}/{reference.lstrip('/')}"


class Verifier:
    """Independently confirm committed records.

    Args:
        store: Progress store (single writer).
        ledger: Ledger client (raw and decoded account reads).
        fetcher: Hosted content fetcher.
        run: Run configuration.
        group_size: Slots per concurrently checked group.
    """

    def __init__(
        self,
        store: BaseProgressStore,
        ledger: BaseLedgerClient,
        fetcher: ContentFetcher,
        run: RunConfig,
        group_size: int = DEFAULT_GROUP_SIZE,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._fetcher = fetcher
        self._run = run
        self._group_size = group_size

    async def run(self) -> VerifyReport:
        """Run one verification pass; corrections are saved before returning.

        Raises:
            ConfigurationError: No progress document or no program identity.
        """
        set_phase_context("verify")
        document = await self._store.load(self._run.cache_name, self._run.env)
        if document is None:
            raise ConfigurationError(
                f"No progress document for {self._run.env}-{self._run.cache_name}; run upload first"
            )
        if document.program is None:
            raise ConfigurationError("Program identity is not initialized; run upload first")

        raw = await self._ledger.read_raw_account(document.program)
        keys = document.ordered_indices()
        position = {key: slot for slot, key in enumerate(keys)}
        failed: list[str] = []
        pending: list[str] = []

        async def check_group(slots: list[int]) -> None:
            for slot in slots:
                key = keys[slot]
                record = document.items[key]
                if not record.committed or record.slot != slot:
                    pending.append(key)
                    continue
                logger.debug("Looking at key %s (slot %d)", key, slot)
                reason = await self._check(raw, slot, record)
                if reason is not None:
                    logger.info("Index %s (%s) failed: %s", key, record.display_name, reason)
                    record.reset()
                    failed.append(key)
                else:
                    logger.debug("Index %s (%s) checked out", key, record.display_name)

        await asyncio.gather(
            *(check_group(g) for g in chunks(list(range(len(keys))), self._group_size))
        )

        report = VerifyReport(
            status="failed",
            checked=len(keys) - len(pending),
            failed=sorted(failed, key=position.__getitem__),
            pending=sorted(pending, key=position.__getitem__),
        )

        if failed or pending:
            await self._save(document)
            if pending:
                logger.warning("%d records are uploaded but not committed yet", len(pending))
            if failed:
                logger.error("Not all items checked out: %d failed", len(failed))
            return report

        decoded = await self._ledger.read_decoded_account(document.program)
        report.item_count = layout.decode_item_count(raw)
        report.max_item_count = decoded.max_item_count
        logger.info("Uploaded (%d) out of (%d)", report.item_count, report.max_item_count)

        if report.max_item_count > report.item_count:
            logger.error(
                "Predefined number of items (%d) is larger than the committed count (%d)",
                report.max_item_count, report.item_count,
            )
            report.status = "count_deficit"
        else:
            logger.info("Ready to deploy!")
            report.status = "ready"

        await self._save(document)
        return report

    async def _check(self, raw: bytes, slot: int, record: ProgressRecord) -> str | None:
        """Return a failure reason for one record, or None when it checks out."""
        on_ledger = layout.decode_record(raw, slot)
        if on_ledger.name != (record.display_name or "") or on_ledger.uri != (record.content_link or ""):
            return (
                f"ledger has ({on_ledger.name!r}, {on_ledger.uri!r}), "
                f"expected ({record.display_name!r}, {record.content_link!r})"
            )

        try:
            manifest = await self._fetcher.fetch(record.content_link or "")
        except FetchError as e:
            return str(e)
        if not manifest.ok:
            return f"returned no json from link (status {manifest.status})"

        try:
            parsed = json.loads(manifest.text)
        except ValueError:
            return "link did not return JSON"
        image = parsed.get("image") if isinstance(parsed, dict) else None
        if not image:
            return "lacked image in json"

        try:
            content = await self._fetcher.fetch(resolve_media_url(record.content_link or "", str(image)))
        except FetchError as e:
            return str(e)
        if not content.ok:
            return f"returned non-200 from uploader (status {content.status})"
        if _NOT_FOUND.search(content.text):
            return "never got uploaded, content not found"
        if len(content.text) == 0:
            return "has zero length"
        return None

    async def _save(self, document: ProgressDocument) -> None:
        await self._store.save(self._run.cache_name, self._run.env, document)
