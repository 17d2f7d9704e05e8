# tests/unit/pipeline/test_unit_reconcile.py — v1
"""Tests for pipeline/reconcile.py — batched ledger commits."""

from __future__ import annotations

import pytest

from batchmint.core.errors import ConfigurationError
from batchmint.core.models import ProgramIdentity, ProgressDocument, RunConfig, StoredFile
from batchmint.ledger import layout
from batchmint.pipeline.reconcile import Reconciler, chunks

RUN = RunConfig(env="devnet", cache_name="temp")


async def _seed(store, count: int, missing_link: set[str] = frozenset(), committed: set[str] = frozenset()):
    doc = ProgressDocument(program=ProgramIdentity(identity="Prog1111", uuid="Prog11"))
    for i in range(count):
        key = str(i)
        record = doc.record(key)
        record.display_name = f"Item #{i}"
        if key not in missing_link:
            record.content_link = f"https://storage.test/{i}"
            record.stored_files = [StoredFile(file=f"{i}.png", content_type="image/png", filename="image.png")]
        if key in committed:
            record.mark_committed(i)
    await store.save(RUN.cache_name, RUN.env, doc)
    return doc


class TestChunks:
    def test_split(self):
        assert chunks(list(range(5)), 2) == [[0, 1], [2, 3], [4]]

    def test_empty(self):
        assert chunks([], 3) == []


class TestReconciler:
    @pytest.mark.asyncio
    async def test_commits_in_batches(self, store, fake_ledger):
        await _seed(store, 25)

        result = await Reconciler(store, fake_ledger, RUN, batch_size=10, group_size=1000).run()

        assert result.successful
        assert result.written_batches == 3
        assert result.committed == 25
        assert sorted(fake_ledger.append_calls) == [(0, 10), (10, 10), (20, 5)]
        doc = await store.load("temp", "devnet")
        assert all(r.committed for r in doc.items.values())

    @pytest.mark.asyncio
    async def test_slot_follows_numeric_order(self, store, fake_ledger):
        await _seed(store, 12)

        await Reconciler(store, fake_ledger, RUN, batch_size=5, group_size=10).run()

        raw = await fake_ledger.read_raw_account(None)
        assert layout.decode_record(raw, 10).uri == "https://storage.test/10"
        assert layout.decode_record(raw, 2).name == "Item #2"

    @pytest.mark.asyncio
    async def test_failed_batch_isolated(self, store, fake_ledger):
        await _seed(store, 20)
        fake_ledger.fail_starts = {0}

        result = await Reconciler(store, fake_ledger, RUN).run()

        assert not result.successful
        assert result.failed_ranges == ["0-9"]
        doc = await store.load("temp", "devnet")
        assert not any(doc.items[str(i)].committed for i in range(10))
        assert all(doc.items[str(i)].committed for i in range(10, 20))

    @pytest.mark.asyncio
    async def test_committed_batches_not_resent(self, store, fake_ledger):
        await _seed(store, 20, committed={str(i) for i in range(10)})

        result = await Reconciler(store, fake_ledger, RUN).run()

        assert result.skipped_batches == 1
        assert fake_ledger.append_calls == [(10, 10)]

    @pytest.mark.asyncio
    async def test_rerun_makes_no_calls(self, store, fake_ledger):
        await _seed(store, 15)
        await Reconciler(store, fake_ledger, RUN).run()
        fake_ledger.append_calls.clear()

        result = await Reconciler(store, fake_ledger, RUN).run()

        assert result.successful
        assert fake_ledger.append_calls == []

    @pytest.mark.asyncio
    async def test_partially_committed_batch_rewrites_same_range(self, store, fake_ledger):
        await _seed(store, 10, committed={"0", "1", "2"})

        await Reconciler(store, fake_ledger, RUN).run()

        assert fake_ledger.append_calls == [(0, 10)]

    @pytest.mark.asyncio
    async def test_missing_link_blocks_batch(self, store, fake_ledger):
        await _seed(store, 10, missing_link={"4"})

        result = await Reconciler(store, fake_ledger, RUN).run()

        assert not result.successful
        assert result.failed_ranges == ["0-9"]
        assert fake_ledger.append_calls == []

    @pytest.mark.asyncio
    async def test_requires_program(self, store, fake_ledger):
        await store.save("temp", "devnet", ProgressDocument())
        with pytest.raises(ConfigurationError, match="not initialized"):
            await Reconciler(store, fake_ledger, RUN).run()

    @pytest.mark.asyncio
    async def test_requires_document(self, store, fake_ledger):
        with pytest.raises(ConfigurationError, match="run upload first"):
            await Reconciler(store, fake_ledger, RUN).run()

    @pytest.mark.asyncio
    async def test_late_key_rewrites_shifted_records(self, store, fake_ledger):
        doc = await _seed(store, 11)
        late = doc.items.pop("5")
        await store.save(RUN.cache_name, RUN.env, doc)
        await Reconciler(store, fake_ledger, RUN).run()
        assert fake_ledger.append_calls == [(0, 10)]

        doc = await store.load("temp", "devnet")
        doc.items["5"] = late
        await store.save(RUN.cache_name, RUN.env, doc)
        fake_ledger.append_calls.clear()

        result = await Reconciler(store, fake_ledger, RUN).run()

        assert result.successful
        assert fake_ledger.append_calls == [(0, 10), (10, 1)]
        raw = await fake_ledger.read_raw_account(None)
        assert layout.decode_record(raw, 5).uri == "https://storage.test/5"
        assert layout.decode_record(raw, 9).uri == "https://storage.test/9"
        assert layout.decode_record(raw, 10).uri == "https://storage.test/10"
        doc = await store.load("temp", "devnet")
        assert doc.items["10"].committed
        assert doc.items["10"].slot == 10

    @pytest.mark.asyncio
    async def test_commit_records_slot(self, store, fake_ledger):
        await _seed(store, 3)

        await Reconciler(store, fake_ledger, RUN).run()

        doc = await store.load("temp", "devnet")
        assert [doc.items[str(i)].slot for i in range(3)] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_commit_without_slot_is_written_again(self, store, fake_ledger):
        doc = await _seed(store, 3)
        for record in doc.items.values():
            record.committed = True
        await store.save(RUN.cache_name, RUN.env, doc)

        await Reconciler(store, fake_ledger, RUN).run()

        assert fake_ledger.append_calls == [(0, 3)]
