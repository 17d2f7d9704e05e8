# tests/unit/pipeline/test_unit_collection.py — v1
"""Tests for pipeline/collection.py — create and update the collection."""

from __future__ import annotations

import pytest

from batchmint.core.errors import ConfigurationError
from batchmint.core.models import ProgramIdentity, ProgressDocument, RunConfig
from batchmint.pipeline.collection import (
    check_payment_flags,
    create_collection,
    mint_one,
    update_collection,
)

RUN = RunConfig(env="devnet", cache_name="temp")


async def _seed(store, published: str | None = None) -> None:
    doc = ProgressDocument(
        program=ProgramIdentity(identity="Prog1111", uuid="Prog11"),
        published_address=published,
    )
    for i in range(4):
        doc.record(str(i)).content_link = f"https://storage.test/{i}"
    await store.save(RUN.cache_name, RUN.env, doc)


class TestPaymentFlags:
    def test_sol_only(self):
        check_payment_flags(None, None, "Treasury")

    def test_token_and_treasury_conflict(self):
        with pytest.raises(ConfigurationError, match="cannot be set"):
            check_payment_flags("Mint", "Acct", "Treasury")

    def test_token_without_account(self):
        with pytest.raises(ConfigurationError, match="spl-token-account must also"):
            check_payment_flags("Mint", None, None)

    def test_account_without_token(self):
        with pytest.raises(ConfigurationError, match="spl-token must also"):
            check_payment_flags(None, "Acct", None)


class TestCreateCollection:
    @pytest.mark.asyncio
    async def test_sol_price(self, store, fake_ledger):
        await _seed(store)

        address = await create_collection(store, fake_ledger, RUN, price="2.5", sol_treasury_account="T1")

        assert address == "Coll1111"
        call = fake_ledger.collections[0]
        assert call["price"] == 2_500_000_000
        assert call["treasury"] == "T1"
        assert call["items_available"] == 4
        doc = await store.load("temp", "devnet")
        assert doc.published_address == "Coll1111"

    @pytest.mark.asyncio
    async def test_token_price_uses_decimals(self, store, fake_ledger):
        await _seed(store)
        fake_ledger.decimals = 6

        await create_collection(store, fake_ledger, RUN, price="3", spl_token="Mint", spl_token_account="Acct")

        call = fake_ledger.collections[0]
        assert call["price"] == 3_000_000
        assert call["treasury"] == "Acct"
        assert call["token_mint"] == "Mint"

    @pytest.mark.asyncio
    async def test_flags_checked_before_remote_calls(self, store, fake_ledger):
        await _seed(store)
        with pytest.raises(ConfigurationError):
            await create_collection(store, fake_ledger, RUN, spl_token="Mint")
        assert fake_ledger.collections == []

    @pytest.mark.asyncio
    async def test_requires_program(self, store, fake_ledger):
        await store.save("temp", "devnet", ProgressDocument())
        with pytest.raises(ConfigurationError, match="not initialized"):
            await create_collection(store, fake_ledger, RUN)


class TestUpdateCollection:
    @pytest.mark.asyncio
    async def test_updates_date_and_price(self, store, fake_ledger):
        await _seed(store, published="Coll1111")

        tx = await update_collection(
            store, fake_ledger, RUN, price="1", date="04 Dec 1995 00:12:00 GMT",
        )

        assert tx == "tx-update"
        assert fake_ledger.updates == [("Coll1111", 1_000_000_000, 818035920)]
        doc = await store.load("temp", "devnet")
        assert doc.start_date == 818035920

    @pytest.mark.asyncio
    async def test_price_only_keeps_date(self, store, fake_ledger):
        await _seed(store, published="Coll1111")
        await update_collection(store, fake_ledger, RUN, price="0.5")
        assert fake_ledger.updates == [("Coll1111", 500_000_000, None)]
        doc = await store.load("temp", "devnet")
        assert doc.start_date is None

    @pytest.mark.asyncio
    async def test_requires_published_collection(self, store, fake_ledger):
        await _seed(store)
        with pytest.raises(ConfigurationError, match="create-collection"):
            await update_collection(store, fake_ledger, RUN, price="1")


class TestMintOne:
    @pytest.mark.asyncio
    async def test_mints_from_program(self, store, fake_ledger):
        await _seed(store)

        tx = await mint_one(store, fake_ledger, RUN)

        assert tx == "tx-mint-1"
        assert fake_ledger.mints == ["Prog1111"]

    @pytest.mark.asyncio
    async def test_requires_program(self, store, fake_ledger):
        await store.save(RUN.cache_name, RUN.env, ProgressDocument())
        with pytest.raises(ConfigurationError, match="not initialized"):
            await mint_one(store, fake_ledger, RUN)
        assert fake_ledger.mints == []

    @pytest.mark.asyncio
    async def test_requires_document(self, store, fake_ledger):
        with pytest.raises(ConfigurationError, match="run upload first"):
            await mint_one(store, fake_ledger, RUN)
