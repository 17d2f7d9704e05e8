# src/ledger/base_ledger_client.py — v1
"""Abstract remote ledger client interface.

All calls may fail transiently and raise LedgerError. The ledger does
not deduplicate appends: callers track which slots were confirmed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from batchmint.core.models import (
    DecodedAccount,
    LedgerRecord,
    ProgramConfig,
    ProgramIdentity,
)


class BaseLedgerClient(ABC):
    """Unified interface for the remote program ledger."""

    @abstractmethod
    async def initialize_program(self, config: ProgramConfig) -> ProgramIdentity:
        """Create the program account that items of a run are bound to."""

    @abstractmethod
    async def append_records(
        self, identity: ProgramIdentity, start_index: int, records: list[LedgerRecord],
    ) -> str:
        """Write records into consecutive slots starting at start_index."""

    @abstractmethod
    async def read_raw_account(self, identity: ProgramIdentity) -> bytes:
        """Return the raw program account bytes."""

    @abstractmethod
    async def read_decoded_account(self, identity: ProgramIdentity) -> DecodedAccount:
        """Return decoded program account fields."""

    @abstractmethod
    async def pay_storage(self, file_sizes: list[int]) -> str:
        """Pay for durable storage of files with the given sizes; returns tx id."""

    @abstractmethod
    async def create_collection(
        self,
        identity: ProgramIdentity,
        price: int,
        treasury: str | None,
        token_mint: str | None,
        items_available: int,
    ) -> str:
        """Publish the collection on top of the program; returns its address."""

    @abstractmethod
    async def update_collection(
        self, address: str, price: int | None, go_live_date: int | None,
    ) -> str:
        """Update price and/or go-live date; returns tx id."""

    @abstractmethod
    async def token_decimals(self, mint: str) -> int:
        """Decimals of a token mint, for price conversion."""

    @abstractmethod
    async def mint_one(self, identity: ProgramIdentity) -> str:
        """Mint the next available item of the program; returns tx id."""
