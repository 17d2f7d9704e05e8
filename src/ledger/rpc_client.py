# src/ledger/rpc_client.py — v1
"""JSON-RPC 2.0 ledger client over httpx.

The RPC gateway owns signing and consensus; this client only forwards
the signer (wallet keypair path) with every write and decodes replies.
Raw account data is transferred base64 encoded.
"""

from __future__ import annotations

import base64
import itertools
import logging
from typing import Any

import httpx

from batchmint.core.errors import LedgerError
from batchmint.core.models import (
    DecodedAccount,
    LedgerRecord,
    ProgramConfig,
    ProgramIdentity,
)
from batchmint.ledger.base_ledger_client import BaseLedgerClient

logger = logging.getLogger(__name__)


class JsonRpcLedgerClient(BaseLedgerClient):
    """Ledger client speaking JSON-RPC to a program gateway."""

    def __init__(
        self,
        url: str,
        signer: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: JSON-RPC endpoint.
            signer: Wallet keypair reference forwarded with writes.
            timeout: Per-request timeout in seconds.
            client: Optional preconfigured httpx client (tests inject a
                MockTransport here).
        """
        self._url = url
        self._signer = signer
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    @property
    def signer(self) -> str | None:
        return self._signer

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, params: dict[str, Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            response = await self._client.post(self._url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise LedgerError(f"{method} failed: {e}") from e
        except ValueError as e:
            raise LedgerError(f"{method} returned invalid JSON: {e}") from e

        if not isinstance(body, dict):
            raise LedgerError(f"{method} returned a non-object reply")
        if body.get("error") is not None:
            err = body["error"]
            message = err.get("message", err) if isinstance(err, dict) else err
            raise LedgerError(f"{method} rejected: {message}")
        logger.debug("RPC %s ok", method)
        return body.get("result")

    async def initialize_program(self, config: ProgramConfig) -> ProgramIdentity:
        result = await self._call(
            "initializeProgram",
            {"signer": self._signer, "config": config.model_dump()},
        )
        return ProgramIdentity.model_validate(result)

    async def append_records(
        self, identity: ProgramIdentity, start_index: int, records: list[LedgerRecord],
    ) -> str:
        result = await self._call(
            "appendRecords",
            {
                "signer": self._signer,
                "program": identity.identity,
                "startIndex": start_index,
                "records": [r.model_dump() for r in records],
            },
        )
        return str(result)

    async def read_raw_account(self, identity: ProgramIdentity) -> bytes:
        result = await self._call("getRawAccount", {"program": identity.identity})
        try:
            return base64.b64decode(result)
        except (TypeError, ValueError) as e:
            raise LedgerError(f"getRawAccount returned undecodable data: {e}") from e

    async def read_decoded_account(self, identity: ProgramIdentity) -> DecodedAccount:
        result = await self._call("getDecodedAccount", {"program": identity.identity})
        return DecodedAccount.model_validate(result)

    async def pay_storage(self, file_sizes: list[int]) -> str:
        result = await self._call(
            "payStorage", {"signer": self._signer, "fileSizes": file_sizes},
        )
        return str(result)

    async def create_collection(
        self,
        identity: ProgramIdentity,
        price: int,
        treasury: str | None,
        token_mint: str | None,
        items_available: int,
    ) -> str:
        result = await self._call(
            "createCollection",
            {
                "signer": self._signer,
                "program": identity.identity,
                "uuid": identity.uuid,
                "price": price,
                "treasury": treasury,
                "tokenMint": token_mint,
                "itemsAvailable": items_available,
            },
        )
        return str(result)

    async def update_collection(
        self, address: str, price: int | None, go_live_date: int | None,
    ) -> str:
        result = await self._call(
            "updateCollection",
            {
                "signer": self._signer,
                "collection": address,
                "price": price,
                "goLiveDate": go_live_date,
            },
        )
        return str(result)

    async def token_decimals(self, mint: str) -> int:
        result = await self._call("getTokenDecimals", {"mint": mint})
        return int(result)

    async def mint_one(self, identity: ProgramIdentity) -> str:
        result = await self._call(
            "mintOne",
            {"signer": self._signer, "program": identity.identity, "uuid": identity.uuid},
        )
        return str(result)
