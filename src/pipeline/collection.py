# src/pipeline/collection.py — v1
"""Publish, update and mint from the collection built on an initialized program.

Payment flags are checked before any remote call: a SOL treasury and a
token payment setup are mutually exclusive, and a token mint always
comes with the token account that receives payments.
"""

from __future__ import annotations

import logging

from batchmint.core.errors import ConfigurationError
from batchmint.core.models import ProgressDocument, RunConfig
from batchmint.core.parsing import parse_date, parse_price
from batchmint.ledger.base_ledger_client import BaseLedgerClient
from batchmint.logging.context import set_phase_context
from batchmint.progress.base_progress_store import BaseProgressStore

logger = logging.getLogger(__name__)


def check_payment_flags(
    spl_token: str | None,
    spl_token_account: str | None,
    sol_treasury_account: str | None,
) -> None:
    """Reject contradictory payment account flags.

    Raises:
        ConfigurationError: Flags are inconsistent.
    """
    if spl_token or spl_token_account:
        if sol_treasury_account:
            raise ConfigurationError(
                "If spl-token-account or spl-token is set then sol-treasury-account cannot be set"
            )
        if not spl_token:
            raise ConfigurationError("If spl-token-account is set, spl-token must also be set")
        if not spl_token_account:
            raise ConfigurationError("If spl-token is set, spl-token-account must also be set")


async def _load_required(store: BaseProgressStore, run: RunConfig) -> ProgressDocument:
    document = await store.load(run.cache_name, run.env)
    if document is None:
        raise ConfigurationError(
            f"No progress document for {run.env}-{run.cache_name}; run upload first"
        )
    return document


async def create_collection(
    store: BaseProgressStore,
    ledger: BaseLedgerClient,
    run: RunConfig,
    price: str = "1",
    spl_token: str | None = None,
    spl_token_account: str | None = None,
    sol_treasury_account: str | None = None,
) -> str:
    """Create the published collection and record its address.

    Returns:
        Address of the published collection.

    Raises:
        ConfigurationError: Inconsistent flags, missing document or program.
    """
    set_phase_context("create-collection")
    check_payment_flags(spl_token, spl_token_account, sol_treasury_account)
    document = await _load_required(store, run)
    if document.program is None:
        raise ConfigurationError("Program identity is not initialized; run upload first")

    if spl_token:
        decimals = await ledger.token_decimals(spl_token)
        parsed_price = parse_price(price, 10**decimals)
        treasury = spl_token_account
    else:
        parsed_price = parse_price(price)
        treasury = sol_treasury_account

    address = await ledger.create_collection(
        document.program,
        price=parsed_price,
        treasury=treasury,
        token_mint=spl_token,
        items_available=len(document.items),
    )
    document.published_address = address
    await store.save(run.cache_name, run.env, document)
    logger.info("Collection created: %s", address)
    return address


async def update_collection(
    store: BaseProgressStore,
    ledger: BaseLedgerClient,
    run: RunConfig,
    price: str | None = None,
    date: str | None = None,
) -> str:
    """Update price and/or go-live date of the published collection.

    Returns:
        Transaction id of the update.

    Raises:
        ConfigurationError: No published collection recorded.
    """
    set_phase_context("update-collection")
    document = await _load_required(store, run)
    if not document.published_address:
        raise ConfigurationError("No published collection recorded; run create-collection first")

    seconds = parse_date(date) if date else None
    lamports = parse_price(price) if price else None

    tx = await ledger.update_collection(document.published_address, lamports, seconds)

    if seconds is not None:
        document.start_date = seconds
        logger.info(" - updated startDate timestamp: %d (%s)", seconds, date)
    if lamports is not None:
        logger.info(" - updated price: %d lamports (%s SOL)", lamports, price)
    await store.save(run.cache_name, run.env, document)
    logger.info("update-collection finished: %s", tx)
    return tx


async def mint_one(store: BaseProgressStore, ledger: BaseLedgerClient, run: RunConfig) -> str:
    """Mint one item from the run's program, signed by the run's wallet.

    Raises:
        ConfigurationError: Missing document or program identity.
    """
    set_phase_context("mint-one")
    document = await _load_required(store, run)
    if document.program is None:
        raise ConfigurationError("Program identity is not initialized; run upload first")

    tx = await ledger.mint_one(document.program)
    logger.info("mint-one finished: %s", tx)
    return tx
