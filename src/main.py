# src/main.py — v2
"""CLI entry point — upload, create-collection, update-collection, verify, mint-one.

Usage:
    batchmint upload <directory> [options]
    batchmint create-collection [options]
    batchmint update-collection [options]
    batchmint verify [options]
    batchmint mint-one [options]

Every command is idempotent: when one exits non-zero, run the same
command again and it resumes from the progress document.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

from batchmint.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    _setup_logging(args)

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _add_global_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by every command."""
    parser.add_argument(
        "-e", "--env", default="devnet",
        help="Ledger environment name (default: devnet)",
    )
    parser.add_argument(
        "-k", "--keypair", default=None,
        help="Wallet keypair location",
    )
    parser.add_argument(
        "-c", "--cache-name", default="temp",
        help="Progress document name (default: temp)",
    )
    parser.add_argument(
        "-l", "--log-level", default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "debug", "info", "warning", "error"],
        help="Log level (overrides LOG_LEVEL)",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="batchmint",
        description=f"batchmint v{__version__} — Resumable asset publishing pipeline",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- upload ---
    p_upload = subparsers.add_parser(
        "upload", help="Organize, upload and commit a directory of bundles",
    )
    p_upload.add_argument(
        "directory", type=Path, help="Directory containing manifests and media named 0-n",
    )
    _add_global_options(p_upload)
    p_upload.add_argument(
        "-n", "--number", type=int, default=None,
        help="Total number of items (default: number of bundles found)",
    )
    p_upload.add_argument(
        "-s", "--storage", choices=["arweave", "s3"], default=None,
        help="Storage backend (default: STORAGE_BACKEND)",
    )
    p_upload.add_argument(
        "--retain-authority", action=argparse.BooleanOptionalAction, default=True,
        help="Retain update authority over published items (default: yes)",
    )
    p_upload.add_argument(
        "--immutable", action="store_true",
        help="Publish items as immutable",
    )
    p_upload.add_argument(
        "--max-attempts", type=int, default=None,
        help="Upload passes before giving up (default: UPLOAD_MAX_ATTEMPTS)",
    )
    p_upload.set_defaults(func=_cmd_upload)

    # --- create-collection ---
    p_create = subparsers.add_parser(
        "create-collection", help="Publish the collection for an uploaded run",
    )
    _add_global_options(p_create)
    p_create.add_argument(
        "-p", "--price", default="1",
        help="Price denominated in SOL or spl-token (default: 1)",
    )
    p_create.add_argument(
        "-t", "--spl-token", default=None,
        help="SPL token used to price items. To use SOL leave this empty.",
    )
    p_create.add_argument(
        "-a", "--spl-token-account", default=None,
        help="SPL token account that receives payments. Required with --spl-token.",
    )
    p_create.add_argument(
        "-s", "--sol-treasury-account", default=None,
        help="SOL account that receives payments.",
    )
    p_create.set_defaults(func=_cmd_create_collection)

    # --- update-collection ---
    p_update = subparsers.add_parser(
        "update-collection", help="Update price or go-live date",
    )
    _add_global_options(p_update)
    p_update.add_argument(
        "-d", "--date", default=None,
        help='Go-live timestamp, e.g. "04 Dec 1995 00:12:00 GMT" or "now"',
    )
    p_update.add_argument("-p", "--price", default=None, help="SOL price")
    p_update.set_defaults(func=_cmd_update_collection)

    # --- verify ---
    p_verify = subparsers.add_parser(
        "verify", help="Cross-check progress, ledger and hosted content",
    )
    _add_global_options(p_verify)
    p_verify.add_argument(
        "-r", "--rpc-url", default=None,
        help="Custom ledger RPC url, since this is a heavy command",
    )
    p_verify.set_defaults(func=_cmd_verify)

    # --- mint-one ---
    p_mint = subparsers.add_parser(
        "mint-one", help="Mint one item from the program of an uploaded run",
    )
    _add_global_options(p_mint)
    p_mint.set_defaults(func=_cmd_mint_one)

    return parser


def _run_config(args: argparse.Namespace, **overrides: object):
    from batchmint.core.models import RunConfig

    return RunConfig(
        env=args.env,
        cache_name=args.cache_name,
        keypair=args.keypair,
        **overrides,  # type: ignore[arg-type]
    )


def _ledger_client(settings, args: argparse.Namespace, rpc_url: str | None = None):
    from batchmint.ledger.rpc_client import JsonRpcLedgerClient

    return JsonRpcLedgerClient(
        url=rpc_url or settings.ledger_rpc_url,
        signer=args.keypair,
        timeout=settings.http_timeout_seconds,
    )


async def _cmd_upload(args: argparse.Namespace) -> int:
    """Organize, validate, upload with bounded retry, then reconcile."""
    from batchmint.bundles.organizer import organize_directory, validate_bundles
    from batchmint.config.settings import load_settings
    from batchmint.logging.context import set_run_context
    from batchmint.pipeline.reconcile import Reconciler
    from batchmint.pipeline.runner import run_with_retry
    from batchmint.pipeline.upload import UploadOrchestrator
    from batchmint.progress.json_store import JsonProgressStore
    from batchmint.storage.storage_factory import create_storage_client

    directory: Path = args.directory
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return 1

    settings = load_settings()
    set_run_context(args.env, args.cache_name)

    bundles = organize_directory(directory)
    logger.info("Beginning the upload for %d bundles", len(bundles))
    report = await validate_bundles(bundles)

    run = _run_config(
        args,
        total_items=args.number or len(bundles),
        storage=args.storage or settings.storage_backend,
        mutable=not args.immutable,
        retain_authority=args.retain_authority,
    )
    store = JsonProgressStore(settings.cache_root)
    ledger = _ledger_client(settings, args)
    storage = create_storage_client(settings, ledger, args.env, run.storage)

    started = time.monotonic()
    try:
        orchestrator = UploadOrchestrator(store, storage, ledger, run, authority=ledger.signer)
        outcome = await run_with_retry(
            lambda: orchestrator.run_pass(report.valid),
            max_attempts=args.max_attempts or settings.upload_max_attempts,
        )
        reconciler = Reconciler(
            store, ledger, run,
            batch_size=settings.reconcile_batch_size,
            group_size=settings.reconcile_group_size,
        )
        reconciled = await reconciler.run()
    finally:
        await _close(storage, ledger)

    elapsed = time.strftime("%H:%M:%S", time.gmtime(time.monotonic() - started))
    successful = report.ok and outcome.succeeded and reconciled.successful
    logger.info("Time taken: %s", elapsed)

    print(f"\nDone. Successful = {successful}.")
    print(f"  Bundles:        {len(bundles)}")
    print(f"  Invalid:        {len(report.failures)}")
    print(f"  Upload passes:  {outcome.attempts}")
    print(f"  Committed:      {reconciled.committed}")
    if not report.ok:
        print(f"  Fix bundles {', '.join(report.failed_indices)} and rerun upload.")
    elif not successful:
        print("  Not all bundles have been uploaded and committed, rerun upload.")
    return 0 if successful else 1


async def _cmd_create_collection(args: argparse.Namespace) -> int:
    """Publish the collection on top of the initialized program."""
    from batchmint.config.settings import load_settings
    from batchmint.logging.context import set_run_context
    from batchmint.pipeline.collection import check_payment_flags, create_collection
    from batchmint.progress.json_store import JsonProgressStore

    check_payment_flags(args.spl_token, args.spl_token_account, args.sol_treasury_account)
    settings = load_settings()
    set_run_context(args.env, args.cache_name)

    ledger = _ledger_client(settings, args)
    try:
        address = await create_collection(
            JsonProgressStore(settings.cache_root),
            ledger,
            _run_config(args),
            price=args.price,
            spl_token=args.spl_token,
            spl_token_account=args.spl_token_account,
            sol_treasury_account=args.sol_treasury_account,
        )
    finally:
        await _close(ledger)

    print(f"\ncreate-collection finished. Collection address: {address}")
    return 0


async def _cmd_update_collection(args: argparse.Namespace) -> int:
    """Update price and/or go-live date of the published collection."""
    from batchmint.config.settings import load_settings
    from batchmint.logging.context import set_run_context
    from batchmint.pipeline.collection import update_collection
    from batchmint.progress.json_store import JsonProgressStore

    if not args.date and not args.price:
        logger.error("Nothing to update: pass --date and/or --price")
        return 1

    settings = load_settings()
    set_run_context(args.env, args.cache_name)

    ledger = _ledger_client(settings, args)
    try:
        tx = await update_collection(
            JsonProgressStore(settings.cache_root),
            ledger,
            _run_config(args),
            price=args.price,
            date=args.date,
        )
    finally:
        await _close(ledger)

    print(f"\nupdate-collection finished: {tx}")
    return 0


async def _cmd_verify(args: argparse.Namespace) -> int:
    """Verify committed records against ledger and hosted content."""
    from batchmint.config.settings import load_settings
    from batchmint.logging.context import set_run_context
    from batchmint.pipeline.verify import Verifier
    from batchmint.progress.json_store import JsonProgressStore
    from batchmint.storage.fetcher import ContentFetcher

    settings = load_settings()
    set_run_context(args.env, args.cache_name)

    ledger = _ledger_client(settings, args, rpc_url=args.rpc_url)
    fetcher = ContentFetcher(timeout=settings.http_timeout_seconds)
    try:
        verifier = Verifier(
            JsonProgressStore(settings.cache_root),
            ledger,
            fetcher,
            _run_config(args),
            group_size=settings.verify_group_size,
        )
        report = await verifier.run()
    finally:
        await _close(fetcher, ledger)

    print(f"\nVerification: {report.status}")
    print(f"  Checked:  {report.checked}")
    if report.failed:
        print(f"  Failed:   {len(report.failed)} (reset, rerun upload then verify)")
    if report.pending:
        print(f"  Pending:  {len(report.pending)} (not committed yet, rerun upload)")
    if report.item_count is not None:
        print(f"  Committed on ledger: {report.item_count} of {report.max_item_count}")
    return 0 if report.ok else 1


async def _cmd_mint_one(args: argparse.Namespace) -> int:
    """Mint a single item from the recorded program."""
    from batchmint.config.settings import load_settings
    from batchmint.logging.context import set_run_context
    from batchmint.pipeline.collection import mint_one
    from batchmint.progress.json_store import JsonProgressStore

    settings = load_settings()
    set_run_context(args.env, args.cache_name)

    ledger = _ledger_client(settings, args)
    try:
        tx = await mint_one(JsonProgressStore(settings.cache_root), ledger, _run_config(args))
    finally:
        await _close(ledger)

    print(f"\nmint-one finished: {tx}")
    return 0


async def _close(*clients: object) -> None:
    for client in clients:
        aclose = getattr(client, "aclose", None)
        if aclose is not None:
            await aclose()


def _setup_logging(args: argparse.Namespace) -> None:
    """Configure logging for CLI usage from settings and flags."""
    from batchmint.config.settings import load_settings
    from batchmint.logging.logger import setup_logging

    try:
        settings = load_settings()
        level, fmt = settings.log_level, settings.log_format
        log_file = str(settings.log_file) if settings.log_file else None
        rotation, retention = settings.log_rotation, settings.log_retention
    except Exception:
        level, fmt, log_file, rotation, retention = "INFO", "text", None, "10MB", 30

    if getattr(args, "log_level", None):
        level = args.log_level.upper()
    if args.verbose:
        level = "DEBUG"

    setup_logging(
        level=level, log_format=fmt, log_file=log_file,
        rotation=rotation, retention=retention,
    )


if __name__ == "__main__":
    sys.exit(main())
