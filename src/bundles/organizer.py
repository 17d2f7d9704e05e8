# src/bundles/organizer.py — v1
"""Bundle organizer — group a flat file list into per-item bundles.

Workflow:
    1. Partition paths into manifests (.json) and everything else
    2. Derive each bundle index from the manifest filename stem
    3. Attach files sharing the stem whose extension is a known media kind
    4. Validate all bundles concurrently, aggregating failures

Organization has no side effects and fails fast on duplicate indices.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from batchmint.bundles.manifest import (
    find_placeholders,
    parse_manifest,
    read_manifest_text,
)
from batchmint.bundles.media_kinds import MANIFEST_EXTENSION, kind_for
from batchmint.bundles.models import ValidationFailure, ValidationReport
from batchmint.core.errors import BundleValidationError, DuplicateIndexError
from batchmint.core.models import Bundle, MediaFile

logger = logging.getLogger(__name__)


def organize_files(paths: list[str]) -> list[Bundle]:
    """Group raw file paths into bundles, ordered by manifest discovery.

    Args:
        paths: Flat list of file paths (manifests and media mixed).

    Returns:
        One Bundle per manifest.

    Raises:
        DuplicateIndexError: Two manifests share the same filename stem.
    """
    manifests: dict[str, str] = {}
    others: list[str] = []

    for path in paths:
        p = Path(path)
        if p.suffix.lower() == MANIFEST_EXTENSION:
            index = p.stem
            if index in manifests:
                raise DuplicateIndexError(index, manifests[index], path)
            manifests[index] = path
        else:
            others.append(path)

    by_stem: dict[str, list[str]] = {}
    for path in others:
        by_stem.setdefault(Path(path).stem, []).append(path)

    bundles: list[Bundle] = []
    for index, manifest_path in manifests.items():
        media: list[MediaFile] = []
        seen_extensions: set[str] = set()
        for path in by_stem.get(index, []):
            kind = kind_for(path)
            if kind is None:
                logger.debug("Ignoring %s: no media kind for extension", path)
                continue
            if kind.extension in seen_extensions:
                logger.debug("Ignoring %s: bundle %s already has a %s", path, index, kind.extension)
                continue
            seen_extensions.add(kind.extension)
            media.append(MediaFile(path=path, kind=kind))
        bundles.append(
            Bundle(index=index, manifest_path=manifest_path, media_files=tuple(media))
        )

    logger.info(
        "Organized %d files into %d bundles", len(paths), len(bundles),
    )
    return bundles


def organize_directory(directory: Path) -> list[Bundle]:
    """List a directory (non-recursive, sorted) and organize its files."""
    if not directory.is_dir():
        msg = f"Asset root is not a directory: {directory}"
        raise ValueError(msg)
    paths = [str(p) for p in sorted(directory.iterdir()) if p.is_file()]
    return organize_files(paths)


def validate_bundle(bundle: Bundle) -> None:
    """Check that a bundle's manifest is readable and fully satisfiable.

    Raises:
        BundleValidationError: Manifest unreadable, not a JSON object, or
            referencing a placeholder with no matching media file.
    """
    try:
        text = read_manifest_text(bundle)
    except OSError as e:
        raise BundleValidationError(bundle.index, f"cannot read manifest: {e}") from e

    try:
        parse_manifest(text)
    except ValueError as e:
        raise BundleValidationError(bundle.index, f"invalid manifest: {e}") from e

    missing = find_placeholders(text) - bundle.placeholders
    if missing:
        raise BundleValidationError(
            bundle.index,
            f"manifest references {', '.join(sorted(missing))} with no matching media file",
        )


async def validate_bundles(bundles: list[Bundle]) -> ValidationReport:
    """Validate every bundle concurrently and aggregate all failures.

    One bundle's failure never prevents validation of the others.
    """
    results = await asyncio.gather(
        *(asyncio.to_thread(validate_bundle, b) for b in bundles),
        return_exceptions=True,
    )

    report = ValidationReport()
    for bundle, result in zip(bundles, results):
        if isinstance(result, BundleValidationError):
            logger.error("Validation failed: %s", result)
            report.failures.append(
                ValidationFailure(index=bundle.index, reason=result.reason)
            )
        elif isinstance(result, BaseException):
            raise result
        else:
            report.valid.append(bundle)

    logger.info(
        "Validated %d bundles: %d valid, %d failed",
        len(bundles), len(report.valid), len(report.failures),
    )
    return report
