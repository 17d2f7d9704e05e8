# src/progress/json_store.py — v1
"""JSON file-based progress store (default).

Stores each progress document as one JSON file named ``<env>-<cache_name>``
under the cache root. Saves write a sibling temp file and ``os.replace``
it over the target, so readers only ever see a complete document.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from batchmint.core.errors import ProgressStoreError
from batchmint.core.models import ProgramIdentity, ProgressDocument, ProgressRecord
from batchmint.progress.base_progress_store import BaseProgressStore

logger = logging.getLogger(__name__)


class JsonProgressStore(BaseProgressStore):
    """File-based progress store using one JSON document per run."""

    def __init__(self, cache_root: Path | str = ".cache") -> None:
        self._root = Path(cache_root).expanduser()

    def path_for(self, cache_name: str, env: str) -> Path:
        """Return the document path for an (env, cache name) pair."""
        return self._root / f"{env}-{cache_name}"

    async def load(self, cache_name: str, env: str) -> ProgressDocument | None:
        """Load the progress document.

        Items that fail validation are dropped and treated as absent so
        the run resumes by redoing them. Without a usable program identity
        no record counts as committed. A document that cannot be read or
        parsed at all raises ProgressStoreError.
        """
        path = self.path_for(cache_name, env)
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ProgressStoreError(f"Cannot read progress document {path}: {e}") from e
        if not isinstance(data, dict):
            raise ProgressStoreError(f"Progress document {path} is not a JSON object")

        raw_items = data.pop("items", None) or {}
        if not isinstance(raw_items, dict):
            raise ProgressStoreError(f"Progress document {path} has malformed items")

        program = data.pop("program", None)
        try:
            document = ProgressDocument.model_validate(data)
        except ValidationError as e:
            raise ProgressStoreError(f"Invalid progress document {path}: {e}") from e

        document.program = _load_program(program, path)
        document.env = document.env or env
        document.cache_name = document.cache_name or cache_name

        for index, raw in raw_items.items():
            try:
                document.items[index] = ProgressRecord.model_validate(raw)
            except ValidationError as e:
                logger.warning("Dropping unreadable record %s from %s: %s", index, path, e)

        if document.program is None:
            stale = [k for k, r in document.items.items() if r.committed]
            for key in stale:
                document.items[key].uncommit()
            if stale:
                logger.warning(
                    "No program identity in %s; %d committed records will be written again",
                    path, len(stale),
                )

        logger.debug("Loaded %d records from %s", len(document.items), path)
        return document

    async def save(self, cache_name: str, env: str, document: ProgressDocument) -> None:
        """Atomically replace the document on disk."""
        path = self.path_for(cache_name, env)
        path.parent.mkdir(parents=True, exist_ok=True)

        document.env = env
        document.cache_name = cache_name
        payload = document.model_dump_json(by_alias=True, indent=2)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _load_program(raw: object, path: Path) -> ProgramIdentity | None:
    """Parse the program section; an empty or partial one means uninitialized."""
    if not raw:
        return None
    try:
        return ProgramIdentity.model_validate(raw)
    except ValidationError:
        logger.warning("Program identity in %s is incomplete, treating as uninitialized", path)
        return None
