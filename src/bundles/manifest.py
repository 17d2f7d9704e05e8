# src/bundles/manifest.py — v1
"""Manifest helpers: placeholder discovery, substitution, parsing."""

from __future__ import annotations

import json
import re
from pathlib import Path

from batchmint.bundles.media_kinds import ALL_PLACEHOLDERS
from batchmint.core.models import Bundle, ManifestMetadata

_TOKEN_PATTERNS: dict[str, re.Pattern[str]] = {
    token: re.compile(r"(?<![\w-])" + re.escape(token)) for token in ALL_PLACEHOLDERS
}


def read_manifest_text(bundle: Bundle) -> str:
    return Path(bundle.manifest_path).read_text(encoding="utf-8")


def find_placeholders(text: str) -> set[str]:
    """Placeholder tokens referenced anywhere in the manifest text."""
    return {token for token, pattern in _TOKEN_PATTERNS.items() if pattern.search(text)}


def substitute_placeholders(bundle: Bundle, text: str) -> str:
    """Replace every reference to a bundle media file with its placeholder.

    Full paths are replaced before basenames so a path is never left
    half-rewritten. A reference only matches as a whole name, so 1.png
    never rewrites the tail of 11.png. The JSON structure is untouched.
    """
    for media in bundle.media_files:
        text = _replace_name(text, media.path, media.kind.placeholder)
    for media in bundle.media_files:
        text = _replace_name(text, Path(media.path).name, media.kind.placeholder)
    return text


def _replace_name(text: str, name: str, placeholder: str) -> str:
    pattern = re.compile(r"(?<![\w-])" + re.escape(name) + r"(?![\w-])")
    return pattern.sub(lambda _: placeholder, text)


def parse_manifest(text: str) -> ManifestMetadata:
    """Parse manifest JSON text into ManifestMetadata.

    Raises:
        ValueError: Text is not a JSON object or lacks required fields.
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("manifest is not a JSON object")
    return ManifestMetadata.model_validate(data)


def render_manifest(text: str) -> tuple[ManifestMetadata, bytes]:
    """Parse rewritten manifest text and serialize it compactly for upload."""
    metadata = parse_manifest(text)
    body = json.dumps(json.loads(text), separators=(",", ":"), ensure_ascii=False)
    return metadata, body.encode("utf-8")
