# src/bundles/media_kinds.py — v1
"""Media kind registry: file extension -> placeholder token and content type.

Static capability lookup. A file whose extension is not listed here is
never assigned to a bundle.
"""

from __future__ import annotations

from pathlib import Path

from batchmint.core.models import MediaKind

MANIFEST_EXTENSION = ".json"

MEDIA_KINDS: dict[str, MediaKind] = {
    ".gif": MediaKind(
        extension=".gif", kind="image", placeholder="image.gif", content_type="image/gif",
    ),
    ".png": MediaKind(
        extension=".png", kind="image", placeholder="image.png", content_type="image/png",
    ),
    ".mp3": MediaKind(
        extension=".mp3", kind="audio", placeholder="audio.mp3", content_type="audio/mp3",
    ),
    ".wav": MediaKind(
        extension=".wav", kind="audio", placeholder="audio.wav", content_type="audio/wav",
    ),
    ".mp4": MediaKind(
        extension=".mp4", kind="video", placeholder="video.mp4", content_type="video/mp4",
    ),
}

ALL_PLACEHOLDERS: frozenset[str] = frozenset(k.placeholder for k in MEDIA_KINDS.values())


def kind_for(path: str | Path) -> MediaKind | None:
    """Look up the media kind for a path by its extension."""
    return MEDIA_KINDS.get(Path(path).suffix.lower())
