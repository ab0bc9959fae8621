"""
Importer registry.

Maps source types (and a few friendly aliases) to importer classes and
detects the playlist type of a bare URL.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs, urlsplit

from ..infra.exceptions import InvalidURLError, UnsupportedPlaylistTypeError
from ..shared.types import SourceType
from .importers.base import BaseImporter, ImporterNotFoundError
from .importers.m3u_importer import M3UImporter
from .importers.xtream_importer import XtreamImporter

# Importer aliases for better user experience
ALIASES = {
    "m3u": "m3u",
    "m3u8": "m3u",
    "xtream": "xtream",
    "xtream-codes": "xtream",
    "xc": "xtream",
}

# Available importer classes
SOURCES: dict[str, type[BaseImporter]] = {
    "m3u": M3UImporter,
    "xtream": XtreamImporter,
}


class UnsupportedSource(ImporterNotFoundError):
    """Raised when an unsupported source type is requested."""

    pass


def resolve_source_type(name: str | SourceType) -> SourceType:
    value = name.value if isinstance(name, SourceType) else str(name)
    key = ALIASES.get(value.strip().lower())
    if key is None:
        raise UnsupportedSource(
            f"Unsupported source type: {value}. Available types: {', '.join(sorted(SOURCES))}"
        )
    return SourceType(key)


def get_importer(name: str | SourceType, **kwargs: Any) -> BaseImporter:
    """
    Get an importer instance by source type or alias.

    Raises:
        UnsupportedSource: If no importer handles ``name``
        ImporterConfigurationError: If the importer rejects ``kwargs``
    """
    source_type = resolve_source_type(name)
    return SOURCES[source_type.value](**kwargs)


def list_importers() -> list[dict[str, Any]]:
    """Every registered source type with its configuration parameters."""
    return [{"type": key, **cls.get_help()} for key, cls in SOURCES.items()]


def detect_playlist_type(url: str) -> SourceType:
    """Guess the playlist type of ``url``.

    A path ending in ``.m3u``/``.m3u8`` is M3U; non-empty ``username`` and
    ``password`` query parameters mean Xtream Codes.
    """
    if not url or not url.strip():
        raise InvalidURLError("Playlist URL is empty")

    parts = urlsplit(url.strip())
    path = parts.path.lower()
    if path.endswith((".m3u", ".m3u8")):
        return SourceType.M3U

    query = parse_qs(parts.query)
    if (query.get("username") or [""])[0] and (query.get("password") or [""])[0]:
        return SourceType.XTREAM

    raise UnsupportedPlaylistTypeError(f"Cannot tell the playlist type of {parts.scheme}://{parts.netloc}{parts.path}")
