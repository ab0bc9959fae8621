"""
M3U / M3U8 playlist importer.

Reads an extended M3U playlist line by line. Each ``#EXTINF`` directive is
held as a pending entry and committed only once its stream URL line arrives,
so a trailing or interrupted directive never yields a half record.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

import requests

from ...infra.exceptions import InvalidURLError, NetworkError, ParsingFailedError
from ...infra.settings import settings
from ...shared.types import SourceType
from ..http import create_session
from .base import (
    BaseImporter,
    ImporterConfig,
    ParsedChannel,
    ParsedMovie,
    ParsedPlaylist,
)

logger = logging.getLogger(__name__)

HEADER = "#EXTM3U"
EXTINF = "#EXTINF:"
EXTGRP = "#EXTGRP:"

_ATTRIBUTE = re.compile(r"""([\w-]+)=("[^"]*"|'[^']*'|[^,\s]+)""")
_HEADER_EPG = re.compile(r"""(?:url-tvg|x-tvg-url)=("[^"]*"|'[^']*'|[^\s]+)""", re.IGNORECASE)
_DURATION = re.compile(r"^\s*(-?\d+(?:\.\d+)?)")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _split_display_name(body: str) -> tuple[str, str | None]:
    """Split ``body`` at the first comma outside quotes into (attrs, name)."""
    quote: str | None = None
    for index, char in enumerate(body):
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == ",":
            return body[:index], body[index + 1 :]
    return body, None


def parse_extinf(line: str) -> dict[str, Any] | None:
    """Parse one ``#EXTINF`` line into its attributes and title.

    Returns None when the directive is malformed (no duration).
    """
    body = line[len(EXTINF) :]
    match = _DURATION.match(body)
    if match is None:
        return None

    attr_part, display_name = _split_display_name(body[match.end() :])
    attributes = {key.lower(): _unquote(value) for key, value in _ATTRIBUTE.findall(attr_part)}

    title = _unquote(display_name.strip()) if display_name else ""
    if not title:
        title = attributes.get("tvg-name") or "Unknown"

    return {
        "duration": float(match.group(1)),
        "title": title.strip(),
        "tvg_id": attributes.get("tvg-id") or None,
        "tvg_name": attributes.get("tvg-name") or None,
        "logo": attributes.get("tvg-logo") or None,
        "group": attributes.get("group-title") or None,
    }


def is_movie_group(group: str | None) -> bool:
    return bool(group) and "movie" in group.lower()


def parse_m3u(lines: Iterable[str]) -> ParsedPlaylist:
    """Parse M3U text lines into a ParsedPlaylist.

    Malformed directives and orphan URL lines are skipped and counted. Raises
    ParsingFailedError when the payload has neither an ``#EXTM3U`` header nor
    any ``#EXTINF`` directive, or when it had entries and none of them could
    be read. A header-only playlist is a valid empty result.
    """
    result = ParsedPlaylist()
    saw_header = False
    saw_directive = False
    pending: dict[str, Any] | None = None

    for line_number, raw in enumerate(lines, start=1):
        line = raw.strip().lstrip("\ufeff")
        if not line:
            continue

        if line.startswith(HEADER):
            saw_header = True
            match = _HEADER_EPG.search(line)
            if match and result.epg_url is None:
                result.epg_url = _unquote(match.group(1))
            continue

        if line.startswith(EXTINF):
            saw_directive = True
            if pending is not None:
                result.skipped += 1
                logger.debug("Dropping entry without URL before line %d", line_number)
            pending = parse_extinf(line)
            if pending is None:
                result.skipped += 1
                logger.debug("Skipping malformed #EXTINF at line %d", line_number)
            continue

        if line.startswith(EXTGRP):
            if pending is not None and not pending["group"]:
                pending["group"] = line[len(EXTGRP) :].strip() or None
            continue

        if line.startswith("#"):
            continue

        if pending is None:
            result.skipped += 1
            logger.debug("Skipping URL without #EXTINF at line %d", line_number)
            continue

        _commit(result, pending, line)
        pending = None

    if pending is not None:
        result.skipped += 1
        logger.debug("Dropping trailing #EXTINF without URL")

    if not saw_header and not saw_directive:
        raise ParsingFailedError("Payload is not an M3U playlist (no #EXTM3U header or #EXTINF entries)")
    if result.is_empty and result.skipped:
        raise ParsingFailedError(f"No usable playlist entries: all {result.skipped} were malformed or had no URL")

    return result


def _commit(result: ParsedPlaylist, entry: dict[str, Any], url: str) -> None:
    try:
        if is_movie_group(entry["group"]):
            result.movies.append(
                ParsedMovie(
                    title=entry["title"],
                    stream_url=url,
                    stable_id=entry["tvg_id"],
                    poster_url=entry["logo"],
                    category=entry["group"],
                )
            )
        else:
            result.channels.append(
                ParsedChannel(
                    name=entry["title"],
                    stream_url=url,
                    tvg_id=entry["tvg_id"],
                    logo_url=entry["logo"],
                    category=entry["group"],
                    stable_id=entry["tvg_id"],
                )
            )
    except ValueError as e:
        result.skipped += 1
        logger.debug("Skipping entry for %s: %s", url, e)


def _decode_lines(chunks: Iterable[bytes]) -> Iterator[str]:
    for number, chunk in enumerate(chunks, start=1):
        try:
            yield chunk.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParsingFailedError(f"Playlist is not valid UTF-8 (line {number}): {e}") from e


class M3UImporter(BaseImporter):
    """Imports an M3U playlist from an HTTP(S) URL, a file:// URL or a local path."""

    name = "m3u"
    source_type = SourceType.M3U

    def __init__(self, url: str, timeout: float | None = None, **config: Any) -> None:
        super().__init__(url=url, timeout=timeout, **config)
        self.url = url.strip()
        self.timeout = timeout if timeout is not None else settings.http_timeout

    @classmethod
    def get_config_schema(cls) -> ImporterConfig:
        return ImporterConfig(
            required_params=[{"name": "url", "description": "Playlist URL or local file path"}],
            optional_params=[
                {"name": "timeout", "description": "HTTP timeout in seconds", "default": str(settings.http_timeout)}
            ],
            description="Extended M3U / M3U8 playlist",
        )

    def _local_path(self) -> Path | None:
        parts = urlsplit(self.url)
        if parts.scheme == "file":
            return Path(unquote(parts.path))
        if parts.scheme in ("http", "https"):
            return None
        if parts.scheme and len(parts.scheme) > 1:
            raise InvalidURLError(f"Unsupported URL scheme '{parts.scheme}' for playlist {self.url}")
        return Path(self.url)

    def _iter_remote(self) -> Iterator[str]:
        session = create_session()
        try:
            with session.get(self.url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                yield from _decode_lines(response.iter_lines())
        except requests.RequestException as e:
            raise NetworkError(f"Failed to download playlist: {e}", url=self.url) from e
        finally:
            session.close()

    def _iter_local(self, path: Path) -> Iterator[str]:
        try:
            with path.open("rb") as handle:
                yield from _decode_lines(handle)
        except OSError as e:
            raise InvalidURLError(f"Cannot read playlist file {path}: {e}") from e

    def iter_lines(self) -> Iterator[str]:
        path = self._local_path()
        if path is None:
            return self._iter_remote()
        return self._iter_local(path)

    def parse(self) -> ParsedPlaylist:
        result = parse_m3u(self.iter_lines())
        logger.info(
            "Parsed M3U playlist: %d channels, %d movies, %d skipped",
            len(result.channels),
            len(result.movies),
            result.skipped,
        )
        return result
