"""
XMLTV guide parser.

Streams ``<programme>`` elements out of an XMLTV document with
``ElementTree.iterparse`` so large guides never sit in memory whole.
Programmes missing a channel, start, stop or title, or carrying an
unparseable timestamp, are skipped and counted.
"""

from __future__ import annotations

import gzip
import io
import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, timezone
from typing import IO

import requests

from ...infra.exceptions import NetworkError, ParsingFailedError
from ...infra.settings import settings
from ..http import create_session

logger = logging.getLogger(__name__)

_TIMESTAMP = re.compile(r"^(\d{14})(?:\s*([+-])(\d{2}):?(\d{2}))?$")


def parse_xmltv_timestamp(value: str) -> datetime:
    """Parse ``yyyyMMddHHmmss ±HHMM`` into an aware datetime.

    The explicit offset is authoritative; a missing offset means UTC.

    Raises:
        ValueError: If the value does not match the format
    """
    match = _TIMESTAMP.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid XMLTV timestamp: {value!r}")

    digits, sign, hours, minutes = match.groups()
    tz = UTC
    if sign:
        offset = timedelta(hours=int(hours), minutes=int(minutes))
        tz = timezone(-offset if sign == "-" else offset)
    return datetime.strptime(digits, "%Y%m%d%H%M%S").replace(tzinfo=tz)


@dataclass(frozen=True)
class ParsedProgramme:
    channel: str
    start: datetime
    stop: datetime
    title: str
    description: str | None = None
    category: str | None = None


def _child_text(element: ET.Element, tag: str) -> str | None:
    child = element.find(tag)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


class XMLTVParser:
    """Incremental XMLTV reader; ``parsed`` and ``skipped`` count what it saw."""

    def __init__(self) -> None:
        self.parsed = 0
        self.skipped = 0

    def _to_programme(self, element: ET.Element) -> ParsedProgramme | None:
        channel = (element.get("channel") or "").strip()
        start_raw = element.get("start")
        stop_raw = element.get("stop")
        title = _child_text(element, "title")
        if not channel or not start_raw or not stop_raw or not title:
            return None

        try:
            start = parse_xmltv_timestamp(start_raw)
            stop = parse_xmltv_timestamp(stop_raw)
        except ValueError as e:
            logger.debug("Skipping programme on %s: %s", channel, e)
            return None
        if stop <= start:
            return None

        return ParsedProgramme(
            channel=channel,
            start=start,
            stop=stop,
            title=title,
            description=_child_text(element, "desc"),
            category=_child_text(element, "category"),
        )

    def iter_programmes(self, stream: IO[bytes]) -> Iterator[ParsedProgramme]:
        """Yield every well-formed programme in ``stream``.

        A document that breaks off mid-way keeps what was read so far; one that
        cannot be read at all raises ParsingFailedError.
        """
        try:
            for _, element in ET.iterparse(stream, events=("end",)):
                if element.tag != "programme":
                    continue
                programme = self._to_programme(element)
                element.clear()
                if programme is None:
                    self.skipped += 1
                    continue
                self.parsed += 1
                yield programme
        except (ET.ParseError, OSError) as e:
            if self.parsed == 0 and self.skipped == 0:
                raise ParsingFailedError(f"Guide is not valid XMLTV: {e}") from e
            logger.warning("XMLTV document truncated after %d programmes: %s", self.parsed, e)


def open_payload(payload: bytes) -> IO[bytes]:
    """Wrap raw guide bytes, transparently un-gzipping compressed guides."""
    if payload[:2] == b"\x1f\x8b":
        return gzip.GzipFile(fileobj=io.BytesIO(payload))
    return io.BytesIO(payload)


def fetch_xmltv(url: str, timeout: float | None = None) -> bytes:
    """Download a guide document.

    Raises:
        NetworkError: If the download fails
    """
    session = create_session()
    try:
        response = session.get(url, timeout=timeout if timeout is not None else settings.http_timeout)
        response.raise_for_status()
        return response.content
    except requests.RequestException as e:
        raise NetworkError(f"Failed to download guide: {e}", url=url) from e
    finally:
        session.close()
