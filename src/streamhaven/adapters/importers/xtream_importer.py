"""
Xtream Codes importer.

Fetches the three categorized listings (live streams, VOD streams, series)
from a panel's ``player_api.php`` endpoint and maps each JSON object to a
parsed record. Objects that fail validation are skipped one by one.

By default a failing category is recorded and the others still import; with
``isolate_categories=False`` the first failing category aborts the whole run.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any
from urllib.parse import parse_qs, urlsplit

import pydantic
import requests
from pydantic import BaseModel, ConfigDict, field_validator

from ...infra.exceptions import (
    InvalidURLError,
    NetworkError,
    ParsingFailedError,
    PlaylistImportError,
)
from ...infra.logging import redact_value
from ...infra.settings import settings
from ...shared.types import SourceType, XtreamCategory
from ..http import create_session
from .base import (
    BaseImporter,
    ImporterConfig,
    ParsedChannel,
    ParsedMovie,
    ParsedPlaylist,
    ParsedSeries,
)

logger = logging.getLogger(__name__)

API_PATH = "/player_api.php"
LIVE_EXTENSION = "m3u8"
DEFAULT_VOD_EXTENSION = "mp4"


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class _XtreamObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    category_id: str | None = None
    rating: str | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name is blank")
        return value.strip()

    @field_validator("category_id", "rating", mode="before")
    @classmethod
    def _to_text(cls, value: Any) -> str | None:
        return _optional_text(value)


class XtreamLiveStream(_XtreamObject):
    stream_id: int
    stream_icon: str | None = None
    epg_channel_id: str | None = None

    @field_validator("stream_icon", "epg_channel_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        return _optional_text(value)


class XtreamVodStream(_XtreamObject):
    stream_id: int
    stream_icon: str | None = None
    container_extension: str | None = None
    plot: str | None = None

    @field_validator("stream_icon", "container_extension", "plot", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        return _optional_text(value)


class XtreamSeries(_XtreamObject):
    series_id: int
    cover: str | None = None
    plot: str | None = None
    release_date: str | None = None

    @field_validator("cover", "plot", "release_date", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        return _optional_text(value)

    @property
    def released_on(self) -> date | None:
        if not self.release_date:
            return None
        try:
            return datetime.strptime(self.release_date[:10], "%Y-%m-%d").date()
        except ValueError:
            return None


def credentials_from_url(url: str) -> tuple[str | None, str | None]:
    query = parse_qs(urlsplit(url).query)
    username = (query.get("username") or [None])[0]
    password = (query.get("password") or [None])[0]
    return username, password


class XtreamImporter(BaseImporter):
    """Imports live, VOD and series listings from an Xtream Codes panel."""

    name = "xtream"
    source_type = SourceType.XTREAM

    def __init__(
        self,
        url: str,
        username: str | None = None,
        password: str | None = None,
        isolate_categories: bool | None = None,
        timeout: float | None = None,
        **config: Any,
    ) -> None:
        url_user, url_pass = credentials_from_url(url)
        username = username or url_user
        password = password or url_pass
        super().__init__(url=url, username=username, password=password, **config)

        parts = urlsplit(url.strip())
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InvalidURLError(f"Xtream Codes portal URL must be http(s): {url}")

        # Credentials in the netloc are never part of the portal base
        host = parts.hostname or ""
        if parts.port:
            host = f"{host}:{parts.port}"
        self.base_url = f"{parts.scheme}://{host}"
        self.username = username
        self.password = password
        self.isolate_categories = (
            settings.xtream_isolate_categories if isolate_categories is None else isolate_categories
        )
        self.timeout = timeout if timeout is not None else settings.http_timeout

    @classmethod
    def get_config_schema(cls) -> ImporterConfig:
        return ImporterConfig(
            required_params=[
                {"name": "url", "description": "Portal base URL"},
                {"name": "username", "description": "Account username (or username= in the URL)"},
                {"name": "password", "description": "Account password (or password= in the URL)"},
            ],
            optional_params=[
                {
                    "name": "isolate_categories",
                    "description": "Keep importing other categories when one fails",
                    "default": str(settings.xtream_isolate_categories),
                },
                {"name": "timeout", "description": "HTTP timeout in seconds", "default": str(settings.http_timeout)},
            ],
            description="Xtream Codes panel (live, VOD and series listings)",
        )

    def stream_url(self, kind: str, stream_id: int, extension: str) -> str:
        return f"{self.base_url}/{kind}/{self.username}/{self.password}/{stream_id}.{extension}"

    def fetch_category(self, category: XtreamCategory, session: requests.Session) -> list[Any]:
        """GET one categorized listing and return the decoded JSON array."""
        params = {"username": self.username, "password": self.password, "action": category.value}
        try:
            response = session.get(f"{self.base_url}{API_PATH}", params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NetworkError(
                f"Failed to fetch {category.value} from {self.base_url}: {redact_value(str(e))}",
                url=self.base_url,
                category=category.value,
            ) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ParsingFailedError(f"{category.value} from {self.base_url} is not valid JSON: {e}") from e

        # Panels answer an empty category with {} or null instead of []
        if payload is None or payload == {}:
            return []
        if not isinstance(payload, list):
            raise ParsingFailedError(
                f"{category.value} from {self.base_url} returned {type(payload).__name__}, expected a list"
            )
        return payload

    def _map_live(self, obj: Any) -> ParsedChannel:
        live = XtreamLiveStream.model_validate(obj)
        return ParsedChannel(
            name=live.name,
            stream_url=self.stream_url("live", live.stream_id, LIVE_EXTENSION),
            tvg_id=live.epg_channel_id,
            logo_url=live.stream_icon,
            category=live.category_id,
            stable_id=str(live.stream_id),
        )

    def _map_vod(self, obj: Any) -> ParsedMovie:
        vod = XtreamVodStream.model_validate(obj)
        return ParsedMovie(
            title=vod.name,
            stream_url=self.stream_url("movie", vod.stream_id, vod.container_extension or DEFAULT_VOD_EXTENSION),
            stable_id=str(vod.stream_id),
            poster_url=vod.stream_icon,
            rating=vod.rating,
            category=vod.category_id,
            summary=vod.plot,
        )

    def _map_series(self, obj: Any) -> ParsedSeries:
        series = XtreamSeries.model_validate(obj)
        return ParsedSeries(
            title=series.name,
            stable_id=str(series.series_id),
            poster_url=series.cover,
            rating=series.rating,
            category=series.category_id,
            summary=series.plot,
            release_date=series.released_on,
        )

    def _import_category(self, category: XtreamCategory, result: ParsedPlaylist, session: requests.Session) -> None:
        mapper, target = {
            XtreamCategory.LIVE: (self._map_live, result.channels),
            XtreamCategory.VOD: (self._map_vod, result.movies),
            XtreamCategory.SERIES: (self._map_series, result.series),
        }[category]

        for index, obj in enumerate(self.fetch_category(category, session)):
            try:
                target.append(mapper(obj))
            except (pydantic.ValidationError, ValueError) as e:
                result.skipped += 1
                logger.debug("Skipping %s object #%d: %s", category.value, index, e)

    def parse(self) -> ParsedPlaylist:
        """
        Import every category over one HTTP session.

        Raises:
            PlaylistImportError: If every category failed, or any did in strict mode
            ParsingFailedError: If objects were returned but none of them was usable
        """
        result = ParsedPlaylist()
        failures: list[PlaylistImportError] = []

        session = create_session()
        try:
            for category in (XtreamCategory.LIVE, XtreamCategory.VOD, XtreamCategory.SERIES):
                try:
                    self._import_category(category, result, session)
                except (NetworkError, ParsingFailedError) as e:
                    if not self.isolate_categories:
                        raise
                    failures.append(e)
                    result.errors[category.value] = str(e)
                    logger.warning("Xtream category %s failed: %s", category.value, e)
        finally:
            session.close()

        if len(failures) == 3:
            raise failures[0]
        if result.is_empty and result.skipped:
            raise ParsingFailedError(
                f"No usable objects from {self.base_url}: all {result.skipped} failed validation"
            )

        logger.info(
            "Parsed Xtream Codes panel: %d channels, %d movies, %d series, %d skipped, %d failed categories",
            len(result.channels),
            len(result.movies),
            len(result.series),
            result.skipped,
            len(failures),
        )
        return result
