"""
Source ingest.

Runs a source's importer and reconciles the parsed records with what the
store already holds for that source. Records are matched within the source
(movies and series by title, channels by name, variants by stream URL) so a
refresh keeps ids, favorites and watch history of content that is still
offered. Content that disappeared from the payload is removed, except for an
Xtream category that failed this time.

Independent sources can be ingested concurrently. A worker fetches and parses
with no transaction open and writes the result in its own unit of work.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import AbstractContextManager
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..adapters.importers.base import BaseImporter, ParsedChannel, ParsedMovie, ParsedPlaylist, ParsedSeries
from ..adapters.registry import get_importer
from ..catalog.adult import is_adult_content
from ..catalog.denormalization import DenormalizationEngine
from ..domain.entities import Channel, ChannelVariant, Movie, PlaylistSource, Series
from ..infra import uow
from ..infra.exceptions import SaveDataError
from ..infra.settings import settings
from ..shared.types import XtreamCategory
from .lookup import get_source
from .source_update import update_source_status

logger = structlog.get_logger(__name__)

# Which record kind each Xtream category feeds
CATEGORY_KINDS = {
    XtreamCategory.LIVE.value: "channels",
    XtreamCategory.VOD.value: "movies",
    XtreamCategory.SERIES.value: "series",
}

SessionFactory = Callable[..., AbstractContextManager[Session]]
ImporterFactory = Callable[[PlaylistSource], BaseImporter]


def importer_for_source(source: PlaylistSource) -> BaseImporter:
    return get_importer(
        source.source_type,
        url=source.url,
        username=source.username,
        password=source.password,
    )


def _key(value: str) -> str:
    return value.strip()


def _sync_movies(db: Session, source: PlaylistSource, parsed: list[ParsedMovie], stats: dict[str, int]) -> None:
    existing = {_key(m.title): m for m in source.movies}
    seen: set[str] = set()
    for item in parsed:
        key = _key(item.title)
        if key in seen:
            stats["duplicates"] += 1
            continue
        seen.add(key)

        movie = existing.get(key)
        if movie is None:
            movie = Movie(source=source, title=key)
            db.add(movie)
            stats["movies_added"] += 1
        movie.stream_url = item.stream_url
        movie.stable_id = item.stable_id
        movie.poster_url = item.poster_url
        movie.rating = item.rating
        movie.category = item.category
        movie.summary = item.summary
        movie.release_date = item.release_date
        movie.is_adult = is_adult_content(item.title, item.category)

    for key, movie in existing.items():
        if key not in seen:
            db.delete(movie)
            stats["removed"] += 1
    stats["movies"] = len(seen)


def _sync_series(db: Session, source: PlaylistSource, parsed: list[ParsedSeries], stats: dict[str, int]) -> None:
    existing = {_key(s.title): s for s in source.series}
    seen: set[str] = set()
    for item in parsed:
        key = _key(item.title)
        if key in seen:
            stats["duplicates"] += 1
            continue
        seen.add(key)

        series = existing.get(key)
        if series is None:
            series = Series(source=source, title=key)
            db.add(series)
            stats["series_added"] += 1
        series.stable_id = item.stable_id
        series.poster_url = item.poster_url
        series.rating = item.rating
        series.category = item.category
        series.summary = item.summary
        series.release_date = item.release_date
        series.is_adult = is_adult_content(item.title, item.category)

    for key, series in existing.items():
        if key not in seen:
            db.delete(series)
            stats["removed"] += 1
    stats["series"] = len(seen)


def _sync_channels(
    db: Session, source: PlaylistSource, parsed: list[ParsedChannel], stats: dict[str, int]
) -> list[Channel]:
    existing = {_key(c.name): c for c in source.channels}
    seen: dict[str, Channel] = {}
    urls: dict[str, dict[str, None]] = {}

    for item in parsed:
        key = _key(item.name)
        channel = seen.get(key)
        if channel is None:
            channel = existing.get(key)
            if channel is None:
                channel = Channel(source=source, name=key)
                db.add(channel)
                stats["channels_added"] += 1
            channel.stream_url = item.stream_url
            channel.stable_id = item.stable_id
            channel.tvg_id = item.tvg_id
            channel.logo_url = item.logo_url
            channel.category = item.category
            channel.is_adult = is_adult_content(item.name, item.category)
            seen[key] = channel
            urls[key] = {}
        else:
            channel.tvg_id = channel.tvg_id or item.tvg_id
            channel.logo_url = channel.logo_url or item.logo_url

        if item.stream_url in urls[key]:
            stats["duplicates"] += 1
            continue
        urls[key][item.stream_url] = None

    for key, channel in seen.items():
        current = {v.stream_url: v for v in channel.variants}
        wanted = urls[key]
        for url, variant in current.items():
            if url not in wanted:
                channel.variants.remove(variant)
        for url in wanted:
            if url not in current:
                channel.variants.append(ChannelVariant(name=channel.name, stream_url=url))
        stats["variants"] += len(wanted)

    for key, channel in existing.items():
        if key not in seen:
            db.delete(channel)
            stats["removed"] += 1
    stats["channels"] = len(seen)
    return list(seen.values())


def persist_playlist(
    db: Session, source: PlaylistSource, parsed: ParsedPlaylist
) -> tuple[dict[str, int], list[Channel]]:
    """Reconcile ``parsed`` into the store for ``source``.

    Returns the counters and the channels still offered by the source.
    """
    stats = {
        "movies": 0,
        "series": 0,
        "channels": 0,
        "variants": 0,
        "movies_added": 0,
        "series_added": 0,
        "channels_added": 0,
        "duplicates": 0,
        "removed": 0,
    }
    failed_kinds = {CATEGORY_KINDS.get(category) for category in parsed.errors}

    if "movies" not in failed_kinds:
        _sync_movies(db, source, parsed.movies, stats)
    if "series" not in failed_kinds:
        _sync_series(db, source, parsed.series, stats)
    channels: list[Channel] = []
    if "channels" not in failed_kinds:
        channels = _sync_channels(db, source, parsed.channels, stats)
    return stats, channels


def store_playlist(
    db: Session,
    source: PlaylistSource,
    parsed: ParsedPlaylist,
    *,
    engine: DenormalizationEngine | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Write an already parsed playlist for ``source`` and return a summary.

    Raises:
        SaveDataError: If writing the records failed
    """
    now = now or datetime.now(UTC)
    log = logger.bind(source_id=str(source.source_id), source_name=source.name, source_type=source.source_type.value)

    try:
        stats, channels = persist_playlist(db, source, parsed)
        if parsed.epg_url:
            source.epg_url = parsed.epg_url
        db.flush()

        engine = engine or DenormalizationEngine()
        for channel in channels:
            engine.update_denormalized_fields(db, channel, source.profile)
    except SQLAlchemyError as e:
        log.error("ingest_save_failed", error=str(e))
        raise SaveDataError(f"Failed to save records for source '{source.name}': {e}") from e

    error_text = "; ".join(f"{category}: {message}" for category, message in parsed.errors.items()) or None
    update_source_status(db, source, last_refreshed=now, error=error_text)

    summary: dict[str, Any] = {
        "source_id": str(source.source_id),
        "name": source.name,
        "status": "partial" if parsed.errors else "ok",
        **stats,
        "skipped": parsed.skipped,
        "errors": dict(parsed.errors),
    }
    log.info("ingest_completed", **{k: v for k, v in summary.items() if k not in ("source_id", "name")})
    return summary


def ingest_source(
    db: Session,
    source: PlaylistSource,
    *,
    importer: BaseImporter | None = None,
    engine: DenormalizationEngine | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Import one source into the store and return a summary.

    The importer runs inside the caller's unit of work; ``ingest_sources``
    keeps the fetch outside of it.

    Raises:
        PlaylistImportError: If the importer could not produce anything
        SaveDataError: If writing the records failed
    """
    logger.info("ingest_started", source_id=str(source.source_id), source_name=source.name)
    importer = importer or importer_for_source(source)
    return store_playlist(db, source, importer.parse(), engine=engine, now=now)


def _ingest_one(
    source_id: uuid.UUID, session_factory: SessionFactory, importer_factory: ImporterFactory
) -> dict[str, Any]:
    try:
        # Connection details are read up front so the fetch holds no transaction
        with session_factory(read_only=True) as db:
            source = get_source(db, source_id)
            importer = importer_factory(source)
            logger.info("ingest_started", source_id=str(source_id), source_name=source.name)

        parsed = importer.parse()

        with session_factory() as db:
            return store_playlist(db, get_source(db, source_id), parsed)
    except Exception as e:
        logger.error("ingest_failed", source_id=str(source_id), error=str(e))
        try:
            with session_factory() as db:
                source = db.get(PlaylistSource, source_id)
                if source is not None:
                    update_source_status(db, source, last_refreshed=None, error=str(e))
        except SQLAlchemyError as status_error:
            logger.error("ingest_status_failed", source_id=str(source_id), error=str(status_error))
        return {"source_id": str(source_id), "status": "failed", "error": str(e)}


def ingest_sources(
    source_ids: Iterable[uuid.UUID],
    *,
    max_workers: int | None = None,
    session_factory: SessionFactory | None = None,
    importer_factory: ImporterFactory | None = None,
) -> list[dict[str, Any]]:
    """
    Ingest several sources concurrently.

    Each worker reads its source in a short read-only unit, fetches and parses
    with no transaction open, then writes the result in its own unit of work.
    A failing source is reported in its summary (``status="failed"``) and
    recorded as the source's ``last_error``; the other sources still run.
    Summaries come back in the order the ids were given.
    """
    ids = list(source_ids)
    if not ids:
        return []
    factory = session_factory or uow.session
    make_importer = importer_factory or importer_for_source
    workers = max(1, min(max_workers or settings.ingest_max_workers, len(ids)))

    results: dict[uuid.UUID, dict[str, Any]] = {}
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ingest") as pool:
        futures = {pool.submit(_ingest_one, source_id, factory, make_importer): source_id for source_id in ids}
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    return [results[source_id] for source_id in ids]


__all__ = ["importer_for_source", "ingest_source", "ingest_sources", "persist_playlist", "store_playlist"]
