"""
EPG ingest.

Links XMLTV programmes to channels by ``tvg_id``, drops programmes for
channels the store does not know, skips programmes already stored (same
channel, start and title) and purges entries that ended before the retention
window. Channels that received programmes or lost expired ones get their
cached EPG fields recomputed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import IO, Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from ..adapters.importers.xmltv import XMLTVParser, fetch_xmltv, open_payload
from ..catalog.denormalization import DenormalizationEngine
from ..domain.entities import Channel, EPGEntry, PlaylistSource
from ..infra.exceptions import ValidationError
from ..infra.settings import settings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EPGConfig:
    retention_hours: int = 24

    @property
    def retention(self) -> timedelta:
        return timedelta(hours=self.retention_hours)

    @classmethod
    def from_settings(cls) -> EPGConfig:
        return cls(retention_hours=settings.epg_retention_hours)


def _purge_expired(db: Session, cutoff: datetime) -> tuple[int, list[int]]:
    channel_ids = list(db.scalars(select(EPGEntry.channel_id).where(EPGEntry.end_time < cutoff).distinct()))
    if not channel_ids:
        return 0, []
    result = db.execute(delete(EPGEntry).where(EPGEntry.end_time < cutoff))
    db.flush()
    return result.rowcount or 0, channel_ids


def _refresh_channels(db: Session, channels: Iterable[Channel], engine: DenormalizationEngine) -> None:
    for channel in channels:
        engine.update_denormalized_fields(db, channel, channel.source.profile)


def _load_channels(db: Session, channel_ids: Iterable[int]) -> list[Channel]:
    ids = sorted(set(channel_ids))
    if not ids:
        return []
    stmt = (
        select(Channel)
        .where(Channel.id.in_(ids))
        .options(selectinload(Channel.source).selectinload(PlaylistSource.profile))
        .order_by(Channel.id)
    )
    return list(db.scalars(stmt))


def clear_expired_entries(
    db: Session,
    *,
    now: datetime | None = None,
    retention: timedelta | None = None,
    engine: DenormalizationEngine | None = None,
) -> int:
    """
    Delete guide entries that ended before ``now - retention``; returns the count.

    Channels that lost entries get their cached EPG fields recomputed.
    """
    now = now or datetime.now(UTC)
    cutoff = now - (retention if retention is not None else EPGConfig.from_settings().retention)
    purged, channel_ids = _purge_expired(db, cutoff)
    _refresh_channels(db, _load_channels(db, channel_ids), engine or DenormalizationEngine(clock=lambda: now))
    return purged


def _channels_by_tvg_id(db: Session, source: PlaylistSource | None) -> dict[str, list[Channel]]:
    stmt = (
        select(Channel)
        .where(Channel.tvg_id.is_not(None))
        .options(selectinload(Channel.source).selectinload(PlaylistSource.profile))
        .order_by(Channel.id)
    )
    if source is not None:
        stmt = stmt.where(Channel.source_id == source.source_id)

    mapping: dict[str, list[Channel]] = {}
    for channel in db.scalars(stmt):
        mapping.setdefault(channel.tvg_id.strip(), []).append(channel)
    return mapping


def ingest_epg(
    db: Session,
    payload: bytes | IO[bytes],
    *,
    source: PlaylistSource | None = None,
    config: EPGConfig | None = None,
    now: datetime | None = None,
    engine: DenormalizationEngine | None = None,
) -> dict[str, Any]:
    """
    Parse an XMLTV document and store its programmes.

    When ``source`` is given only that source's channels are matched;
    otherwise every channel with a ``tvg_id`` is a candidate.

    Raises:
        ParsingFailedError: If the document cannot be read at all
    """
    config = config or EPGConfig.from_settings()
    now = now or datetime.now(UTC)
    cutoff = now - config.retention
    log = logger.bind(source_id=str(source.source_id) if source is not None else None)

    channels = _channels_by_tvg_id(db, source)
    channel_ids = [c.id for group in channels.values() for c in group]
    existing: set[tuple[int, datetime, str]] = set()
    if channel_ids:
        rows = db.execute(
            select(EPGEntry.channel_id, EPGEntry.start_time, EPGEntry.title).where(
                EPGEntry.channel_id.in_(channel_ids)
            )
        )
        existing = {(row.channel_id, row.start_time, row.title) for row in rows}

    summary = {
        "parsed": 0,
        "inserted": 0,
        "duplicates": 0,
        "unknown_channel": 0,
        "expired": 0,
        "purged": 0,
        "skipped": 0,
    }
    touched: dict[int, Channel] = {}

    parser = XMLTVParser()
    stream = open_payload(payload) if isinstance(payload, bytes) else payload
    for programme in parser.iter_programmes(stream):
        targets = channels.get(programme.channel)
        if not targets:
            summary["unknown_channel"] += 1
            continue
        if programme.stop < cutoff:
            summary["expired"] += 1
            continue

        for channel in targets:
            key = (channel.id, programme.start, programme.title)
            if key in existing:
                summary["duplicates"] += 1
                continue
            existing.add(key)
            db.add(
                EPGEntry(
                    channel_id=channel.id,
                    title=programme.title,
                    description=programme.description,
                    category=programme.category,
                    start_time=programme.start,
                    end_time=programme.stop,
                )
            )
            summary["inserted"] += 1
            touched[channel.id] = channel

    summary["parsed"] = parser.parsed
    summary["skipped"] = parser.skipped
    db.flush()

    summary["purged"], purged_ids = _purge_expired(db, cutoff)
    for channel in _load_channels(db, set(purged_ids) - set(touched)):
        touched[channel.id] = channel

    _refresh_channels(db, touched.values(), engine or DenormalizationEngine(clock=lambda: now))

    if source is not None:
        source.epg_last_refreshed = now
        db.flush()

    log.info("epg_ingest_completed", channels=len(touched), **summary)
    return summary


def fetch_and_ingest_epg(
    db: Session,
    source: PlaylistSource,
    *,
    force: bool = False,
    config: EPGConfig | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Download the source's guide and ingest it.

    A guide fetched within the retention window is not fetched again unless
    ``force`` is set.

    Raises:
        ValidationError: If the source has no guide URL
        NetworkError: If the download fails
    """
    config = config or EPGConfig.from_settings()
    now = now or datetime.now(UTC)
    if not source.epg_url:
        raise ValidationError(f"Source '{source.name}' has no EPG URL; ingest the playlist first")

    last = source.epg_last_refreshed
    if not force and last is not None and now - last < config.retention:
        logger.info("epg_fetch_skipped", source_id=str(source.source_id), last_refreshed=last.isoformat())
        return {"status": "skipped", "last_refreshed": last.isoformat()}

    payload = fetch_xmltv(source.epg_url)
    summary = ingest_epg(db, payload, source=source, config=config, now=now)
    return {"status": "ok", **summary}


__all__ = ["EPGConfig", "clear_expired_entries", "fetch_and_ingest_epg", "ingest_epg"]
