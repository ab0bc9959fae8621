from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.content import NowNext
from ..domain.entities import Channel, EPGEntry


def get_now_and_next(db: Session, channel: Channel, *, now: datetime | None = None) -> NowNext:
    """
    The programme covering ``now`` and the first one starting after it.

    "Now" is an entry with ``start <= now < end``; when entries overlap the
    earliest-starting one wins. "Next" is the earliest entry starting after
    ``now``. Either may be None.
    """
    now = now or datetime.now(UTC)
    current = db.scalars(
        select(EPGEntry)
        .where(EPGEntry.channel_id == channel.id, EPGEntry.start_time <= now, EPGEntry.end_time > now)
        .order_by(EPGEntry.start_time, EPGEntry.id)
        .limit(1)
    ).first()
    upcoming = db.scalars(
        select(EPGEntry)
        .where(EPGEntry.channel_id == channel.id, EPGEntry.start_time > now)
        .order_by(EPGEntry.start_time, EPGEntry.id)
        .limit(1)
    ).first()
    return NowNext(now=current, next=upcoming)


def get_programmes(db: Session, channel: Channel, start: datetime, end: datetime) -> list[EPGEntry]:
    """Entries overlapping ``[start, end)``, ordered by start time."""
    return list(
        db.scalars(
            select(EPGEntry)
            .where(EPGEntry.channel_id == channel.id, EPGEntry.start_time < end, EPGEntry.end_time > start)
            .order_by(EPGEntry.start_time, EPGEntry.id)
        )
    )


def entry_to_dict(entry: EPGEntry | None) -> dict[str, Any] | None:
    if entry is None:
        return None
    return {
        "id": entry.id,
        "title": entry.title,
        "description": entry.description,
        "category": entry.category,
        "start": entry.start_time.isoformat(),
        "end": entry.end_time.isoformat(),
    }


__all__ = ["entry_to_dict", "get_now_and_next", "get_programmes"]
