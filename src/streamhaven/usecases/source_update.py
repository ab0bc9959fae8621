"""
Source lifecycle operations: edit, (de)activate, reorder and status.

Deactivating a source removes the content it produced by default; an
inactive source is never read by grouping and is refilled by its next ingest
once activated again.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete
from sqlalchemy.orm import Session

from ..domain.entities import Channel, Movie, PlaylistSource, Profile, Series
from ..infra.exceptions import ValidationError
from .source_list import source_to_dict

logger = logging.getLogger(__name__)


def update_source(
    db: Session,
    source: PlaylistSource,
    *,
    name: str | None = None,
    url: str | None = None,
    username: str | None = None,
    password: str | None = None,
) -> dict[str, Any]:
    """Update the connection fields that were given; others are left alone."""
    if name is not None:
        if not name.strip():
            raise ValidationError("Source name cannot be empty")
        source.name = name.strip()
    if url is not None:
        if not url.strip():
            raise ValidationError("Source URL cannot be empty")
        source.url = url.strip()
    if username is not None:
        source.username = username
    if password is not None:
        source.password = password
    db.flush()
    return source_to_dict(source)


def activate_source(db: Session, source: PlaylistSource) -> dict[str, Any]:
    source.is_active = True
    db.flush()
    logger.info("Activated source %s", source.source_id)
    return source_to_dict(source)


def deactivate_source(db: Session, source: PlaylistSource, *, purge_content: bool = True) -> dict[str, Any]:
    source.is_active = False
    db.flush()
    if purge_content:
        purge_source_content(db, source)
    logger.info("Deactivated source %s", source.source_id)
    return source_to_dict(source)


def purge_source_content(db: Session, source: PlaylistSource) -> None:
    """Delete every content record of ``source``; children go by FK cascade."""
    for model in (Movie, Series, Channel):
        db.execute(delete(model).where(model.source_id == source.source_id))
    db.flush()
    db.expire_all()


def reorder_sources(db: Session, profile: Profile, ordered: list[PlaylistSource]) -> list[dict[str, Any]]:
    """Assign display order from the position of each source in ``ordered``."""
    owned = {s.source_id for s in profile.sources}
    given = [s.source_id for s in ordered]
    if set(given) != owned or len(given) != len(owned):
        raise ValidationError("Reorder must list every source of the profile exactly once")

    for index, source in enumerate(ordered):
        source.display_order = index
    db.flush()
    return [source_to_dict(s) for s in ordered]


def move_source(db: Session, profile: Profile, from_index: int, to_index: int) -> list[dict[str, Any]]:
    sources = list(profile.all_sources)
    if not (0 <= from_index < len(sources)) or not (0 <= to_index < len(sources)):
        raise ValidationError(f"Source position out of range (0..{len(sources) - 1})")
    sources.insert(to_index, sources.pop(from_index))
    return reorder_sources(db, profile, sources)


def update_source_status(
    db: Session, source: PlaylistSource, *, last_refreshed: datetime | None, error: str | None
) -> None:
    """Record the outcome of the latest refresh."""
    if last_refreshed is not None:
        source.last_refreshed = last_refreshed
    source.last_error = error
    db.flush()


__all__ = [
    "activate_source",
    "deactivate_source",
    "move_source",
    "purge_source_content",
    "reorder_sources",
    "update_source",
    "update_source_status",
]
