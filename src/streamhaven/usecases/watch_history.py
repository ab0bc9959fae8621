"""
Watch history.

Playback progress is the authoritative fact; writing it triggers the
denormalization engine for the movie, or for the series an episode belongs
to. Progress is stored exactly as reported.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..catalog.denormalization import DenormalizationEngine
from ..domain.entities import Episode, Movie, Profile, WatchHistory
from ..infra.exceptions import ValidationError
from ..infra.settings import settings


def _history_filter(profile: Profile, item: Movie | Episode):
    if isinstance(item, Movie):
        return (WatchHistory.profile_id == profile.id, WatchHistory.movie_id == item.id)
    if isinstance(item, Episode):
        return (WatchHistory.profile_id == profile.id, WatchHistory.episode_id == item.id)
    raise ValidationError(f"Watch history is kept for movies and episodes, not {type(item).__name__}")


def get_watch_history(db: Session, *, profile: Profile, item: Movie | Episode) -> WatchHistory | None:
    return db.scalars(
        select(WatchHistory)
        .where(*_history_filter(profile, item))
        .order_by(WatchHistory.watched_date.desc(), WatchHistory.id.desc())
        .limit(1)
    ).first()


def update_watch_history(
    db: Session,
    *,
    profile: Profile,
    item: Movie | Episode,
    progress: float,
    now: datetime | None = None,
    engine: DenormalizationEngine | None = None,
) -> WatchHistory:
    """Record playback progress for ``item`` and refresh the cached fields it feeds."""
    if progress is None or not math.isfinite(progress):
        raise ValidationError(f"Progress must be a finite number, got {progress!r}")

    now = now or datetime.now(UTC)
    history = get_watch_history(db, profile=profile, item=item)
    if history is None:
        history = WatchHistory(profile_id=profile.id)
        if isinstance(item, Movie):
            history.movie_id = item.id
        else:
            history.episode_id = item.id
        db.add(history)
    history.progress = progress
    history.watched_date = now
    db.flush()

    engine = engine or DenormalizationEngine()
    if isinstance(item, Movie):
        engine.update_denormalized_fields(db, item, profile)
    elif item.season is not None and item.season.series is not None:
        engine.update_denormalized_fields(db, item.season.series, profile)
    return history


def has_watched(
    db: Session, *, profile: Profile, item: Movie | Episode, threshold: float | None = None
) -> bool:
    """Whether the latest progress for ``item`` reaches ``threshold``."""
    history = get_watch_history(db, profile=profile, item=item)
    if history is None:
        return False
    limit = settings.watched_threshold if threshold is None else threshold
    return history.progress >= limit


__all__ = ["get_watch_history", "has_watched", "update_watch_history"]
