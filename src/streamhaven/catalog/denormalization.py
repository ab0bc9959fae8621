"""
Denormalization engine.

Recomputes the cached fields stored on movies, series and channels from the
authoritative fact tables (watch history, favorites, EPG entries). This module
is the only writer of those cached columns; everything else reads them.

Each per-item update is serialized by a keyed lock on (kind, item, profile)
and written inside one savepoint, so a reader never sees half a set of fields.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..domain.content import DerivedFields
from ..domain.entities import (
    Channel,
    ChannelVariant,
    EPGEntry,
    Episode,
    Favorite,
    Movie,
    PlaylistSource,
    Profile,
    Season,
    Series,
    WatchHistory,
)
from ..infra.exceptions import ValidationError

logger = structlog.get_logger(__name__)

DEFAULT_WATCHED_THRESHOLD = 0.9

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class DenormalizationConfig:
    watched_threshold: float = DEFAULT_WATCHED_THRESHOLD


def progress_percent(progress: float | None) -> int:
    """Cached display percent for a raw progress value, clamped to ``[0, 100]``.

    Half values round up. The raw progress itself is never clamped.
    """
    if progress is None or not math.isfinite(progress):
        return 0
    return max(0, min(100, math.floor(progress * 100 + 0.5)))


class _KeyedLocks:
    """Process-wide registry of one lock per key.

    A key's lock lives only while some thread holds or waits for it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key -> [lock, number of threads holding or waiting]
        self._locks: dict[tuple[Any, ...], list[Any]] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: tuple[Any, ...]) -> Iterator[None]:
        with self._guard:
            slot = self._locks.get(key)
            if slot is None:
                slot = self._locks[key] = [threading.Lock(), 0]
            slot[1] += 1
        try:
            with slot[0]:
                yield
        finally:
            with self._guard:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._locks[key]


_item_locks = _KeyedLocks()


class DenormalizationEngine:
    """Maintains DerivedFields on content records."""

    def __init__(self, config: DenormalizationConfig | None = None, clock: Clock | None = None):
        self.config = config or DenormalizationConfig()
        self.clock = clock or _utcnow

    # Computation

    def _is_favorite(self, db: Session, profile: Profile, item: Movie | Series | Channel) -> bool:
        column = {
            Movie: Favorite.movie_id,
            Series: Favorite.series_id,
            Channel: Favorite.channel_id,
        }[type(item)]
        stmt = select(Favorite.id).where(Favorite.profile_id == profile.id, column == item.id).limit(1)
        return db.scalar(stmt) is not None

    def _movie_fields(self, db: Session, movie: Movie, profile: Profile) -> DerivedFields:
        history = db.scalars(
            select(WatchHistory)
            .where(WatchHistory.profile_id == profile.id, WatchHistory.movie_id == movie.id)
            .order_by(WatchHistory.watched_date.desc(), WatchHistory.id.desc())
            .limit(1)
        ).first()

        if history is None:
            watched, percent, last_watched = False, 0, None
        else:
            progress = history.progress
            watched = progress is not None and progress >= self.config.watched_threshold
            percent = progress_percent(progress)
            last_watched = history.watched_date

        return DerivedFields(
            is_favorite=self._is_favorite(db, profile, movie),
            has_been_watched=watched,
            watch_progress_percent=percent,
            last_watched_date=last_watched,
        )

    def _series_fields(self, db: Session, series: Series, profile: Profile) -> DerivedFields:
        episode_ids = select(Episode.id).join(Season).where(Season.series_id == series.id)
        total = db.scalar(select(func.count()).select_from(episode_ids.subquery())) or 0
        watched = (
            db.scalar(
                select(func.count(func.distinct(WatchHistory.episode_id))).where(
                    WatchHistory.profile_id == profile.id,
                    WatchHistory.episode_id.in_(episode_ids),
                    WatchHistory.progress >= self.config.watched_threshold,
                )
            )
            or 0
        )
        seasons = db.scalar(select(func.count(Season.id)).where(Season.series_id == series.id)) or 0

        return DerivedFields(
            is_favorite=self._is_favorite(db, profile, series),
            total_episode_count=total,
            unwatched_episode_count=max(0, total - watched),
            season_count=seasons,
        )

    def _channel_fields(self, db: Session, channel: Channel, profile: Profile) -> DerivedFields:
        now = self.clock()
        has_epg = (
            db.scalar(select(EPGEntry.id).where(EPGEntry.channel_id == channel.id).limit(1)) is not None
        )
        # Overlapping programmes resolve to the earliest-starting one
        current = db.scalars(
            select(EPGEntry)
            .where(
                EPGEntry.channel_id == channel.id,
                EPGEntry.start_time <= now,
                EPGEntry.end_time > now,
            )
            .order_by(EPGEntry.start_time, EPGEntry.id)
            .limit(1)
        ).first()
        variants = (
            db.scalar(select(func.count(ChannelVariant.id)).where(ChannelVariant.channel_id == channel.id))
            or 0
        )

        return DerivedFields(
            is_favorite=self._is_favorite(db, profile, channel),
            has_epg=has_epg,
            current_program_title=current.title if current is not None else None,
            epg_last_updated=now,
            variant_count=variants,
        )

    def compute(self, db: Session, item: Movie | Series | Channel, profile: Profile) -> DerivedFields:
        """Compute the full DerivedFields value for ``item`` without writing it."""
        if item.id is None:
            raise ValidationError(f"{type(item).__name__} has not been stored yet")
        if profile is None or profile.id is None:
            raise ValidationError(f"{type(item).__name__} {item.id} has no owning profile")

        if isinstance(item, Movie):
            return self._movie_fields(db, item, profile)
        if isinstance(item, Series):
            return self._series_fields(db, item, profile)
        if isinstance(item, Channel):
            return self._channel_fields(db, item, profile)
        raise ValidationError(f"Unsupported content type: {type(item).__name__}")

    # Writing

    @staticmethod
    def _apply(item: Movie | Series | Channel, fields: DerivedFields) -> None:
        item.is_favorite = fields.is_favorite
        for name, value in fields.as_dict().items():
            if name == "is_favorite":
                continue
            if value is None and name not in ("last_watched_date", "current_program_title"):
                continue
            if not hasattr(item, name):
                continue
            setattr(item, name, value)

    def update_denormalized_fields(
        self, db: Session, item: Movie | Series | Channel, profile: Profile
    ) -> DerivedFields:
        """Recompute and store every cached field of ``item`` for ``profile``."""
        key = (item.content_kind, item.id, profile.id if profile is not None else None)
        with _item_locks.hold(key):
            fields = self.compute(db, item, profile)
            with db.begin_nested():
                self._apply(item, fields)
        return fields

    def rebuild_denormalized_fields(
        self, db: Session, cancel_event: threading.Event | None = None
    ) -> dict[str, Any]:
        """Recompute cached fields for every channel, movie and series.

        Records that fail to recompute are skipped and counted. When
        ``cancel_event`` is set the rebuild stops at the next item boundary.
        """
        summary: dict[str, Any] = {
            "channels": 0,
            "movies": 0,
            "series": 0,
            "skipped": 0,
            "cancelled": False,
        }
        log = logger.bind(operation="rebuild_denormalized_fields")
        log.info("rebuild_started")

        passes: list[tuple[str, type[Movie] | type[Series] | type[Channel]]] = [
            ("channels", Channel),
            ("movies", Movie),
            ("series", Series),
        ]
        for label, model in passes:
            items = db.scalars(
                select(model)
                .options(selectinload(model.source).selectinload(PlaylistSource.profile))
                .order_by(model.id)
            ).all()
            for item in items:
                if cancel_event is not None and cancel_event.is_set():
                    summary["cancelled"] = True
                    log.warning("rebuild_cancelled", **summary)
                    return summary
                try:
                    profile = item.source.profile if item.source is not None else None
                    self.update_denormalized_fields(db, item, profile)
                    summary[label] += 1
                except Exception as e:
                    summary["skipped"] += 1
                    log.warning("rebuild_item_skipped", kind=label, item_id=item.id, error=str(e))

        log.info("rebuild_completed", **summary)
        return summary
