"""
Content queries on cached fields.

Fast listings that filter and sort on the denormalized columns (favorite,
progress, episode counts, now playing) instead of joining the fact tables.
Every query sees only what ``visible_items`` lets the profile see: records of
its active sources, without adult content for kids profiles.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..catalog.grouping import visible_items
from ..domain.entities import Channel, Movie, Profile, Series
from ..infra.exceptions import ValidationError
from .content_groups import item_to_dict

# Progress at or past this percent no longer counts as "continue watching"
IN_PROGRESS_CEILING = 90

DEFAULT_LIMIT = 20
DEFAULT_MIN_EPISODES = 50
DEFAULT_MIN_SEASONS = 5


def favorite_movies(db: Session, profile: Profile) -> list[Movie]:
    stmt = visible_items(Movie, profile).where(Movie.is_favorite.is_(True))
    return list(db.scalars(stmt.order_by(Movie.last_watched_date.desc().nulls_last(), Movie.title, Movie.id)))


def favorite_series(db: Session, profile: Profile) -> list[Series]:
    stmt = visible_items(Series, profile).where(Series.is_favorite.is_(True))
    return list(db.scalars(stmt.order_by(Series.title, Series.id)))


def favorite_channels(db: Session, profile: Profile) -> list[Channel]:
    stmt = visible_items(Channel, profile).where(Channel.is_favorite.is_(True))
    return list(db.scalars(stmt.options(selectinload(Channel.variants)).order_by(Channel.name, Channel.id)))


def in_progress_movies(db: Session, profile: Profile) -> list[Movie]:
    """Movies started but not finished, most recently watched first."""
    stmt = visible_items(Movie, profile).where(
        Movie.watch_progress_percent > 0,
        Movie.watch_progress_percent < IN_PROGRESS_CEILING,
    )
    return list(db.scalars(stmt.order_by(Movie.last_watched_date.desc().nulls_last(), Movie.id)))


def unwatched_movies(db: Session, profile: Profile) -> list[Movie]:
    stmt = visible_items(Movie, profile).where(Movie.has_been_watched.is_(False))
    return list(db.scalars(stmt.order_by(Movie.release_date.desc().nulls_last(), Movie.title, Movie.id)))


def recently_watched_movies(db: Session, profile: Profile, *, limit: int = DEFAULT_LIMIT) -> list[Movie]:
    stmt = visible_items(Movie, profile).where(Movie.last_watched_date.is_not(None))
    return list(db.scalars(stmt.order_by(Movie.last_watched_date.desc(), Movie.id).limit(limit)))


def series_with_unwatched_episodes(db: Session, profile: Profile) -> list[Series]:
    stmt = visible_items(Series, profile).where(Series.unwatched_episode_count > 0)
    return list(db.scalars(stmt.order_by(Series.unwatched_episode_count.desc(), Series.title, Series.id)))


def long_running_series(
    db: Session, profile: Profile, *, minimum: int = DEFAULT_MIN_EPISODES, limit: int = DEFAULT_LIMIT
) -> list[Series]:
    stmt = visible_items(Series, profile).where(Series.total_episode_count >= minimum)
    return list(db.scalars(stmt.order_by(Series.total_episode_count.desc(), Series.title).limit(limit)))


def series_by_season_count(
    db: Session, profile: Profile, *, minimum: int = DEFAULT_MIN_SEASONS, limit: int = DEFAULT_LIMIT
) -> list[Series]:
    stmt = visible_items(Series, profile).where(Series.season_count >= minimum)
    return list(db.scalars(stmt.order_by(Series.season_count.desc(), Series.title).limit(limit)))


def channels_with_epg(db: Session, profile: Profile) -> list[Channel]:
    stmt = visible_items(Channel, profile).where(Channel.has_epg.is_(True))
    return list(db.scalars(stmt.options(selectinload(Channel.variants)).order_by(Channel.name, Channel.id)))


def channels_now_playing(db: Session, profile: Profile) -> list[Channel]:
    stmt = visible_items(Channel, profile).where(Channel.current_program_title.is_not(None))
    return list(db.scalars(stmt.options(selectinload(Channel.variants)).order_by(Channel.name, Channel.id)))


def popular_channels(db: Session, profile: Profile, *, limit: int = 50) -> list[Channel]:
    """Channels with the most stream variants first."""
    stmt = visible_items(Channel, profile).options(selectinload(Channel.variants))
    return list(db.scalars(stmt.order_by(Channel.variant_count.desc(), Channel.name).limit(limit)))


def _count(db: Session, stmt) -> int:
    return db.scalar(select(func.count()).select_from(stmt.subquery())) or 0


def content_statistics(db: Session, *, profile: Profile) -> dict[str, int]:
    """Library totals for the profile, read from cached counts."""
    series = visible_items(Series, profile).subquery()
    return {
        "movies": _count(db, visible_items(Movie, profile)),
        "series": _count(db, visible_items(Series, profile)),
        "episodes": db.scalar(select(func.coalesce(func.sum(series.c.total_episode_count), 0))) or 0,
        "channels": _count(db, visible_items(Channel, profile)),
        "favorite_movies": _count(db, visible_items(Movie, profile).where(Movie.is_favorite.is_(True))),
        "favorite_series": _count(db, visible_items(Series, profile).where(Series.is_favorite.is_(True))),
        "favorite_channels": _count(db, visible_items(Channel, profile).where(Channel.is_favorite.is_(True))),
    }


@dataclass(frozen=True)
class ContentView:
    query: Callable[..., list[Any]]
    description: str
    limited: bool = False
    takes_minimum: bool = False


VIEWS: dict[str, ContentView] = {
    "favorite-movies": ContentView(favorite_movies, "Favorite movies, last watched first"),
    "favorite-series": ContentView(favorite_series, "Favorite series by title"),
    "favorite-channels": ContentView(favorite_channels, "Favorite channels by name"),
    "in-progress": ContentView(in_progress_movies, "Movies started but not finished"),
    "unwatched": ContentView(unwatched_movies, "Movies not watched yet, newest release first"),
    "recent": ContentView(recently_watched_movies, "Recently watched movies", limited=True),
    "unwatched-episodes": ContentView(series_with_unwatched_episodes, "Series with unwatched episodes"),
    "long-running": ContentView(
        long_running_series, "Series with at least --minimum episodes", limited=True, takes_minimum=True
    ),
    "many-seasons": ContentView(
        series_by_season_count, "Series with at least --minimum seasons", limited=True, takes_minimum=True
    ),
    "with-epg": ContentView(channels_with_epg, "Channels that have guide data"),
    "now-playing": ContentView(channels_now_playing, "Channels with a programme on air"),
    "popular-channels": ContentView(popular_channels, "Channels with the most variants", limited=True),
}


def run_view(
    db: Session,
    *,
    profile: Profile,
    view: str,
    limit: int | None = None,
    minimum: int | None = None,
) -> list[dict[str, Any]]:
    """
    Run one named view and project its records.

    Raises:
        ValidationError: If the view is unknown or an option does not apply
    """
    spec = VIEWS.get(view)
    if spec is None:
        raise ValidationError(f"Unknown view '{view}'. Choose one of: {', '.join(VIEWS)}")

    kwargs: dict[str, int] = {}
    if limit is not None:
        if not spec.limited:
            raise ValidationError(f"View '{view}' does not take a limit")
        if limit < 1:
            raise ValidationError("Limit must be at least 1")
        kwargs["limit"] = limit
    if minimum is not None:
        if not spec.takes_minimum:
            raise ValidationError(f"View '{view}' does not take a minimum")
        if minimum < 0:
            raise ValidationError("Minimum must not be negative")
        kwargs["minimum"] = minimum

    return [_project(item) for item in spec.query(db, profile, **kwargs)]


def _project(item: Movie | Series | Channel) -> dict[str, Any]:
    result = item_to_dict(item)
    if isinstance(item, Movie):
        result["has_been_watched"] = item.has_been_watched
        result["last_watched_date"] = item.last_watched_date.isoformat() if item.last_watched_date else None
    elif isinstance(item, Series):
        result["total_episode_count"] = item.total_episode_count
        result["season_count"] = item.season_count
    return result


__all__ = [
    "VIEWS",
    "channels_now_playing",
    "channels_with_epg",
    "content_statistics",
    "favorite_channels",
    "favorite_movies",
    "favorite_series",
    "in_progress_movies",
    "long_running_series",
    "popular_channels",
    "recently_watched_movies",
    "run_view",
    "series_by_season_count",
    "series_with_unwatched_episodes",
    "unwatched_movies",
]
