"""
Record lookups shared by the use cases and the CLI.
"""

from __future__ import annotations

import uuid

from sqlalchemy.orm import Session

from ..domain.entities import Channel, Episode, Movie, PlaylistSource, Profile, Series
from ..infra.exceptions import NotFoundError, ValidationError


def get_profile(db: Session, profile_id: int) -> Profile:
    profile = db.get(Profile, profile_id)
    if profile is None:
        raise NotFoundError(f"Profile {profile_id} not found")
    return profile


def parse_source_id(value: str | uuid.UUID) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as e:
        raise ValidationError(f"Invalid source id: {value}") from e


def get_source(db: Session, source_id: str | uuid.UUID) -> PlaylistSource:
    source = db.get(PlaylistSource, parse_source_id(source_id))
    if source is None:
        raise NotFoundError(f"Source {source_id} not found")
    return source


def get_movie(db: Session, movie_id: int) -> Movie:
    movie = db.get(Movie, movie_id)
    if movie is None:
        raise NotFoundError(f"Movie {movie_id} not found")
    return movie


def get_series(db: Session, series_id: int) -> Series:
    series = db.get(Series, series_id)
    if series is None:
        raise NotFoundError(f"Series {series_id} not found")
    return series


def get_episode(db: Session, episode_id: int) -> Episode:
    episode = db.get(Episode, episode_id)
    if episode is None:
        raise NotFoundError(f"Episode {episode_id} not found")
    return episode


def get_channel(db: Session, channel_id: int) -> Channel:
    channel = db.get(Channel, channel_id)
    if channel is None:
        raise NotFoundError(f"Channel {channel_id} not found")
    return channel


__all__ = [
    "get_channel",
    "get_episode",
    "get_movie",
    "get_profile",
    "get_series",
    "get_source",
    "parse_source_id",
]
