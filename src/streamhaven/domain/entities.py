"""
Domain entities for StreamHaven.

This module contains the persisted records of the content store: profiles,
playlist sources, the content records each source produces (movies, series,
channels), their children, and the authoritative per-profile facts
(favorites, watch history, EPG entries) from which cached fields are derived.

Identity fields on content records, including the ``is_adult`` flag, are
written by ingest. The cached columns grouped under "derived" are written
only by the denormalization engine.
"""

from __future__ import annotations

import uuid as uuid_module
from datetime import UTC, date, datetime
from typing import ClassVar

import sqlalchemy as sa
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import (
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..infra.db import Base, UTCDateTime
from ..shared.types import ContentKind, SourceMode, SourceType


def utcnow() -> datetime:
    return datetime.now(UTC)


class Profile(Base):
    """A viewer profile owning playlist sources, favorites and watch history."""

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    source_mode: Mapped[SourceMode] = mapped_column(
        SQLEnum(SourceMode, name="source_mode", native_enum=False),
        nullable=False,
        default=SourceMode.COMBINED,
    )
    is_adult: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    # Relationships
    sources: Mapped[list[PlaylistSource]] = relationship(
        "PlaylistSource",
        back_populates="profile",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PlaylistSource.display_order",
    )
    favorites: Mapped[list[Favorite]] = relationship(
        "Favorite", back_populates="profile", cascade="all, delete-orphan", passive_deletes=True
    )
    watch_history: Mapped[list[WatchHistory]] = relationship(
        "WatchHistory", back_populates="profile", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def mode(self) -> SourceMode:
        return self.source_mode or SourceMode.COMBINED

    @property
    def all_sources(self) -> list[PlaylistSource]:
        return sorted(self.sources, key=lambda s: s.display_order)

    @property
    def active_sources(self) -> list[PlaylistSource]:
        return [s for s in self.all_sources if s.is_active]

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, name={self.name}, source_mode={self.source_mode})>"


class PlaylistSource(Base):
    """One configured playlist provider (M3U URL or Xtream Codes account)."""

    __tablename__ = "playlist_sources"

    source_id: Mapped[uuid_module.UUID] = mapped_column(
        sa.Uuid, primary_key=True, default=uuid_module.uuid4
    )
    profile_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    source_type: Mapped[SourceType] = mapped_column(
        SQLEnum(SourceType, name="source_type", native_enum=False), nullable=False
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    epg_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    last_refreshed: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    epg_last_refreshed: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    profile: Mapped[Profile] = relationship("Profile", back_populates="sources")
    movies: Mapped[list[Movie]] = relationship(
        "Movie", back_populates="source", cascade="all, delete-orphan", passive_deletes=True
    )
    series: Mapped[list[Series]] = relationship(
        "Series", back_populates="source", cascade="all, delete-orphan", passive_deletes=True
    )
    channels: Mapped[list[Channel]] = relationship(
        "Channel", back_populates="source", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_playlist_sources_profile_id", "profile_id"),
        Index("ix_playlist_sources_is_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<PlaylistSource(source_id={self.source_id}, name={self.name}, type={self.source_type}, active={self.is_active})>"


def _source_fk() -> Mapped[uuid_module.UUID]:
    return mapped_column(
        sa.Uuid, ForeignKey("playlist_sources.source_id", ondelete="CASCADE"), nullable=False
    )


class Movie(Base):
    """A video-on-demand title produced by one source."""

    __tablename__ = "movies"

    content_kind: ClassVar[ContentKind] = ContentKind.MOVIE

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_id: Mapped[uuid_module.UUID] = _source_fk()
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    stable_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stream_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    poster_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[str | None] = mapped_column(String(32), nullable=True)
    category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    release_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_adult: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    # Derived
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_been_watched: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    watch_progress_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_watched_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Relationships
    source: Mapped[PlaylistSource] = relationship("PlaylistSource", back_populates="movies")
    favorites: Mapped[list[Favorite]] = relationship(
        "Favorite", back_populates="movie", cascade="all, delete-orphan", passive_deletes=True
    )
    watch_history: Mapped[list[WatchHistory]] = relationship(
        "WatchHistory", back_populates="movie", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_movies_source_id", "source_id"),
        Index("ix_movies_title", "title"),
        Index("ix_movies_is_adult", "is_adult"),
        CheckConstraint(
            "watch_progress_percent >= 0 AND watch_progress_percent <= 100",
            name="chk_movie_progress_percent",
        ),
    )

    @property
    def display_title(self) -> str:
        return self.title or ""

    def __repr__(self) -> str:
        return f"<Movie(id={self.id}, title={self.title}, source_id={self.source_id})>"


class Series(Base):
    """A series produced by one source; episodes hang off its seasons."""

    __tablename__ = "series"

    content_kind: ClassVar[ContentKind] = ContentKind.SERIES

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_id: Mapped[uuid_module.UUID] = _source_fk()
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    stable_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    poster_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[str | None] = mapped_column(String(32), nullable=True)
    category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    release_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_adult: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    # Derived
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_episode_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unwatched_episode_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    season_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    source: Mapped[PlaylistSource] = relationship("PlaylistSource", back_populates="series")
    seasons: Mapped[list[Season]] = relationship(
        "Season",
        back_populates="series",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Season.number",
    )
    favorites: Mapped[list[Favorite]] = relationship(
        "Favorite", back_populates="series", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_series_source_id", "source_id"),
        Index("ix_series_title", "title"),
        Index("ix_series_is_adult", "is_adult"),
    )

    @property
    def display_title(self) -> str:
        return self.title or ""

    def __repr__(self) -> str:
        return f"<Series(id={self.id}, title={self.title}, source_id={self.source_id})>"


class Season(Base):
    __tablename__ = "seasons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    series_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("series.id", ondelete="CASCADE"), nullable=False
    )
    number: Mapped[int] = mapped_column(Integer, nullable=False)

    series: Mapped[Series] = relationship("Series", back_populates="seasons")
    episodes: Mapped[list[Episode]] = relationship(
        "Episode",
        back_populates="season",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Episode.number",
    )

    __table_args__ = (UniqueConstraint("series_id", "number", name="uq_seasons_series_number"),)

    def __repr__(self) -> str:
        return f"<Season(id={self.id}, series_id={self.series_id}, number={self.number})>"


class Episode(Base):
    __tablename__ = "episodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    season_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False
    )
    number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    stable_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stream_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    season: Mapped[Season] = relationship("Season", back_populates="episodes")
    watch_history: Mapped[list[WatchHistory]] = relationship(
        "WatchHistory", back_populates="episode", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (Index("ix_episodes_season_id", "season_id"),)

    def __repr__(self) -> str:
        return f"<Episode(id={self.id}, season_id={self.season_id}, number={self.number}, title={self.title})>"


class Channel(Base):
    """A live channel produced by one source; its streams live in variants."""

    __tablename__ = "channels"

    content_kind: ClassVar[ContentKind] = ContentKind.CHANNEL

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_id: Mapped[uuid_module.UUID] = _source_fk()
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    stable_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tvg_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    stream_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_adult: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    # Derived
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_epg: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    current_program_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    epg_last_updated: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    variant_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    source: Mapped[PlaylistSource] = relationship("PlaylistSource", back_populates="channels")
    variants: Mapped[list[ChannelVariant]] = relationship(
        "ChannelVariant",
        back_populates="channel",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChannelVariant.id",
    )
    epg_entries: Mapped[list[EPGEntry]] = relationship(
        "EPGEntry", back_populates="channel", cascade="all, delete-orphan", passive_deletes=True
    )
    favorites: Mapped[list[Favorite]] = relationship(
        "Favorite", back_populates="channel", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_channels_source_id", "source_id"),
        Index("ix_channels_tvg_id", "tvg_id"),
        Index("ix_channels_name", "name"),
        Index("ix_channels_is_adult", "is_adult"),
    )

    @property
    def title(self) -> str:
        return self.name or ""

    @property
    def display_title(self) -> str:
        return self.name or ""

    def __repr__(self) -> str:
        return f"<Channel(id={self.id}, name={self.name}, source_id={self.source_id})>"


class ChannelVariant(Base):
    """An alternative stream URL for one channel inside one source."""

    __tablename__ = "channel_variants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("channels.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    stream_url: Mapped[str] = mapped_column(Text, nullable=False)

    channel: Mapped[Channel] = relationship("Channel", back_populates="variants")

    __table_args__ = (
        Index("ix_channel_variants_channel_id", "channel_id"),
        UniqueConstraint("channel_id", "stream_url", name="uq_channel_variants_channel_url"),
    )

    def __repr__(self) -> str:
        return f"<ChannelVariant(id={self.id}, channel_id={self.channel_id}, stream_url={self.stream_url})>"


class EPGEntry(Base):
    """One programme on one channel over ``[start_time, end_time)``."""

    __tablename__ = "epg_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("channels.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    channel: Mapped[Channel] = relationship("Channel", back_populates="epg_entries")

    __table_args__ = (
        UniqueConstraint("channel_id", "start_time", "title", name="uq_epg_entries_channel_start_title"),
        Index("ix_epg_entries_channel_start", "channel_id", "start_time"),
        Index("ix_epg_entries_end_time", "end_time"),
    )

    def __repr__(self) -> str:
        return f"<EPGEntry(id={self.id}, channel_id={self.channel_id}, title={self.title}, start={self.start_time})>"


class Favorite(Base):
    """A profile's favorite mark on exactly one movie, series or channel."""

    __tablename__ = "favorites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    movie_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=True
    )
    series_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("series.id", ondelete="CASCADE"), nullable=True
    )
    channel_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("channels.id", ondelete="CASCADE"), nullable=True
    )
    favorited_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    profile: Mapped[Profile] = relationship("Profile", back_populates="favorites")
    movie: Mapped[Movie | None] = relationship("Movie", back_populates="favorites")
    series: Mapped[Series | None] = relationship("Series", back_populates="favorites")
    channel: Mapped[Channel | None] = relationship("Channel", back_populates="favorites")

    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN movie_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN series_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN channel_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="chk_favorite_single_target",
        ),
        Index("ix_favorites_profile_id", "profile_id"),
    )

    def __repr__(self) -> str:
        return f"<Favorite(id={self.id}, profile_id={self.profile_id}, movie_id={self.movie_id}, series_id={self.series_id}, channel_id={self.channel_id})>"


class WatchHistory(Base):
    """Authoritative playback progress of a movie or an episode for one profile.

    ``progress`` is stored exactly as reported; clamping only happens in the
    cached percent on the content record.
    """

    __tablename__ = "watch_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    movie_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=True
    )
    episode_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("episodes.id", ondelete="CASCADE"), nullable=True
    )
    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    watched_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    profile: Mapped[Profile] = relationship("Profile", back_populates="watch_history")
    movie: Mapped[Movie | None] = relationship("Movie", back_populates="watch_history")
    episode: Mapped[Episode | None] = relationship("Episode", back_populates="watch_history")

    __table_args__ = (
        Index("ix_watch_history_profile_movie", "profile_id", "movie_id"),
        Index("ix_watch_history_profile_episode", "profile_id", "episode_id"),
    )

    def __repr__(self) -> str:
        return f"<WatchHistory(id={self.id}, profile_id={self.profile_id}, movie_id={self.movie_id}, episode_id={self.episode_id}, progress={self.progress})>"


ContentItem = Movie | Series | Channel
