"""
Global test configuration for StreamHaven.

This module provides the database fixtures and record factories shared by
the test suite.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure the project src directory is importable without relying on external environment.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from streamhaven.domain.entities import (  # noqa: E402
    Channel,
    ChannelVariant,
    Episode,
    Movie,
    PlaylistSource,
    Profile,
    Season,
    Series,
)
from streamhaven.infra import db as db_module  # noqa: E402
from streamhaven.shared.types import SourceMode, SourceType  # noqa: E402


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of one test."""
    eng = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        future=True,
    )
    db_module.configure_sqlite(eng)
    db_module.create_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def file_db(tmp_path, monkeypatch):
    """
    File-backed SQLite wired in as the application database.

    Used where several units of work run (CLI commands, concurrent ingest);
    returns the session factory the application now uses.
    """
    eng = db_module.get_engine(f"sqlite:///{tmp_path / 'streamhaven.db'}")
    db_module.create_schema(eng)
    factory = sessionmaker(bind=eng, autoflush=False, autocommit=False, future=True)

    monkeypatch.setattr(db_module, "engine", eng)
    monkeypatch.setattr(db_module, "SessionLocal", factory)
    yield factory
    eng.dispose()


@pytest.fixture
def make_profile(db):
    def _make(name: str = "Main", mode: SourceMode = SourceMode.COMBINED, *, is_adult: bool = True) -> Profile:
        profile = Profile(name=name, source_mode=mode, is_adult=is_adult)
        db.add(profile)
        db.flush()
        return profile

    return _make


@pytest.fixture
def make_source(db):
    def _make(
        profile: Profile,
        name: str = "Source",
        *,
        source_type: SourceType = SourceType.M3U,
        url: str = "http://example.com/list.m3u",
        is_active: bool = True,
    ) -> PlaylistSource:
        order = len(profile.sources)
        source = PlaylistSource(
            profile=profile,
            name=name,
            source_type=source_type,
            url=url,
            is_active=is_active,
            display_order=order,
        )
        db.add(source)
        db.flush()
        return source

    return _make


@pytest.fixture
def make_movie(db):
    def _make(source: PlaylistSource, title: str, stream_url: str | None = None) -> Movie:
        movie = Movie(source=source, title=title, stream_url=stream_url or f"http://example.com/{title}.mp4")
        db.add(movie)
        db.flush()
        return movie

    return _make


@pytest.fixture
def make_channel(db):
    def _make(
        source: PlaylistSource,
        name: str,
        *,
        tvg_id: str | None = None,
        urls: tuple[str, ...] = (),
    ) -> Channel:
        channel = Channel(source=source, name=name, tvg_id=tvg_id, stream_url=urls[0] if urls else None)
        for url in urls:
            channel.variants.append(ChannelVariant(name=name, stream_url=url))
        db.add(channel)
        db.flush()
        return channel

    return _make


@pytest.fixture
def make_series(db):
    def _make(source: PlaylistSource, title: str, episodes_per_season: tuple[int, ...] = (2,)) -> Series:
        series = Series(source=source, title=title)
        for number, count in enumerate(episodes_per_season, start=1):
            season = Season(number=number)
            season.episodes = [Episode(number=n, title=f"{title} S{number}E{n}") for n in range(1, count + 1)]
            series.seasons.append(season)
        db.add(series)
        db.flush()
        return series

    return _make
