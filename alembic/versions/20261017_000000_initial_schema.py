"""initial_schema

Revision ID: 5d1e0c7a9b21
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from streamhaven.infra.db import UTCDateTime

# revision identifiers, used by Alembic.
revision: str = "5d1e0c7a9b21"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "source_mode",
            sa.Enum("COMBINED", "SINGLE", name="source_mode", native_enum=False),
            nullable=False,
        ),
        sa.Column("is_adult", sa.Boolean(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_profiles"),
    )

    op.create_table(
        "playlist_sources",
        sa.Column("source_id", sa.Uuid(), nullable=False),
        sa.Column(
            "profile_id",
            sa.Integer(),
            sa.ForeignKey("profiles.id", name="fk_playlist_sources_profile_id_profiles", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("source_type", sa.Enum("M3U", "XTREAM", name="source_type", native_enum=False), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("username", sa.String(255), nullable=True),
        sa.Column("password", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("epg_url", sa.Text(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("last_refreshed", UTCDateTime(), nullable=True),
        sa.Column("epg_last_refreshed", UTCDateTime(), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("source_id", name="pk_playlist_sources"),
    )
    op.create_index("ix_playlist_sources_profile_id", "playlist_sources", ["profile_id"])
    op.create_index("ix_playlist_sources_is_active", "playlist_sources", ["is_active"])

    op.create_table(
        "movies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "source_id",
            sa.Uuid(),
            sa.ForeignKey("playlist_sources.source_id", name="fk_movies_source_id_playlist_sources", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("stable_id", sa.String(255), nullable=True),
        sa.Column("stream_url", sa.Text(), nullable=True),
        sa.Column("poster_url", sa.Text(), nullable=True),
        sa.Column("rating", sa.String(32), nullable=True),
        sa.Column("category", sa.String(255), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("release_date", sa.Date(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("is_favorite", sa.Boolean(), nullable=False),
        sa.Column("has_been_watched", sa.Boolean(), nullable=False),
        sa.Column("watch_progress_percent", sa.Integer(), nullable=False),
        sa.Column("last_watched_date", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_movies"),
        sa.CheckConstraint(
            "watch_progress_percent >= 0 AND watch_progress_percent <= 100",
            name="ck_movies_chk_movie_progress_percent",
        ),
    )
    op.create_index("ix_movies_source_id", "movies", ["source_id"])
    op.create_index("ix_movies_title", "movies", ["title"])

    op.create_table(
        "series",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "source_id",
            sa.Uuid(),
            sa.ForeignKey("playlist_sources.source_id", name="fk_series_source_id_playlist_sources", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("stable_id", sa.String(255), nullable=True),
        sa.Column("poster_url", sa.Text(), nullable=True),
        sa.Column("rating", sa.String(32), nullable=True),
        sa.Column("category", sa.String(255), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("release_date", sa.Date(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("is_favorite", sa.Boolean(), nullable=False),
        sa.Column("total_episode_count", sa.Integer(), nullable=False),
        sa.Column("unwatched_episode_count", sa.Integer(), nullable=False),
        sa.Column("season_count", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_series"),
    )
    op.create_index("ix_series_source_id", "series", ["source_id"])
    op.create_index("ix_series_title", "series", ["title"])

    op.create_table(
        "seasons",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "series_id",
            sa.Integer(),
            sa.ForeignKey("series.id", name="fk_seasons_series_id_series", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_seasons"),
        sa.UniqueConstraint("series_id", "number", name="uq_seasons_series_number"),
    )

    op.create_table(
        "episodes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "season_id",
            sa.Integer(),
            sa.ForeignKey("seasons.id", name="fk_episodes_season_id_seasons", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("number", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("stable_id", sa.String(255), nullable=True),
        sa.Column("stream_url", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_episodes"),
    )
    op.create_index("ix_episodes_season_id", "episodes", ["season_id"])

    op.create_table(
        "channels",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "source_id",
            sa.Uuid(),
            sa.ForeignKey("playlist_sources.source_id", name="fk_channels_source_id_playlist_sources", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("stable_id", sa.String(255), nullable=True),
        sa.Column("tvg_id", sa.String(255), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("stream_url", sa.Text(), nullable=True),
        sa.Column("category", sa.String(255), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("is_favorite", sa.Boolean(), nullable=False),
        sa.Column("has_epg", sa.Boolean(), nullable=False),
        sa.Column("current_program_title", sa.String(500), nullable=True),
        sa.Column("epg_last_updated", UTCDateTime(), nullable=True),
        sa.Column("variant_count", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_channels"),
    )
    op.create_index("ix_channels_source_id", "channels", ["source_id"])
    op.create_index("ix_channels_tvg_id", "channels", ["tvg_id"])
    op.create_index("ix_channels_name", "channels", ["name"])

    op.create_table(
        "channel_variants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "channel_id",
            sa.Integer(),
            sa.ForeignKey("channels.id", name="fk_channel_variants_channel_id_channels", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("stream_url", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_channel_variants"),
        sa.UniqueConstraint("channel_id", "stream_url", name="uq_channel_variants_channel_url"),
    )
    op.create_index("ix_channel_variants_channel_id", "channel_variants", ["channel_id"])

    op.create_table(
        "epg_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "channel_id",
            sa.Integer(),
            sa.ForeignKey("channels.id", name="fk_epg_entries_channel_id_channels", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(255), nullable=True),
        sa.Column("start_time", UTCDateTime(), nullable=False),
        sa.Column("end_time", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_epg_entries"),
        sa.UniqueConstraint("channel_id", "start_time", "title", name="uq_epg_entries_channel_start_title"),
    )
    op.create_index("ix_epg_entries_channel_start", "epg_entries", ["channel_id", "start_time"])
    op.create_index("ix_epg_entries_end_time", "epg_entries", ["end_time"])

    op.create_table(
        "favorites",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "profile_id",
            sa.Integer(),
            sa.ForeignKey("profiles.id", name="fk_favorites_profile_id_profiles", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "movie_id",
            sa.Integer(),
            sa.ForeignKey("movies.id", name="fk_favorites_movie_id_movies", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "series_id",
            sa.Integer(),
            sa.ForeignKey("series.id", name="fk_favorites_series_id_series", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "channel_id",
            sa.Integer(),
            sa.ForeignKey("channels.id", name="fk_favorites_channel_id_channels", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("favorited_date", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_favorites"),
        sa.CheckConstraint(
            "(CASE WHEN movie_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN series_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN channel_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_favorites_chk_favorite_single_target",
        ),
    )
    op.create_index("ix_favorites_profile_id", "favorites", ["profile_id"])

    op.create_table(
        "watch_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "profile_id",
            sa.Integer(),
            sa.ForeignKey("profiles.id", name="fk_watch_history_profile_id_profiles", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "movie_id",
            sa.Integer(),
            sa.ForeignKey("movies.id", name="fk_watch_history_movie_id_movies", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "episode_id",
            sa.Integer(),
            sa.ForeignKey("episodes.id", name="fk_watch_history_episode_id_episodes", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("progress", sa.Float(), nullable=False),
        sa.Column("watched_date", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_watch_history"),
    )
    op.create_index("ix_watch_history_profile_movie", "watch_history", ["profile_id", "movie_id"])
    op.create_index("ix_watch_history_profile_episode", "watch_history", ["profile_id", "episode_id"])


def downgrade() -> None:
    for table in (
        "watch_history",
        "favorites",
        "epg_entries",
        "channel_variants",
        "channels",
        "episodes",
        "seasons",
        "series",
        "movies",
        "playlist_sources",
        "profiles",
    ):
        op.drop_table(table)
