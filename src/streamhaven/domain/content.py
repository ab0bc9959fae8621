"""
Ephemeral value types computed from the content store.

None of these are persisted. Groups and franchise clusters are rebuilt on every
query from the stored records, so they carry no identity of their own.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

from .entities import EPGEntry

T = TypeVar("T")


@dataclass
class ContentGroup(Generic[T]):
    """One logical title as seen across the active sources of a profile."""

    primary_item: T
    alternative_items: list[T] = field(default_factory=list)
    source_ids: set[uuid.UUID] = field(default_factory=set)

    @property
    def item_count(self) -> int:
        return 1 + len(self.alternative_items)

    @property
    def all_items(self) -> list[T]:
        return [self.primary_item, *self.alternative_items]


@dataclass(frozen=True)
class SourceMetadata:
    """Read-only projection of a playlist source for display next to a group."""

    source_id: uuid.UUID
    source_name: str
    is_active: bool
    last_refreshed: datetime | None = None


@dataclass(frozen=True)
class NowNext:
    now: EPGEntry | None
    next: EPGEntry | None


@dataclass(frozen=True)
class DerivedFields:
    """A complete set of cached fields for one content record.

    Only the fields relevant to the record's kind are set; the rest stay None
    and are left untouched when applied.
    """

    is_favorite: bool = False
    has_been_watched: bool | None = None
    watch_progress_percent: int | None = None
    last_watched_date: datetime | None = None
    total_episode_count: int | None = None
    unwatched_episode_count: int | None = None
    season_count: int | None = None
    has_epg: bool | None = None
    current_program_title: str | None = None
    epg_last_updated: datetime | None = None
    variant_count: int | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "is_favorite": self.is_favorite,
            "has_been_watched": self.has_been_watched,
            "watch_progress_percent": self.watch_progress_percent,
            "last_watched_date": self.last_watched_date,
            "total_episode_count": self.total_episode_count,
            "unwatched_episode_count": self.unwatched_episode_count,
            "season_count": self.season_count,
            "has_epg": self.has_epg,
            "current_program_title": self.current_program_title,
            "epg_last_updated": self.epg_last_updated,
            "variant_count": self.variant_count,
        }
