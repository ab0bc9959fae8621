"""
Multi-source content grouping.

Groups the movies, series or channels of a profile's active sources into
ContentGroups keyed by normalized title. Groups are computed on every call
from a snapshot of the store and never persisted. Kids profiles never see
content flagged as adult.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy import Select, select
from sqlalchemy.orm import Session, selectinload

from ..domain.content import ContentGroup, SourceMetadata
from ..domain.entities import Channel, ChannelVariant, Movie, PlaylistSource, Profile, Series
from ..infra.settings import settings
from ..shared.types import SourceMode
from .normalizer import normalize_title
from .quality import assess_quality

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT", Movie, Series, Channel)


@dataclass(frozen=True)
class GroupingConfig:
    """Behaviour switches for the grouper.

    ``rank_by_quality`` picks the primary item by quality score instead of
    first-encountered; ties still go to the first item.
    """

    rank_by_quality: bool = False

    @classmethod
    def from_settings(cls) -> GroupingConfig:
        return cls(rank_by_quality=settings.rank_groups_by_quality)


def visible_items(model: type[ItemT], profile: Profile) -> Select[tuple[ItemT]]:
    """Select the ``model`` rows of the profile's active sources it may see.

    Kids profiles never see records flagged as adult content.
    """
    source_ids = [source.source_id for source in profile.active_sources]
    stmt = select(model).where(model.source_id.in_(source_ids))
    if not profile.is_adult:
        stmt = stmt.where(model.is_adult.is_(False))
    return stmt


def best_variant(channel: Channel) -> ChannelVariant | None:
    """Highest-quality variant of ``channel``; the first one wins ties."""
    best: ChannelVariant | None = None
    best_score = 0
    for variant in channel.variants:
        score = assess_quality(variant.stream_url, variant.name)
        if score > best_score:
            best, best_score = variant, score
    return best


def item_quality(item: Movie | Series | Channel) -> int:
    if isinstance(item, Channel):
        variant = best_variant(item)
        if variant is not None:
            return assess_quality(variant.stream_url, variant.name)
        return assess_quality(item.stream_url, item.name)
    if isinstance(item, Movie):
        return assess_quality(item.stream_url, item.title)
    return assess_quality(None, item.title)


def build_groups(
    items: Sequence[ItemT], mode: SourceMode, config: GroupingConfig | None = None
) -> list[ContentGroup[ItemT]]:
    """Partition ``items`` into groups.

    This is the pure part of grouping: every item lands in exactly one group
    and no group is empty. In single mode each item is its own group, in
    input order. In combined mode items sharing a non-empty normalized title
    share a group; blank titles never merge. Combined groups come back sorted
    by primary title, ties keeping first-encountered order.
    """
    config = config or GroupingConfig()

    if mode == SourceMode.SINGLE:
        return [ContentGroup(primary_item=item, source_ids={item.source_id}) for item in items]

    buckets: dict[str, list[ItemT]] = {}
    order: list[list[ItemT]] = []
    for item in items:
        key = normalize_title(item.display_title)
        if not key:
            bucket = [item]
            order.append(bucket)
            continue
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = []
            order.append(bucket)
        bucket.append(item)

    groups: list[ContentGroup[ItemT]] = []
    for bucket in order:
        primary = bucket[0]
        if config.rank_by_quality and len(bucket) > 1:
            primary = max(bucket, key=item_quality)  # max keeps the first of equal scores
        groups.append(
            ContentGroup(
                primary_item=primary,
                alternative_items=[item for item in bucket if item is not primary],
                source_ids={item.source_id for item in bucket},
            )
        )

    groups.sort(key=lambda g: g.primary_item.display_title.lower())
    return groups


class MultiSourceContentManager:
    """Reads a profile's active-source content and groups it by title."""

    def __init__(self, db: Session, config: GroupingConfig | None = None):
        self.db = db
        self.config = config or GroupingConfig()

    def _fetch(self, model: type[ItemT], profile: Profile) -> list[ItemT]:
        if not profile.active_sources:
            return []
        stmt = visible_items(model, profile).order_by(model.id)
        if model is Channel:
            stmt = stmt.options(selectinload(Channel.variants))
        return list(self.db.scalars(stmt))

    def _group(self, model: type[ItemT], profile: Profile) -> list[ContentGroup[ItemT]]:
        items = self._fetch(model, profile)
        groups = build_groups(items, profile.mode, self.config)
        logger.debug(
            "Grouped %d %s into %d groups for profile %s (%s)",
            len(items),
            model.__tablename__,
            len(groups),
            profile.id,
            profile.mode.value,
        )
        return groups

    def group_movies(self, profile: Profile) -> list[ContentGroup[Movie]]:
        return self._group(Movie, profile)

    def group_series(self, profile: Profile) -> list[ContentGroup[Series]]:
        return self._group(Series, profile)

    def group_channels(self, profile: Profile) -> list[ContentGroup[Channel]]:
        return self._group(Channel, profile)

    def select_best_item(self, group: ContentGroup[ItemT]) -> ItemT:
        """Return the representative item of ``group``.

        With quality ranking off this is the group's primary, which is the
        first item encountered while grouping.
        """
        if not self.config.rank_by_quality:
            return group.primary_item
        return max(group.all_items, key=item_quality)

    def assess_quality(self, stream_url: str | None, name: str | None) -> int:
        return assess_quality(stream_url, name)

    def get_source_metadata(self, source_id: uuid.UUID, profile: Profile) -> SourceMetadata | None:
        """Metadata for one of the profile's sources, active or not; None if unknown."""
        for source in profile.all_sources:
            if source.source_id == source_id:
                return _to_metadata(source)
        return None

    def get_group_source_metadata(
        self, group: ContentGroup[ItemT], profile: Profile
    ) -> list[SourceMetadata]:
        """One metadata entry per distinct source represented in ``group``."""
        seen: set[uuid.UUID] = set()
        result: list[SourceMetadata] = []
        for item in group.all_items:
            if item.source_id in seen:
                continue
            seen.add(item.source_id)
            metadata = self.get_source_metadata(item.source_id, profile)
            if metadata is not None:
                result.append(metadata)
        return result


def _to_metadata(source: PlaylistSource) -> SourceMetadata:
    return SourceMetadata(
        source_id=source.source_id,
        source_name=source.name,
        is_active=source.is_active,
        last_refreshed=source.last_refreshed,
    )
