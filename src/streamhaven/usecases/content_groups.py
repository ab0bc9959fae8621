from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..catalog.grouping import GroupingConfig, MultiSourceContentManager, best_variant
from ..domain.content import ContentGroup
from ..domain.entities import Channel, Movie, Profile, Series
from ..infra.exceptions import ValidationError
from ..shared.types import ContentKind


def item_to_dict(item: Movie | Series | Channel) -> dict[str, Any]:
    result: dict[str, Any] = {
        "id": item.id,
        "kind": item.content_kind.value,
        "title": item.display_title,
        "source_id": str(item.source_id),
        "is_favorite": item.is_favorite,
    }
    if isinstance(item, Movie):
        result["stream_url"] = item.stream_url
        result["watch_progress_percent"] = item.watch_progress_percent
    elif isinstance(item, Channel):
        variant = best_variant(item)
        result["stream_url"] = variant.stream_url if variant is not None else item.stream_url
        result["variant_count"] = item.variant_count
        result["current_program_title"] = item.current_program_title
    else:
        result["unwatched_episode_count"] = item.unwatched_episode_count
    return result


def group_to_dict(
    manager: MultiSourceContentManager, group: ContentGroup[Any], profile: Profile
) -> dict[str, Any]:
    return {
        "title": group.primary_item.display_title,
        "item_count": group.item_count,
        "primary": item_to_dict(manager.select_best_item(group)),
        "alternatives": [item_to_dict(item) for item in group.alternative_items],
        "sources": [
            {"id": str(meta.source_id), "name": meta.source_name, "is_active": meta.is_active}
            for meta in manager.get_group_source_metadata(group, profile)
        ],
    }


def list_content_groups(
    db: Session,
    *,
    profile: Profile,
    kind: str | ContentKind,
    config: GroupingConfig | None = None,
) -> list[dict[str, Any]]:
    """
    Group a profile's content of one kind across its active sources.
    """
    try:
        kind = ContentKind(kind)
    except ValueError as e:
        raise ValidationError(f"Unknown content kind '{kind}'. Choose movie, series or channel") from e

    manager = MultiSourceContentManager(db, config or GroupingConfig.from_settings())
    groupers = {
        ContentKind.MOVIE: manager.group_movies,
        ContentKind.SERIES: manager.group_series,
        ContentKind.CHANNEL: manager.group_channels,
    }
    return [group_to_dict(manager, group, profile) for group in groupers[kind](profile)]


__all__ = ["group_to_dict", "item_to_dict", "list_content_groups"]
