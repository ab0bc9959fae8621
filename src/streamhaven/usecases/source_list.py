from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..domain.entities import Channel, Movie, PlaylistSource, Profile, Series


def source_to_dict(source: PlaylistSource, counts: dict[str, int] | None = None) -> dict[str, Any]:
    result: dict[str, Any] = {
        "id": str(source.source_id),
        "profile_id": source.profile_id,
        "name": source.name,
        "type": source.source_type.value,
        "url": source.url,
        "is_active": source.is_active,
        "display_order": source.display_order,
        "epg_url": source.epg_url,
        "created_at": source.created_at.isoformat() if source.created_at else None,
        "last_refreshed": source.last_refreshed.isoformat() if source.last_refreshed else None,
        "last_error": source.last_error,
    }
    if counts is not None:
        result.update(counts)
    return result


def _count(db: Session, model: type[Movie] | type[Series] | type[Channel], source: PlaylistSource) -> int:
    return db.scalar(select(func.count(model.id)).where(model.source_id == source.source_id)) or 0


def list_sources(db: Session, *, profile: Profile | None = None) -> list[dict[str, Any]]:
    """
    List sources in display order with per-source content counts. Single operation.
    """
    query = db.query(PlaylistSource)
    if profile is not None:
        query = query.filter(PlaylistSource.profile_id == profile.id)
    sources = query.order_by(PlaylistSource.profile_id, PlaylistSource.display_order).all()

    return [
        source_to_dict(
            src,
            {
                "movies": _count(db, Movie, src),
                "series": _count(db, Series, src),
                "channels": _count(db, Channel, src),
            },
        )
        for src in sources
    ]


__all__ = ["list_sources", "source_to_dict"]
