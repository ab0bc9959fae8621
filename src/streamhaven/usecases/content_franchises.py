from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..catalog.franchise import franchise_names, group_franchises
from ..catalog.grouping import visible_items
from ..domain.entities import Movie, Profile


def list_franchises(db: Session, *, profile: Profile) -> list[dict[str, Any]]:
    """
    Franchise clusters among the movies of a profile's active sources,
    largest first.
    """
    if not profile.active_sources:
        return []

    movies = db.scalars(visible_items(Movie, profile).order_by(Movie.id)).all()
    franchises = group_franchises(movies)
    return [
        {
            "name": name,
            "count": len(franchises[name]),
            "movies": [{"id": m.id, "title": m.title, "source_id": str(m.source_id)} for m in franchises[name]],
        }
        for name in franchise_names(franchises)
    ]


__all__ = ["list_franchises"]
