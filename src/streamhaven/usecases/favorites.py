from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..catalog.denormalization import DenormalizationEngine
from ..domain.entities import Channel, Favorite, Movie, Profile, Series
from ..infra.exceptions import ValidationError

logger = logging.getLogger(__name__)

_TARGETS = {
    Movie: "movie_id",
    Series: "series_id",
    Channel: "channel_id",
}


def _target_column(item: Movie | Series | Channel) -> str:
    column = _TARGETS.get(type(item))
    if column is None:
        raise ValidationError(f"Cannot favorite a {type(item).__name__}")
    return column


def get_favorite(db: Session, *, profile: Profile, item: Movie | Series | Channel) -> Favorite | None:
    column = getattr(Favorite, _target_column(item))
    return db.scalars(
        select(Favorite).where(Favorite.profile_id == profile.id, column == item.id).limit(1)
    ).first()


def is_favorite(db: Session, *, profile: Profile, item: Movie | Series | Channel) -> bool:
    return get_favorite(db, profile=profile, item=item) is not None


def toggle_favorite(
    db: Session,
    *,
    profile: Profile,
    item: Movie | Series | Channel,
    engine: DenormalizationEngine | None = None,
) -> bool:
    """Flip the favorite mark of ``item`` for ``profile``; returns the new state."""
    favorite = get_favorite(db, profile=profile, item=item)
    if favorite is None:
        db.add(Favorite(profile_id=profile.id, **{_target_column(item): item.id}))
        state = True
    else:
        db.delete(favorite)
        state = False
    db.flush()

    (engine or DenormalizationEngine()).update_denormalized_fields(db, item, profile)
    logger.debug("Favorite %s %s for profile %s: %s", type(item).__name__, item.id, profile.id, state)
    return state


__all__ = ["get_favorite", "is_favorite", "toggle_favorite"]
