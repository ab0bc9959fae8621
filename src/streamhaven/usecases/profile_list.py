from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.entities import Profile
from .profile_add import profile_to_dict


def list_profiles(db: Session) -> list[dict[str, Any]]:
    return [profile_to_dict(p) for p in db.query(Profile).order_by(Profile.id).all()]


__all__ = ["list_profiles"]
