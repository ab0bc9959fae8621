from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.entities import Profile
from ..infra.exceptions import ValidationError
from ..shared.types import SourceMode


def parse_source_mode(value: str | SourceMode) -> SourceMode:
    if isinstance(value, SourceMode):
        return value
    try:
        return SourceMode(str(value).strip().lower())
    except ValueError as e:
        choices = ", ".join(m.value for m in SourceMode)
        raise ValidationError(f"Invalid source mode '{value}'. Choose one of: {choices}") from e


def profile_to_dict(profile: Profile) -> dict[str, Any]:
    return {
        "id": profile.id,
        "name": profile.name,
        "source_mode": profile.mode.value,
        "is_adult": profile.is_adult,
        "sources": len(profile.sources),
        "active_sources": len(profile.active_sources),
        "created_at": profile.created_at.isoformat() if profile.created_at else None,
    }


def add_profile(
    db: Session,
    *,
    name: str,
    source_mode: str | SourceMode = SourceMode.COMBINED,
    is_adult: bool = True,
) -> dict[str, Any]:
    """
    Create a profile. Single operation; the caller owns the transaction.
    """
    if not name or not name.strip():
        raise ValidationError("Profile name is required")

    profile = Profile(name=name.strip(), source_mode=parse_source_mode(source_mode), is_adult=is_adult)
    db.add(profile)
    db.flush()
    return profile_to_dict(profile)


__all__ = ["add_profile", "parse_source_mode", "profile_to_dict"]
