from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from ..domain.entities import Profile
from ..shared.types import SourceMode
from .profile_add import parse_source_mode, profile_to_dict

logger = logging.getLogger(__name__)


def set_source_mode(db: Session, profile: Profile, mode: str | SourceMode) -> dict[str, Any]:
    """Switch how the profile presents content from several sources."""
    profile.source_mode = parse_source_mode(mode)
    db.flush()
    logger.info("Profile %s source mode set to %s", profile.id, profile.source_mode.value)
    return profile_to_dict(profile)


__all__ = ["set_source_mode"]
