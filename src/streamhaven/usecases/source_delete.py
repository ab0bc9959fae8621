from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from ..domain.entities import PlaylistSource

logger = logging.getLogger(__name__)


def delete_source(db: Session, source: PlaylistSource) -> dict[str, Any]:
    """
    Remove a source and everything it produced. Single operation.

    Content records, their children and the favorites and watch history
    pointing at them go with it. Remaining sources of the profile are
    renumbered so display order stays contiguous.
    """
    profile = source.profile
    result = {"id": str(source.source_id), "name": source.name, "deleted": True}

    db.delete(source)
    db.flush()

    if profile is not None:
        db.expire_all()
        for index, remaining in enumerate(profile.all_sources):
            remaining.display_order = index
        db.flush()

    logger.info("Deleted source %s (%s)", result["id"], result["name"])
    return result


__all__ = ["delete_source"]
