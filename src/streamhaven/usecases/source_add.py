from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from ..adapters.registry import get_importer, resolve_source_type
from ..domain.entities import PlaylistSource, Profile
from ..infra.exceptions import ValidationError
from ..shared.types import SourceType
from .source_list import source_to_dict

logger = logging.getLogger(__name__)


def add_source(
    db: Session,
    *,
    profile: Profile,
    source_type: str | SourceType,
    name: str,
    url: str,
    username: str | None = None,
    password: str | None = None,
) -> dict[str, Any]:
    """
    Add a playlist source to a profile. Single operation.

    The importer for ``source_type`` validates the configuration up front so a
    source that could never be ingested is not stored. New sources are active
    and go to the end of the profile's display order.
    """
    if not name or not name.strip():
        raise ValidationError("Source name is required")
    if not url or not url.strip():
        raise ValidationError("Source URL is required")

    resolved = resolve_source_type(source_type)
    get_importer(resolved, url=url.strip(), username=username, password=password)

    source = PlaylistSource(
        profile=profile,
        name=name.strip(),
        source_type=resolved,
        url=url.strip(),
        username=username,
        password=password,
        is_active=True,
        display_order=len(profile.sources),
    )
    db.add(source)
    db.flush()

    logger.info("Added %s source '%s' (%s) to profile %s", resolved.value, source.name, source.source_id, profile.id)
    return source_to_dict(source)


__all__ = ["add_source"]
