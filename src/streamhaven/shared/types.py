"""
Shared types and enums for StreamHaven.

This module contains common types and enums that are used across
the domain, importers, CLI, and other layers.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class SourceType(str, Enum):
    """Supported playlist source formats."""

    M3U = "m3u"
    XTREAM = "xtream"


class SourceMode(str, Enum):
    """How a profile presents content from several sources."""

    COMBINED = "combined"
    SINGLE = "single"


class ContentKind(str, Enum):
    """Kinds of content records that can be grouped."""

    MOVIE = "movie"
    SERIES = "series"
    CHANNEL = "channel"


class XtreamCategory(str, Enum):
    """Xtream Codes player_api actions, one per content category."""

    LIVE = "get_live_streams"
    VOD = "get_vod_streams"
    SERIES = "get_series"


# Type aliases for common data structures
RawProviderData = dict[str, Any]
ImportSummary = dict[str, Any]
