"""
Stream quality heuristics.

Scores a stream from resolution tokens found in its URL and display name.
"""

from __future__ import annotations

import re

UNKNOWN_QUALITY = 1

# Highest tier first; the first tier with a hit wins.
QUALITY_TIERS: list[tuple[int, tuple[str, ...]]] = [
    (5, ("4k", "2160p")),
    (4, ("1080p", "fhd")),
    (3, ("720p", "hd")),
    (2, ("480p", "sd")),
]


def _has_token(haystack: str, token: str) -> bool:
    # Letter-only tokens must stand alone so "sd" never hits inside "wisdom"
    if token.isalpha():
        return re.search(rf"(?<![a-z]){re.escape(token)}(?![a-z])", haystack) is not None
    return token in haystack


def assess_quality(stream_url: str | None, name: str | None) -> int:
    """Return a quality score in ``[1, 5]`` for a stream.

    Both inputs are searched case-insensitively; a match in either is enough
    and the highest matching tier wins.
    """
    haystack = " ".join(part for part in (stream_url, name) if part).lower()
    if not haystack:
        return UNKNOWN_QUALITY

    for score, tokens in QUALITY_TIERS:
        if any(_has_token(haystack, token) for token in tokens):
            return score
    return UNKNOWN_QUALITY
