"""
Franchise clustering.

Groups stored movies into franchises by reducing each title to a candidate
base name with a handful of sequel heuristics and clustering equal bases.
Only clusters with at least two members are reported.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

# Trailing words that mark a sequel or follow-up of the base title
SEQUEL_WORDS = frozenset(
    {
        "reloaded",
        "revolutions",
        "returns",
        "rises",
        "begins",
        "forever",
        "unleashed",
        "resurrection",
        "reborn",
        "redemption",
        "revenge",
        "legacy",
        "origins",
        "awakens",
        "resurgence",
        "reckoning",
    }
)

_COLON_SUBTITLE = re.compile(r"^(.+?)\s*:\s+.*$")
_PART_SUFFIX = re.compile(r"^(.+?)\s+part\s+(?:\d+|[ivx]+)$", re.IGNORECASE)
_TRAILING_NUMBER = re.compile(r"^(.+?)\s+(\d+)$")
_TRAILING_ROMAN = re.compile(r"^(.+?)\s+(?:II|III|IV|V|VI|VII|VIII|IX|X)$")
_WHITESPACE = re.compile(r"\s+")


class Titled(Protocol):
    title: str


M = TypeVar("M", bound=Titled)


def detect_franchise_name(title: str) -> str:
    """Reduce ``title`` to its candidate franchise base.

    The first matching rule wins: colon subtitle, trailing sequel word,
    ``Part N``, trailing integer of at least 2, trailing Roman numeral. A title
    matching nothing is its own base.
    """
    title = _WHITESPACE.sub(" ", title).strip()
    if not title:
        return ""

    match = _COLON_SUBTITLE.match(title)
    if match:
        return match.group(1).strip()

    words = title.split(" ")
    if len(words) > 1 and words[-1].lower().strip(".!?") in SEQUEL_WORDS:
        return " ".join(words[:-1])

    match = _PART_SUFFIX.match(title)
    if match:
        return match.group(1).strip()

    match = _TRAILING_NUMBER.match(title)
    if match and int(match.group(2)) >= 2:
        return match.group(1).strip()

    match = _TRAILING_ROMAN.match(title)
    if match:
        return match.group(1).strip()

    return title


def _cluster_key(base: str) -> str:
    return base.lower()


def group_franchises(movies: Iterable[M]) -> dict[str, list[M]]:
    """Cluster ``movies`` by candidate base name.

    Bases are compared case-insensitively; the reported key is the base as
    derived from the first member encountered. Members are ordered by title.
    Movies without a title are ignored.
    """
    clusters: dict[str, list[M]] = {}
    display_names: dict[str, str] = {}

    for movie in movies:
        title = getattr(movie, "title", None)
        if not title or not title.strip():
            continue
        base = detect_franchise_name(title)
        key = _cluster_key(base)
        if key not in clusters:
            clusters[key] = []
            display_names[key] = base
        clusters[key].append(movie)

    return {
        display_names[key]: sorted(members, key=lambda m: m.title)
        for key, members in clusters.items()
        if len(members) > 1
    }


def franchise_names(franchises: dict[str, Sequence[Titled]]) -> list[str]:
    """Franchise keys ordered by descending size, then name."""
    return sorted(franchises, key=lambda name: (-len(franchises[name]), name.lower()))
