"""
Adult content detection.

Flags a title or category that names adult content. Keywords made only of
letters and digits must match as whole words, so "adult" hits "Adult Swim
Late" but not "Adulthood"; keywords with other characters ("18+") match
anywhere.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

TITLE_KEYWORDS = frozenset({"adult", "18+", "xxx", "porn", "erotic", "explicit", "material"})
CATEGORY_KEYWORDS = frozenset({"adult", "xxx", "18+", "mature", "nsfw"})


def _compile(keywords: Iterable[str]) -> re.Pattern[str]:
    parts = []
    for keyword in sorted(keywords):
        escaped = re.escape(keyword)
        parts.append(rf"\b{escaped}\b" if keyword.isalnum() else escaped)
    return re.compile("|".join(parts), re.IGNORECASE)


_TITLE_PATTERN = _compile(TITLE_KEYWORDS)
_CATEGORY_PATTERN = _compile(CATEGORY_KEYWORDS)


def is_adult_content(title: str | None, category: str | None = None) -> bool:
    """True when ``title`` or ``category`` carries an adult keyword."""
    title = (title or "").strip()
    category = (category or "").strip()
    if title and _TITLE_PATTERN.search(title):
        return True
    return bool(category) and _CATEGORY_PATTERN.search(category) is not None
