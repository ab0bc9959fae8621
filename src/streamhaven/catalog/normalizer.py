"""
Title normalization.

Turns a raw provider title into the grouping key used to match the same
logical content across sources.
"""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")
_LEADING_ARTICLES = ("the ", "a ", "an ")


def _collapse(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


def normalize_title(title: str | None) -> str:
    """Return the grouping key for ``title``.

    Steps, each applied to the previous result:

    1. Lowercase.
    2. Collapse whitespace runs and trim.
    3. Drop punctuation and symbols (removed, not replaced). ASCII keeps only
       ``[a-z0-9 ]``; non-ASCII letters and digits pass through.
    4. Drop the leading article (``the``, ``a``, ``an``). A stacked article
       such as "the a" is dropped too so the key stays a fixed point.

    Blank titles normalize to ``""``; callers must never merge on an empty key.
    """
    if not title:
        return ""

    key = title.lower()
    key = _collapse(key)
    key = "".join(ch for ch in key if ch == " " or ch.isalnum())
    # Removing punctuation can leave doubled or edge spaces ("a - b")
    key = _collapse(key)

    stripped = True
    while stripped:
        stripped = False
        for article in _LEADING_ARTICLES:
            if key.startswith(article):
                key = key[len(article) :]
                stripped = True
                break

    return key.strip()
