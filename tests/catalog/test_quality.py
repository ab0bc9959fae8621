"""
Tests for stream quality scoring.
"""

import pytest

from streamhaven.catalog.quality import UNKNOWN_QUALITY, assess_quality


@pytest.mark.parametrize(
    "url,name,expected",
    [
        ("http://cdn.example.com/stream_4k.m3u8", None, 5),
        ("http://cdn.example.com/stream_2160p.m3u8", None, 5),
        ("http://cdn.example.com/stream_1080p.m3u8", None, 4),
        (None, "Sports FHD", 4),
        ("http://cdn.example.com/stream_720p.m3u8", None, 3),
        (None, "HD Channel", 3),
        ("http://cdn.example.com/stream_480p.m3u8", None, 2),
        (None, "News SD", 2),
        ("http://cdn.example.com/stream.m3u8", "Unknown", 1),
        (None, None, UNKNOWN_QUALITY),
    ],
)
def test_quality_tiers(url, name, expected):
    assert assess_quality(url, name) == expected


def test_higher_tier_wins_across_fields():
    assert assess_quality("http://cdn.example.com/stream_480p.m3u8", "Movies 4K") == 5
    assert assess_quality("http://cdn.example.com/stream_1080p.m3u8", "Movies SD") == 4


def test_letter_tokens_need_word_boundaries():
    assert assess_quality(None, "Wisdom Channel") == 1
    assert assess_quality(None, "Shdw TV") == 1


def test_case_insensitive():
    assert assess_quality("http://cdn.example.com/STREAM_1080P.M3U8", None) == 4


@pytest.mark.parametrize(
    "name,expected",
    [
        ("BBC HDTV", UNKNOWN_QUALITY),
        ("Nature UHD", UNKNOWN_QUALITY),
        ("SDTV Classics", UNKNOWN_QUALITY),
        ("Nature UHD 4K", 5),
        ("BBC HD-TV", 3),
        ("News_SD", 2),
    ],
)
def test_tokens_inside_longer_words_do_not_count(name, expected):
    assert assess_quality(None, name) == expected
