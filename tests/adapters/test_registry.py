"""
Tests for the importer registry and playlist type detection.
"""

import pytest

from streamhaven.adapters.importers.m3u_importer import M3UImporter
from streamhaven.adapters.importers.xtream_importer import XtreamImporter
from streamhaven.adapters.registry import (
    UnsupportedSource,
    detect_playlist_type,
    get_importer,
    list_importers,
    resolve_source_type,
)
from streamhaven.infra.exceptions import InvalidURLError, UnsupportedPlaylistTypeError
from streamhaven.shared.types import SourceType


@pytest.mark.parametrize(
    "name,expected",
    [
        ("m3u", SourceType.M3U),
        ("M3U8", SourceType.M3U),
        ("xc", SourceType.XTREAM),
        ("xtream-codes", SourceType.XTREAM),
        (SourceType.XTREAM, SourceType.XTREAM),
    ],
)
def test_resolve_source_type(name, expected):
    assert resolve_source_type(name) == expected


def test_unknown_source_type():
    with pytest.raises(UnsupportedSource):
        resolve_source_type("plex")


def test_get_importer():
    assert isinstance(get_importer("m3u", url="http://example.com/list.m3u"), M3UImporter)
    importer = get_importer("xtream", url="http://panel.example.com", username="u", password="p")
    assert isinstance(importer, XtreamImporter)


def test_list_importers():
    assert [entry["type"] for entry in list_importers()] == ["m3u", "xtream"]


@pytest.mark.parametrize(
    "url,expected",
    [
        ("http://example.com/playlist.m3u", SourceType.M3U),
        ("https://example.com/path/LIST.M3U8?token=1", SourceType.M3U),
        ("/home/user/list.m3u", SourceType.M3U),
        ("http://panel.example.com:8080/get.php?username=u&password=p&type=m3u_plus", SourceType.XTREAM),
    ],
)
def test_detect_playlist_type(url, expected):
    assert detect_playlist_type(url) == expected


@pytest.mark.parametrize(
    "url",
    [
        "http://example.com/stream",
        "http://panel.example.com/get.php?username=u",
        "http://panel.example.com/get.php?username=&password=p",
    ],
)
def test_detect_playlist_type_unsupported(url):
    with pytest.raises(UnsupportedPlaylistTypeError):
        detect_playlist_type(url)


def test_detect_playlist_type_empty():
    with pytest.raises(InvalidURLError):
        detect_playlist_type("  ")
