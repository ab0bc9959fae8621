"""
Tests for the M3U importer.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from streamhaven.adapters.importers.m3u_importer import M3UImporter, parse_extinf, parse_m3u
from streamhaven.infra.exceptions import InvalidURLError, NetworkError, ParsingFailedError

PLAYLIST = """#EXTM3U url-tvg="http://guide.example.com/epg.xml.gz"
#EXTINF:-1 tvg-id="bbc1.uk" tvg-name="BBC One" tvg-logo="http://logo/bbc1.png" group-title="UK",BBC One HD
http://cdn.example.com/live/bbc1_hd.m3u8
#EXTINF:-1 tvg-id="bbc1.uk" group-title="UK",BBC One HD
http://cdn.example.com/live/bbc1_backup.m3u8
#EXTINF:0 tvg-id="" group-title="Movies: Action",Heat (1995)
http://cdn.example.com/vod/heat.mp4
"""


def test_parse_extinf_attributes():
    entry = parse_extinf('#EXTINF:-1 tvg-id="news.us" tvg-name="News" group-title="News, US",CNN International')

    assert entry["duration"] == -1
    assert entry["title"] == "CNN International"
    assert entry["tvg_id"] == "news.us"
    assert entry["group"] == "News, US"


def test_parse_extinf_falls_back_to_tvg_name():
    entry = parse_extinf('#EXTINF:-1 tvg-name="Fallback",')
    assert entry["title"] == "Fallback"


def test_parse_extinf_malformed():
    assert parse_extinf("#EXTINF:abc,Name") is None


def test_parse_playlist():
    result = parse_m3u(PLAYLIST.splitlines())

    assert result.epg_url == "http://guide.example.com/epg.xml.gz"
    assert [c.name for c in result.channels] == ["BBC One HD", "BBC One HD"]
    assert result.channels[0].tvg_id == "bbc1.uk"
    assert result.channels[0].logo_url == "http://logo/bbc1.png"
    assert [m.title for m in result.movies] == ["Heat (1995)"]
    assert result.movies[0].category == "Movies: Action"
    assert result.skipped == 0


@pytest.mark.parametrize(
    "lines",
    [
        ["#EXTM3U", '#EXTINF:-1 group-title="Movies",Inception'],
        ["#EXTM3U", "#EXTINF:broken", "#EXTINF:also broken"],
        ["#EXTM3U", "http://cdn.example.com/orphan.m3u8"],
    ],
)
def test_entries_without_any_usable_record_fail(lines):
    with pytest.raises(ParsingFailedError):
        parse_m3u(lines)


def test_complete_entry_followed_by_dangling_extinf():
    lines = [
        "#EXTM3U",
        "#EXTINF:-1,Complete",
        "http://cdn.example.com/complete.m3u8",
        "#EXTINF:-1,Dangling",
    ]
    result = parse_m3u(lines)

    assert [c.name for c in result.channels] == ["Complete"]
    assert result.skipped == 1


def test_extinf_replaced_before_url():
    lines = ["#EXTM3U", "#EXTINF:-1,First", "#EXTINF:-1,Second", "http://cdn.example.com/2.m3u8"]
    result = parse_m3u(lines)

    assert [c.name for c in result.channels] == ["Second"]
    assert result.channels[0].stream_url == "http://cdn.example.com/2.m3u8"
    assert result.skipped == 1


def test_malformed_directive_does_not_abort():
    lines = [
        "#EXTM3U",
        "#EXTINF:broken",
        "http://cdn.example.com/orphan.m3u8",
        "#EXTINF:-1,Good",
        "http://cdn.example.com/good.m3u8",
    ]
    result = parse_m3u(lines)

    assert [c.name for c in result.channels] == ["Good"]
    assert result.skipped == 2


def test_extgrp_sets_group():
    lines = ["#EXTM3U", "#EXTINF:-1,Film", "#EXTGRP:Movies", "http://cdn.example.com/film.mp4"]
    result = parse_m3u(lines)

    assert [m.title for m in result.movies] == ["Film"]


def test_bom_and_blank_lines():
    result = parse_m3u(["\ufeff#EXTM3U", "", "#EXTINF:-1,One", "", "http://cdn.example.com/1.m3u8"])
    assert len(result.channels) == 1


def test_not_a_playlist():
    with pytest.raises(ParsingFailedError):
        parse_m3u(["<html>", "<body>Not found</body>", "</html>"])


def test_header_only_playlist_is_empty_not_error():
    result = parse_m3u(["#EXTM3U"])
    assert result.is_empty


def test_local_file(tmp_path):
    path = tmp_path / "list.m3u"
    path.write_text(PLAYLIST, encoding="utf-8")

    result = M3UImporter(url=str(path)).parse()
    assert len(result.channels) == 2
    assert len(M3UImporter(url=path.as_uri()).parse().movies) == 1


def test_missing_local_file(tmp_path):
    with pytest.raises(InvalidURLError):
        M3UImporter(url=str(tmp_path / "missing.m3u")).parse()


def test_invalid_utf8(tmp_path):
    path = tmp_path / "bad.m3u"
    path.write_bytes(b"#EXTM3U\n#EXTINF:-1,Caf\xe9\nhttp://x/1\n")

    with pytest.raises(ParsingFailedError):
        M3UImporter(url=str(path)).parse()


def test_unsupported_scheme():
    with pytest.raises(InvalidURLError):
        M3UImporter(url="ftp://example.com/list.m3u").parse()


def test_remote_playlist_streams_lines():
    response = MagicMock()
    response.__enter__.return_value = response
    response.iter_lines.return_value = [line.encode() for line in PLAYLIST.splitlines()]
    session = MagicMock()
    session.get.return_value = response

    with patch("streamhaven.adapters.importers.m3u_importer.create_session", return_value=session):
        result = M3UImporter(url="http://example.com/list.m3u", timeout=5).parse()

    session.get.assert_called_once_with("http://example.com/list.m3u", stream=True, timeout=5)
    assert len(result.channels) == 2
    session.close.assert_called_once()


def test_remote_failure_is_network_error():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("refused")

    with patch("streamhaven.adapters.importers.m3u_importer.create_session", return_value=session):
        with pytest.raises(NetworkError):
            M3UImporter(url="http://example.com/list.m3u").parse()
