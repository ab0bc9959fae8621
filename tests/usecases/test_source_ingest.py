"""
Tests for source ingest and reconciliation.
"""

import threading
from datetime import UTC, datetime

import pytest

from streamhaven.adapters.importers.base import (
    BaseImporter,
    ImporterConfig,
    ParsedChannel,
    ParsedMovie,
    ParsedPlaylist,
    ParsedSeries,
)
from streamhaven.adapters.importers.m3u_importer import M3UImporter
from streamhaven.domain.entities import Channel, Favorite, Movie, PlaylistSource, Profile, Series
from streamhaven.infra.exceptions import NetworkError, ParsingFailedError
from streamhaven.infra.uow import session
from streamhaven.shared.types import SourceType
from streamhaven.usecases.source_ingest import ingest_source, ingest_sources

NOW = datetime(2026, 3, 14, 20, 0, tzinfo=UTC)


class StaticImporter(BaseImporter):
    """Returns a prepared playlist."""

    name = "static"
    source_type = SourceType.M3U

    def __init__(self, playlist: ParsedPlaylist):
        super().__init__()
        self.playlist = playlist

    @classmethod
    def get_config_schema(cls) -> ImporterConfig:
        return ImporterConfig(required_params=[], optional_params=[], description="Prepared playlist")

    def parse(self) -> ParsedPlaylist:
        return self.playlist


def _playlist(**kwargs) -> ParsedPlaylist:
    return ParsedPlaylist(**kwargs)


@pytest.fixture
def source(make_profile, make_source):
    return make_source(make_profile())


def test_ingest_persists_records(db, source):
    playlist = _playlist(
        movies=[ParsedMovie(title="Heat", stream_url="http://cdn/heat.mp4"), ParsedMovie(title="Heat ")],
        series=[ParsedSeries(title="The Office", stable_id="301")],
        channels=[
            ParsedChannel(name="BBC One", stream_url="http://cdn/bbc1_hd.m3u8", tvg_id="bbc1.uk"),
            ParsedChannel(name="BBC One", stream_url="http://cdn/bbc1_sd.m3u8"),
            ParsedChannel(name="BBC One", stream_url="http://cdn/bbc1_hd.m3u8"),
            ParsedChannel(name="CNN", stream_url="http://cdn/cnn.m3u8"),
        ],
        epg_url="http://guide.example.com/epg.xml",
        skipped=2,
    )

    summary = ingest_source(db, source, importer=StaticImporter(playlist), now=NOW)

    assert summary["status"] == "ok"
    assert (summary["movies"], summary["series"], summary["channels"], summary["variants"]) == (1, 1, 2, 3)
    assert summary["duplicates"] == 2
    assert summary["skipped"] == 2
    assert source.epg_url == "http://guide.example.com/epg.xml"
    assert source.last_refreshed == NOW
    assert source.last_error is None

    bbc = db.query(Channel).filter_by(name="BBC One").one()
    assert [v.stream_url for v in bbc.variants] == ["http://cdn/bbc1_hd.m3u8", "http://cdn/bbc1_sd.m3u8"]
    assert bbc.variant_count == 2
    assert bbc.tvg_id == "bbc1.uk"
    assert all(m.source_id == source.source_id for m in db.query(Movie))


def test_refresh_keeps_ids_and_favorites(db, source):
    first = _playlist(
        movies=[ParsedMovie(title="Heat", stream_url="http://cdn/heat.mp4"), ParsedMovie(title="Alien")],
        channels=[ParsedChannel(name="News", stream_url="http://cdn/news1.m3u8")],
    )
    ingest_source(db, source, importer=StaticImporter(first), now=NOW)
    heat = db.query(Movie).filter_by(title="Heat").one()
    heat_id = heat.id
    db.add(Favorite(profile_id=source.profile_id, movie_id=heat_id))
    db.flush()

    second = _playlist(
        movies=[ParsedMovie(title="Heat", stream_url="http://cdn/heat_v2.mp4")],
        channels=[ParsedChannel(name="News", stream_url="http://cdn/news2.m3u8")],
    )
    summary = ingest_source(db, source, importer=StaticImporter(second), now=NOW)

    assert summary["removed"] == 1
    assert [m.title for m in db.query(Movie)] == ["Heat"]
    heat = db.query(Movie).one()
    assert heat.id == heat_id
    assert heat.stream_url == "http://cdn/heat_v2.mp4"
    assert db.query(Favorite).count() == 1

    news = db.query(Channel).one()
    assert [v.stream_url for v in news.variants] == ["http://cdn/news2.m3u8"]


def test_failed_category_keeps_previous_records(db, source):
    ingest_source(
        db,
        source,
        importer=StaticImporter(_playlist(movies=[ParsedMovie(title="Heat")], series=[ParsedSeries(title="Lost")])),
        now=NOW,
    )

    partial = _playlist(series=[ParsedSeries(title="Lost")], errors={"get_vod_streams": "timed out"})
    summary = ingest_source(db, source, importer=StaticImporter(partial), now=NOW)

    assert summary["status"] == "partial"
    assert summary["errors"] == {"get_vod_streams": "timed out"}
    assert db.query(Movie).count() == 1
    assert source.last_error == "get_vod_streams: timed out"


def test_ingest_flags_adult_content(db, source):
    playlist = _playlist(
        movies=[ParsedMovie(title="Heat", category="Action"), ParsedMovie(title="Night Film", category="XXX")],
        series=[ParsedSeries(title="Erotic Tales")],
        channels=[ParsedChannel(name="Cartoon Club", stream_url="http://cdn/cc.m3u8", category="Kids")],
    )

    ingest_source(db, source, importer=StaticImporter(playlist), now=NOW)

    assert {m.title: m.is_adult for m in db.query(Movie)} == {"Heat": False, "Night Film": True}
    assert db.query(Series).one().is_adult is True
    assert db.query(Channel).one().is_adult is False


def test_ingest_is_scoped_to_source(db, make_profile, make_source):
    profile = make_profile()
    first = make_source(profile, "First")
    second = make_source(profile, "Second")
    ingest_source(db, first, importer=StaticImporter(_playlist(movies=[ParsedMovie(title="Heat")])), now=NOW)

    ingest_source(db, second, importer=StaticImporter(_playlist(movies=[ParsedMovie(title="Alien")])), now=NOW)

    titles = sorted((m.source.name, m.title) for m in db.query(Movie))
    assert titles == [("First", "Heat"), ("Second", "Alien")]


def test_importer_error_propagates(db, source):
    class FailingImporter(StaticImporter):
        def parse(self):
            raise NetworkError("Failed to download playlist: refused")

    with pytest.raises(NetworkError):
        ingest_source(db, source, importer=FailingImporter(_playlist()))


def test_unparseable_payload_keeps_stored_records(db, source, tmp_path):
    ingest_source(db, source, importer=StaticImporter(_playlist(movies=[ParsedMovie(title="Inception")])), now=NOW)
    path = tmp_path / "broken.m3u"
    path.write_text('#EXTM3U\n#EXTINF:-1 group-title="Movies",Inception\n', encoding="utf-8")

    with pytest.raises(ParsingFailedError):
        ingest_source(db, source, importer=M3UImporter(url=str(path)))

    assert [m.title for m in db.query(Movie)] == ["Inception"]
    assert source.last_refreshed == NOW


class RendezvousImporter(StaticImporter):
    """Blocks in parse() until every worker sharing the barrier is fetching."""

    def __init__(self, playlist: ParsedPlaylist, barrier: threading.Barrier):
        super().__init__(playlist)
        self.barrier = barrier

    def parse(self) -> ParsedPlaylist:
        self.barrier.wait(timeout=5)
        return self.playlist


class TestConcurrentIngest:
    PLAYLIST = "#EXTM3U\n#EXTINF:-1,{name} One\nhttp://cdn/{name}/1.m3u8\n#EXTINF:-1 group-title=\"Movies\",{name} Movie\nhttp://cdn/{name}/movie.mp4\n"

    def _create_sources(self, file_db, tmp_path, names):
        ids = []
        with session() as db:
            profile = Profile(name="Main")
            db.add(profile)
            for index, name in enumerate(names):
                path = tmp_path / f"{name}.m3u"
                if name != "missing":
                    path.write_text(self.PLAYLIST.format(name=name), encoding="utf-8")
                source = PlaylistSource(
                    profile=profile, name=name, source_type=SourceType.M3U, url=str(path), display_order=index
                )
                db.add(source)
                db.flush()
                ids.append(source.source_id)
        return ids

    def test_ingest_sources_in_parallel(self, file_db, tmp_path):
        ids = self._create_sources(file_db, tmp_path, ["alpha", "beta", "gamma"])

        results = ingest_sources(ids, max_workers=3)

        assert [r["name"] for r in results] == ["alpha", "beta", "gamma"]
        assert all(r["status"] == "ok" for r in results)
        with session() as db:
            assert db.query(Channel).count() == 3
            assert db.query(Movie).count() == 3

    def test_one_failure_does_not_stop_others(self, file_db, tmp_path):
        ids = self._create_sources(file_db, tmp_path, ["alpha", "missing"])

        results = ingest_sources(ids, max_workers=2)

        assert results[0]["status"] == "ok"
        assert results[1]["status"] == "failed"
        assert "Cannot read playlist file" in results[1]["error"]
        with session() as db:
            failed = db.get(PlaylistSource, ids[1])
            assert failed.last_error == results[1]["error"]
            assert failed.last_refreshed is None
            assert db.query(Movie).count() == 1

    def test_fetches_run_without_holding_the_database(self, file_db, tmp_path):
        ids = self._create_sources(file_db, tmp_path, ["alpha", "beta"])
        barrier = threading.Barrier(2)

        def importer_factory(source):
            return RendezvousImporter(_playlist(movies=[ParsedMovie(title=f"{source.name} feature")]), barrier)

        results = ingest_sources(ids, max_workers=2, importer_factory=importer_factory)

        assert [r["status"] for r in results] == ["ok", "ok"]
        with session() as db:
            assert sorted(m.title for m in db.query(Movie)) == ["alpha feature", "beta feature"]

    def test_no_sources(self):
        assert ingest_sources([]) == []
