"""
Tests for grouped content and franchise listings.
"""

import pytest

from streamhaven.catalog.grouping import GroupingConfig
from streamhaven.infra.exceptions import ValidationError
from streamhaven.shared.types import ContentKind, SourceMode
from streamhaven.usecases.content_franchises import list_franchises
from streamhaven.usecases.content_groups import list_content_groups


class TestContentGroups:
    def test_combined_movies(self, db, make_profile, make_source, make_movie):
        profile = make_profile()
        first = make_source(profile, "First")
        second = make_source(profile, "Second")
        make_movie(first, "Heat")
        make_movie(first, "Alien")
        make_movie(second, "heat ")

        groups = list_content_groups(db, profile=profile, kind="movie")

        assert [g["title"] for g in groups] == ["Alien", "Heat"]
        heat = groups[1]
        assert heat["item_count"] == 2
        assert heat["primary"]["source_id"] == str(first.source_id)
        assert [a["title"] for a in heat["alternatives"]] == ["heat "]
        assert [s["name"] for s in heat["sources"]] == ["First", "Second"]

    def test_single_mode_keeps_items_apart(self, db, make_profile, make_source, make_movie):
        profile = make_profile(mode=SourceMode.SINGLE)
        make_movie(make_source(profile, "First"), "Heat")
        make_movie(make_source(profile, "Second"), "Heat")

        groups = list_content_groups(db, profile=profile, kind=ContentKind.MOVIE)

        assert [g["item_count"] for g in groups] == [1, 1]

    def test_inactive_sources_are_hidden(self, db, make_profile, make_source, make_series):
        profile = make_profile()
        make_series(make_source(profile, "On"), "Lost")
        make_series(make_source(profile, "Off", is_active=False), "Lost")

        groups = list_content_groups(db, profile=profile, kind="series")

        assert len(groups) == 1
        assert groups[0]["item_count"] == 1

    def test_channels_pick_best_variant(self, db, make_profile, make_source, make_channel):
        profile = make_profile()
        make_channel(
            make_source(profile),
            "BBC One",
            urls=("http://cdn/bbc1_sd.m3u8", "http://cdn/bbc1_fhd.m3u8"),
        )

        groups = list_content_groups(db, profile=profile, kind="channel", config=GroupingConfig())

        assert groups[0]["primary"]["stream_url"] == "http://cdn/bbc1_fhd.m3u8"

    def test_unknown_kind(self, db, make_profile):
        with pytest.raises(ValidationError):
            list_content_groups(db, profile=make_profile(), kind="podcast")


class TestFranchises:
    def test_clusters_active_movies(self, db, make_profile, make_source, make_movie):
        profile = make_profile()
        source = make_source(profile)
        for title in ["The Matrix", "The Matrix Reloaded", "The Matrix Revolutions", "Rocky", "Rocky II", "Heat"]:
            make_movie(source, title)
        make_movie(make_source(profile, "Off", is_active=False), "Heat 2")

        franchises = list_franchises(db, profile=profile)

        assert [(f["name"], f["count"]) for f in franchises] == [("The Matrix", 3), ("Rocky", 2)]
        assert [m["title"] for m in franchises[1]["movies"]] == ["Rocky", "Rocky II"]

    def test_no_active_sources(self, db, make_profile):
        assert list_franchises(db, profile=make_profile()) == []


class TestAdultFiltering:
    @pytest.fixture
    def rocky_films(self, db, make_source, make_movie):
        def _make(profile):
            source = make_source(profile)
            make_movie(source, "Rocky")
            make_movie(source, "Rocky II")
            make_movie(source, "Rocky III").is_adult = True
            db.flush()

        return _make

    def test_kids_profile_hides_adult_items(self, db, make_profile, rocky_films):
        kids = make_profile("Kids", is_adult=False)
        rocky_films(kids)

        groups = list_content_groups(db, profile=kids, kind="movie")
        franchises = list_franchises(db, profile=kids)

        assert [g["title"] for g in groups] == ["Rocky", "Rocky II"]
        assert [(f["name"], f["count"]) for f in franchises] == [("Rocky", 2)]

    def test_adult_profile_sees_everything(self, db, make_profile, rocky_films):
        grown_up = make_profile("Grown Up")
        rocky_films(grown_up)

        groups = list_content_groups(db, profile=grown_up, kind="movie")

        assert [g["title"] for g in groups] == ["Rocky", "Rocky II", "Rocky III"]
        assert list_franchises(db, profile=grown_up)[0]["count"] == 3
