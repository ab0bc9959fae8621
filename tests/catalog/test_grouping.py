"""
Tests for multi-source content grouping.
"""

import uuid
from dataclasses import dataclass, field

import pytest

from streamhaven.catalog.grouping import (
    GroupingConfig,
    MultiSourceContentManager,
    best_variant,
    build_groups,
)
from streamhaven.domain.entities import Channel, ChannelVariant, Movie
from streamhaven.shared.types import SourceMode


@dataclass
class FakeItem:
    display_title: str
    source_id: uuid.UUID = field(default_factory=uuid.uuid4)
    stream_url: str | None = None

    @property
    def title(self):
        return self.display_title


TITLES = [
    "INCEPTION",
    "inception",
    "Inception",
    "The Godfather",
    "Godfather",
    "The   Dark  Knight",
    "The Dark Knight",
    "Heat",
    "",
    "",
]


def test_combined_partition_property():
    items = [FakeItem(t) for t in TITLES]
    groups = build_groups(items, SourceMode.COMBINED)

    members = [id(item) for g in groups for item in g.all_items]
    assert sorted(members) == sorted(id(item) for item in items)
    assert sum(g.item_count for g in groups) == len(items)
    assert all(g.item_count >= 1 for g in groups)


def test_combined_merges_case_whitespace_and_articles():
    groups = build_groups([FakeItem(t) for t in TITLES], SourceMode.COMBINED)
    counts = {g.primary_item.display_title: g.item_count for g in groups}

    assert counts["INCEPTION"] == 3
    assert counts["The Godfather"] == 2
    assert counts["The   Dark  Knight"] == 2
    assert counts["Heat"] == 1


def test_blank_titles_never_merge():
    groups = build_groups([FakeItem(""), FakeItem("   ")], SourceMode.COMBINED)
    assert [g.item_count for g in groups] == [1, 1]


def test_primary_is_first_encountered():
    first, second, third = FakeItem("Heat"), FakeItem("HEAT"), FakeItem("heat")
    (group,) = build_groups([first, second, third], SourceMode.COMBINED)

    assert group.primary_item is first
    assert group.alternative_items == [second, third]
    assert group.source_ids == {first.source_id, second.source_id, third.source_id}


def test_groups_sorted_by_primary_title():
    groups = build_groups([FakeItem("Zodiac"), FakeItem("alien"), FakeItem("Memento")], SourceMode.COMBINED)
    assert [g.primary_item.display_title for g in groups] == ["alien", "Memento", "Zodiac"]


def test_single_mode_identity():
    items = [FakeItem(t) for t in TITLES]
    groups = build_groups(items, SourceMode.SINGLE)

    assert len(groups) == len(items)
    assert [g.primary_item for g in groups] == items
    assert all(g.item_count == 1 and g.alternative_items == [] for g in groups)


def test_empty_input_gives_no_groups():
    assert build_groups([], SourceMode.COMBINED) == []
    assert build_groups([], SourceMode.SINGLE) == []


def test_rank_by_quality_picks_best_primary():
    sd = Movie(title="Heat", stream_url="http://cdn/heat_480p.mp4")
    uhd = Movie(title="Heat", stream_url="http://cdn/heat_4k.mp4")
    (group,) = build_groups([sd, uhd], SourceMode.COMBINED, GroupingConfig(rank_by_quality=True))

    assert group.primary_item is uhd
    assert group.alternative_items == [sd]


def test_best_variant_prefers_quality_then_first():
    channel = Channel(name="News")
    first = ChannelVariant(name="News", stream_url="http://cdn/news_720p.m3u8")
    best = ChannelVariant(name="News", stream_url="http://cdn/news_1080p.m3u8")
    tie = ChannelVariant(name="News", stream_url="http://cdn/news_fhd.m3u8")
    channel.variants = [first, best, tie]

    assert best_variant(channel) is best
    assert best_variant(Channel(name="Empty")) is None


class TestMultiSourceContentManager:
    @pytest.fixture
    def profile(self, make_profile, make_source, make_movie):
        profile = make_profile()
        first = make_source(profile, "First")
        second = make_source(profile, "Second")
        make_movie(first, "Inception")
        make_movie(second, "inception")
        make_movie(second, "Heat")
        return profile

    def test_combined_groups_across_sources(self, db, profile):
        groups = MultiSourceContentManager(db).group_movies(profile)

        assert [(g.primary_item.title, g.item_count) for g in groups] == [("Heat", 1), ("Inception", 2)]
        assert groups[1].primary_item.source.name == "First"
        assert len(groups[1].source_ids) == 2

    def test_single_mode(self, db, profile):
        profile.source_mode = SourceMode.SINGLE
        groups = MultiSourceContentManager(db).group_movies(profile)

        assert [g.primary_item.title for g in groups] == ["Inception", "inception", "Heat"]
        assert all(g.item_count == 1 for g in groups)

    def test_inactive_source_excluded(self, db, profile):
        manager = MultiSourceContentManager(db)
        inception = next(g for g in manager.group_movies(profile) if g.primary_item.title == "Inception")
        assert inception.item_count == 2

        profile.all_sources[1].is_active = False
        db.flush()

        groups = manager.group_movies(profile)
        assert [(g.primary_item.title, g.item_count) for g in groups] == [("Inception", 1)]

    def test_no_active_sources(self, db, profile):
        for source in profile.sources:
            source.is_active = False
        assert MultiSourceContentManager(db).group_movies(profile) == []

    def test_source_metadata(self, db, profile):
        manager = MultiSourceContentManager(db)
        first, second = profile.all_sources
        second.is_active = False

        meta = manager.get_source_metadata(second.source_id, profile)
        assert meta.source_name == "Second"
        assert meta.is_active is False
        assert manager.get_source_metadata(uuid.uuid4(), profile) is None

    def test_group_source_metadata_one_per_source(self, db, profile):
        manager = MultiSourceContentManager(db)
        groups = manager.group_movies(profile)
        inception = groups[1]

        names = [m.source_name for m in manager.get_group_source_metadata(inception, profile)]
        assert names == ["First", "Second"]

    def test_select_best_item_is_primary(self, db, profile):
        manager = MultiSourceContentManager(db)
        group = manager.group_movies(profile)[1]
        assert manager.select_best_item(group) is group.primary_item

    def test_group_channels_and_series(self, db, profile, make_channel, make_series):
        first, second = profile.all_sources
        make_channel(first, "BBC One", urls=("http://a/1",))
        make_channel(second, "bbc one", urls=("http://b/1",))
        make_series(first, "The Office")
        make_series(second, "Office")

        manager = MultiSourceContentManager(db)
        assert [g.item_count for g in manager.group_channels(profile)] == [2]
        assert [g.item_count for g in manager.group_series(profile)] == [2]
