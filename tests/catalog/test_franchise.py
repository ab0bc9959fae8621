"""
Tests for franchise detection and clustering.
"""

from dataclasses import dataclass

import pytest

from streamhaven.catalog.franchise import detect_franchise_name, franchise_names, group_franchises


@dataclass
class FakeMovie:
    title: str


def _titles(cluster):
    return [m.title for m in cluster]


@pytest.mark.parametrize(
    "title,base",
    [
        ("Mad Max: Fury Road", "Mad Max"),
        ("The Matrix Reloaded", "The Matrix"),
        ("Batman Begins", "Batman"),
        ("Scream 2", "Scream"),
        ("Rocky IV", "Rocky"),
        ("Dune Part Two", "Dune Part Two"),
        ("Kill Bill Part 2", "Kill Bill"),
        ("Apollo 13", "Apollo"),
        ("Ocean's 1", "Ocean's 1"),
        ("Inception", "Inception"),
        ("Returns", "Returns"),
    ],
)
def test_detect_franchise_name(title, base):
    assert detect_franchise_name(title) == base


def test_numbered_sequels_cluster():
    movies = [FakeMovie("Scream"), FakeMovie("Scream 2"), FakeMovie("Scream 3")]
    franchises = group_franchises(movies)

    assert list(franchises) == ["Scream"]
    assert _titles(franchises["Scream"]) == ["Scream", "Scream 2", "Scream 3"]


def test_colon_subtitle_clusters_with_root():
    franchises = group_franchises([FakeMovie("Mad Max"), FakeMovie("Mad Max: Fury Road")])

    assert len(franchises) == 1
    (name, members) = next(iter(franchises.items()))
    assert "Mad Max" in name
    assert len(members) == 2


def test_singletons_never_reported():
    movies = [FakeMovie("Inception"), FakeMovie("Toy Story"), FakeMovie("Toy Story 2")]
    franchises = group_franchises(movies)

    assert list(franchises) == ["Toy Story"]
    assert all("Inception" not in _titles(members) for members in franchises.values())


def test_bases_compare_case_insensitively():
    franchises = group_franchises([FakeMovie("The Matrix"), FakeMovie("the matrix Reloaded")])
    assert len(franchises) == 1
    assert list(franchises) == ["The Matrix"]


def test_untitled_movies_ignored():
    assert group_franchises([FakeMovie(""), FakeMovie("  ")]) == {}


def test_franchise_names_largest_first():
    franchises = group_franchises(
        [
            FakeMovie("Alien"),
            FakeMovie("Alien 3"),
            FakeMovie("Rocky"),
            FakeMovie("Rocky II"),
            FakeMovie("Rocky III"),
        ]
    )
    assert franchise_names(franchises) == ["Rocky", "Alien"]
