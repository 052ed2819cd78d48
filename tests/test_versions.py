from __future__ import annotations

import itertools

import pytest

from m2_curator.versions import (
    compare,
    get_base_version,
    get_release_version,
    has_number,
    is_generic_snapshot,
    is_snapshot,
    is_unique_snapshot,
    max_version,
    parse_unique_snapshot,
    sort_versions,
)

CORPUS = [
    "1.0-alpha-1",
    "1.0-beta-2",
    "1.0-M1",
    "1.0RC1-SNAPSHOT",
    "1.0RC1-20070504.153317-1",
    "1.0RC1-20070506.090132-4",
    "1.0RC1",
    "1.0-SNAPSHOT",
    "1.0-20070101.000000-1",
    "1.0",
    "1.0-sp1",
    "1.0.1",
    "1.1",
    "2.0.3-SNAPSHOT",
    "2.0.3",
    "2.0.4-SNAPSHOT",
    "10.0",
    "1.0-foo",
]


def test_snapshot_predicates() -> None:
    assert is_generic_snapshot("1.0-SNAPSHOT")
    assert not is_generic_snapshot("1.0-snapshot")
    assert is_unique_snapshot("1.0-20070821.213044-8")
    assert not is_unique_snapshot("1.0-20070821-8")
    assert is_snapshot("1.0-SNAPSHOT")
    assert is_snapshot("1.0-20070821.213044-8")
    assert not is_snapshot("1.0")
    assert not is_snapshot(None)


def test_base_and_release_versions() -> None:
    assert get_base_version("1.0-20070821.213044-8") == "1.0-SNAPSHOT"
    assert get_base_version("1.0-SNAPSHOT") == "1.0-SNAPSHOT"
    assert get_base_version("1.0") == "1.0"
    assert get_release_version("2.3-SNAPSHOT") == "2.3"
    assert get_release_version("1.0RC1-20070504.153317-1") == "1.0RC1"


def test_parse_unique_snapshot() -> None:
    unique = parse_unique_snapshot("1.0RC1-20070505.090015-3")
    assert unique is not None
    assert unique.base == "1.0RC1"
    assert unique.timestamp == "20070505.090015"
    assert unique.build_number == 3
    assert parse_unique_snapshot("1.0") is None


def test_has_number() -> None:
    assert has_number("1.0")
    assert has_number("RC1")
    assert not has_number("latest")


@pytest.mark.parametrize(
    ("older", "newer"),
    [
        ("1.0", "1.0.1"),
        ("1.0.1", "1.1"),
        ("1.9", "1.10"),
        ("1.0-alpha-1", "1.0-beta-1"),
        ("1.0-beta-1", "1.0-M1"),
        ("1.0-M1", "1.0-RC1"),
        ("1.0-RC1", "1.0-SNAPSHOT"),
        ("1.0-SNAPSHOT", "1.0"),
        ("2.3-SNAPSHOT", "2.3"),
        ("1.0", "1.0-sp1"),
        ("1.0-sp1", "1.0-foo"),
        ("1.0-SNAPSHOT", "1.0-20070101.000000-1"),
        ("1.0-20070101.000000-1", "1.0-20070101.000000-2"),
        ("1.0RC1-20070504.153317-1", "1.0RC1-20070504.160758-2"),
        ("1.0RC1-20070505.090015-3", "1.0RC1-20070506.090132-4"),
        ("2.0.3-SNAPSHOT", "2.0.4-SNAPSHOT"),
    ],
)
def test_compare_orders_pairs(older: str, newer: str) -> None:
    assert compare(older, newer) == -1
    assert compare(newer, older) == 1


def test_compare_is_antisymmetric_and_total() -> None:
    for a, b in itertools.product(CORPUS, repeat=2):
        assert compare(a, b) == -compare(b, a)
        assert (compare(a, b) == 0) == (a == b)


def test_compare_is_transitive() -> None:
    for a, b, c in itertools.product(CORPUS, repeat=3):
        if compare(a, b) < 0 and compare(b, c) < 0:
            assert compare(a, c) < 0


def test_sort_and_max() -> None:
    assert sort_versions(["2.3", "2.2", "2.3-SNAPSHOT"]) == ["2.2", "2.3-SNAPSHOT", "2.3"]
    assert sort_versions(["1.0", "1.1"], reverse=True) == ["1.1", "1.0"]
    assert max_version(["2.0.2", "2.0.4-SNAPSHOT"]) == "2.0.4-SNAPSHOT"
    assert max_version([]) is None
