"""
Tests for the cyclic Latin-square rotation assigner
"""

from collections import Counter

import pytest

from camp_rotation.errors import MissingResources
from camp_rotation.services.rotation_assigner import build_rotation_assignments, is_balanced, station_index_for


def test_four_by_four_visit_order():
    """4 groups, 4 stations, 4 rotations: group g starts at station g and walks forward"""
    matrix = build_rotation_assignments(4, [0, 1, 2, 3], ["S0", "S1", "S2", "S3"])

    visits = {g: [dict(pairs)[g] for pairs in matrix] for g in range(4)}
    assert visits[0] == ["S0", "S1", "S2", "S3"]
    assert visits[2] == ["S2", "S3", "S0", "S1"]


@pytest.mark.parametrize("size", [1, 2, 3, 5, 8])
def test_every_rotation_is_a_bijection(size):
    groups = list(range(size))
    stations = [f"S{i}" for i in range(size)]
    matrix = build_rotation_assignments(size * 2, groups, stations)

    for pairs in matrix:
        assert sorted(g for g, _ in pairs) == groups
        assert sorted(s for _, s in pairs) == sorted(stations)


@pytest.mark.parametrize("size", [2, 3, 6])
def test_each_group_visits_each_station_once_per_cycle(size):
    groups = list(range(size))
    stations = [f"S{i}" for i in range(size)]
    matrix = build_rotation_assignments(size, groups, stations)

    for group in groups:
        visited = [dict(pairs)[group] for pairs in matrix]
        assert sorted(visited) == sorted(stations)


def test_longer_schedule_repeats_with_period_equal_to_station_count():
    matrix = build_rotation_assignments(10, [1, 2, 3, 4], [10, 20, 30, 40])

    for r in range(4, 10):
        assert matrix[r] == matrix[r - 4]

    counts = Counter(pair for pairs in matrix for pair in pairs)
    assert max(counts.values()) == 3  # ceil(10 / 4)


def test_unequal_counts_wrap_around_station_list():
    matrix = build_rotation_assignments(2, ["a", "b", "c"], ["x", "y"])

    assert matrix[0] == [("a", "x"), ("b", "y"), ("c", "x")]
    assert matrix[1] == [("a", "y"), ("b", "x"), ("c", "y")]


def test_zero_rotations_gives_empty_matrix():
    assert build_rotation_assignments(0, [1], [2]) == []


def test_missing_groups_or_stations():
    with pytest.raises(MissingResources):
        build_rotation_assignments(3, [], [1, 2])
    with pytest.raises(MissingResources):
        build_rotation_assignments(3, [1, 2], [])


def test_station_index_formula():
    assert station_index_for(0, 0, 4) == 0
    assert station_index_for(3, 1, 4) == 0
    assert station_index_for(2, 7, 4) == 1


def test_is_balanced():
    assert is_balanced(4, 4)
    assert not is_balanced(4, 3)
    assert not is_balanced(0, 0)
