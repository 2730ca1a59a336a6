from __future__ import annotations

import random
from datetime import date, timedelta
from typing import List

import pytest

from leave_roadmap.conflicts import (
    candidate_conflicts,
    find_all_overlaps,
    find_conflicts,
    find_conflicts_pairwise,
    find_conflicts_sweep,
    monthly_conflicts,
    overlapping_days,
    ranges_overlap,
)
from leave_roadmap.domain import DisplayPeriod, Interval


def _interval(interval_id: str, start: date, end: date, resource_id: str = "r1", order: int = 0) -> Interval:
    return Interval(id=interval_id, resource_id=resource_id, start=start, end=end, order=order)


def _random_intervals(seed: int, count: int) -> List[Interval]:
    rng = random.Random(seed)
    base = date(2025, 1, 1)
    intervals = []
    for index in range(count):
        start = base + timedelta(days=rng.randrange(0, 365))
        end = start + timedelta(days=rng.randrange(0, 20))
        intervals.append(_interval(f"b{index}", start, end, resource_id=f"r{rng.randrange(0, 6)}", order=index))
    return intervals


def test_overlapping_bookings_are_both_flagged() -> None:
    first = _interval("a", date(2025, 1, 5), date(2025, 1, 10))
    second = _interval("b", date(2025, 1, 8), date(2025, 1, 12), order=1)
    assert find_conflicts([first, second]) == {"a", "b"}


def test_next_day_bookings_do_not_conflict() -> None:
    first = _interval("a", date(2025, 1, 5), date(2025, 1, 10))
    second = _interval("b", date(2025, 1, 11), date(2025, 1, 15), order=1)
    assert find_conflicts([first, second]) == frozenset()


def test_shared_boundary_day_is_a_conflict() -> None:
    first = _interval("a", date(2025, 1, 5), date(2025, 1, 10))
    second = _interval("b", date(2025, 1, 10), date(2025, 1, 15), resource_id="r2", order=1)
    assert ranges_overlap(first.start, first.end, second.start, second.end)
    assert find_conflicts([first, second]) == {"a", "b"}


def test_conflicts_span_resources() -> None:
    intervals = [
        _interval("a", date(2025, 3, 1), date(2025, 3, 10), resource_id="r1"),
        _interval("b", date(2025, 3, 9), date(2025, 3, 20), resource_id="r2", order=1),
        _interval("c", date(2025, 4, 1), date(2025, 4, 2), resource_id="r3", order=2),
    ]
    assert find_conflicts(intervals) == {"a", "b"}


@pytest.mark.parametrize("seed", range(10))
def test_sweep_and_pairwise_agree(seed: int) -> None:
    intervals = _random_intervals(seed, 60)
    assert find_conflicts_sweep(intervals) == find_conflicts_pairwise(intervals)


def test_sweep_handles_long_interval_covering_later_ones() -> None:
    intervals = [
        _interval("long", date(2025, 1, 1), date(2025, 12, 31)),
        _interval("short1", date(2025, 2, 1), date(2025, 2, 2), order=1),
        _interval("short2", date(2025, 6, 1), date(2025, 6, 2), order=2),
    ]
    assert find_conflicts(intervals, "sweep") == find_conflicts(intervals, "pairwise") == {"long", "short1", "short2"}


def test_unknown_algorithm_is_rejected() -> None:
    with pytest.raises(ValueError):
        find_conflicts([], "quadtree")


def test_empty_input_has_no_conflicts() -> None:
    assert find_conflicts([]) == frozenset()
    assert monthly_conflicts([], DisplayPeriod(2025)) == [False] * 12


def test_find_all_overlaps_lists_pairs_in_input_order() -> None:
    intervals = [
        _interval("a", date(2025, 1, 1), date(2025, 1, 10), resource_id="r1"),
        _interval("b", date(2025, 1, 5), date(2025, 1, 6), resource_id="r1", order=1),
        _interval("c", date(2025, 1, 9), date(2025, 1, 12), resource_id="r2", order=2),
    ]

    pairs = find_all_overlaps(intervals)
    distinct = find_all_overlaps(intervals, distinct_resources=True)

    assert [(a.id, b.id) for a, b in pairs] == [("a", "b"), ("a", "c")]
    assert [(a.id, b.id) for a, b in distinct] == [("a", "c")]


def test_candidate_conflicts_ignore_the_same_resource() -> None:
    existing = [
        _interval("mine", date(2025, 8, 1), date(2025, 8, 10), resource_id="e2"),
        _interval("theirs", date(2025, 8, 1), date(2025, 8, 10), resource_id="e1"),
        _interval("later", date(2025, 9, 1), date(2025, 9, 5), resource_id="e3"),
    ]
    candidate = _interval("new", date(2025, 8, 5), date(2025, 8, 7), resource_id="e2")

    assert [interval.id for interval in candidate_conflicts(existing, candidate)] == ["theirs"]


def test_candidate_without_overlap_has_no_conflicts() -> None:
    existing = [_interval("a", date(2025, 8, 1), date(2025, 8, 5), resource_id="e1")]
    candidate = _interval("b", date(2025, 8, 6), date(2025, 8, 10), resource_id="e2")
    assert candidate_conflicts(existing, candidate) == []


def test_monthly_conflicts_are_day_granular() -> None:
    period = DisplayPeriod(2025)
    intervals = [
        _interval("a", date(2025, 3, 1), date(2025, 3, 3), resource_id="r1"),
        _interval("b", date(2025, 3, 3), date(2025, 3, 5), resource_id="r2"),
        _interval("c", date(2025, 5, 1), date(2025, 5, 2), resource_id="r1"),
        _interval("d", date(2025, 5, 3), date(2025, 5, 4), resource_id="r2"),
    ]

    flags = monthly_conflicts(intervals, period)

    assert flags[2] is True
    assert flags[4] is False
    assert sum(flags) == 1


def test_monthly_conflicts_for_one_resource() -> None:
    period = DisplayPeriod(2025)
    intervals = [
        _interval("a", date(2025, 3, 1), date(2025, 3, 3), resource_id="r1"),
        _interval("b", date(2025, 3, 3), date(2025, 3, 5), resource_id="r2"),
        _interval("c", date(2025, 7, 1), date(2025, 7, 9), resource_id="r1"),
        _interval("d", date(2025, 7, 9), date(2025, 7, 12), resource_id="r1"),
    ]

    flags = monthly_conflicts(intervals, period, resource_id="r1")

    assert [index + 1 for index, flag in enumerate(flags) if flag] == [7]


def test_monthly_conflicts_only_count_days_inside_the_year() -> None:
    period = DisplayPeriod(2025)
    intervals = [
        _interval("a", date(2024, 12, 1), date(2024, 12, 31)),
        _interval("b", date(2024, 12, 15), date(2025, 1, 2), resource_id="r2"),
    ]
    assert monthly_conflicts(intervals, period) == [False] * 12


def test_overlapping_days() -> None:
    first = _interval("a", date(2025, 1, 5), date(2025, 1, 10))
    second = _interval("b", date(2025, 1, 8), date(2025, 1, 12))
    assert overlapping_days(first, second) == 3
    assert overlapping_days(first, _interval("c", date(2025, 2, 1), date(2025, 2, 2))) == 0
