from __future__ import annotations

import random
import unittest
from collections import defaultdict
from datetime import date, timedelta

from leave_roadmap.domain import Interval
from leave_roadmap.lanes import allocate_lanes, allocate_resource_lanes, lane_count, max_concurrency


def _interval(interval_id: str, start: date, end: date, resource_id: str = "r1", order: int = 0) -> Interval:
    return Interval(id=interval_id, resource_id=resource_id, start=start, end=end, order=order)


class LaneAllocationScenarioTests(unittest.TestCase):
    def test_overlapping_bookings_get_separate_lanes(self) -> None:
        lanes = allocate_lanes(
            [
                _interval("first", date(2025, 1, 5), date(2025, 1, 10)),
                _interval("second", date(2025, 1, 8), date(2025, 1, 12), order=1),
            ]
        )
        self.assertEqual(lanes, {"first": 0, "second": 1})

    def test_back_to_back_bookings_share_a_lane(self) -> None:
        lanes = allocate_lanes(
            [
                _interval("first", date(2025, 1, 5), date(2025, 1, 10)),
                _interval("second", date(2025, 1, 11), date(2025, 1, 15), order=1),
            ]
        )
        self.assertEqual(lanes, {"first": 0, "second": 0})

    def test_same_day_handover_needs_a_second_lane(self) -> None:
        lanes = allocate_lanes(
            [
                _interval("first", date(2025, 1, 5), date(2025, 1, 10)),
                _interval("second", date(2025, 1, 10), date(2025, 1, 15), order=1),
            ]
        )
        self.assertEqual(lanes, {"first": 0, "second": 1})

    def test_input_order_does_not_matter_for_distinct_starts(self) -> None:
        intervals = [
            _interval("c", date(2025, 2, 1), date(2025, 2, 3), order=0),
            _interval("a", date(2025, 1, 1), date(2025, 1, 20), order=1),
            _interval("b", date(2025, 1, 10), date(2025, 1, 12), order=2),
        ]
        self.assertEqual(allocate_lanes(intervals), {"a": 0, "b": 1, "c": 0})
        self.assertEqual(allocate_lanes(list(reversed(intervals))), {"a": 0, "b": 1, "c": 0})

    def test_ties_are_broken_by_input_order(self) -> None:
        intervals = [
            _interval("later-in-input", date(2025, 3, 1), date(2025, 3, 5), order=1),
            _interval("earlier-in-input", date(2025, 3, 1), date(2025, 3, 5), order=0),
        ]
        self.assertEqual(allocate_lanes(intervals), {"earlier-in-input": 0, "later-in-input": 1})

    def test_freed_lower_lane_is_reused(self) -> None:
        lanes = allocate_lanes(
            [
                _interval("a", date(2025, 1, 1), date(2025, 1, 5), order=0),
                _interval("b", date(2025, 1, 3), date(2025, 1, 20), order=1),
                _interval("c", date(2025, 1, 6), date(2025, 1, 8), order=2),
            ]
        )
        self.assertEqual(lanes, {"a": 0, "b": 1, "c": 0})

    def test_resources_are_allocated_independently(self) -> None:
        lanes = allocate_resource_lanes(
            [
                _interval("a", date(2025, 1, 1), date(2025, 1, 10), resource_id="r1"),
                _interval("b", date(2025, 1, 1), date(2025, 1, 10), resource_id="r2", order=1),
            ]
        )
        self.assertEqual(lanes, {"r1": {"a": 0}, "r2": {"b": 0}})

    def test_empty_input(self) -> None:
        self.assertEqual(allocate_lanes([]), {})
        self.assertEqual(lane_count({}), 0)
        self.assertEqual(max_concurrency([]), 0)


def test_random_layouts_are_non_overlapping_and_optimal() -> None:
    rng = random.Random(7)
    base = date(2025, 1, 1)
    for round_index in range(25):
        intervals = []
        for index in range(rng.randrange(1, 40)):
            start = base + timedelta(days=rng.randrange(0, 120))
            end = start + timedelta(days=rng.randrange(0, 15))
            intervals.append(_interval(f"{round_index}-{index}", start, end, order=index))

        lanes = allocate_lanes(intervals)

        by_lane = defaultdict(list)
        for interval in intervals:
            by_lane[lanes[interval.id]].append(interval)
        for members in by_lane.values():
            for i, first in enumerate(members):
                for second in members[i + 1 :]:
                    assert not first.overlaps(second)
        assert lane_count(lanes) == max_concurrency(intervals)


def test_allocation_is_reproducible() -> None:
    rng = random.Random(11)
    base = date(2025, 1, 1)
    intervals = []
    for index in range(30):
        start = base + timedelta(days=rng.randrange(0, 30))
        intervals.append(_interval(f"b{index}", start, start + timedelta(days=rng.randrange(0, 5)), order=index))
    assert allocate_lanes(intervals) == allocate_lanes(list(intervals))
