"""Greedy lane partitioning for a resource's roadmap track."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Sequence

from .domain import Interval


def allocate_lanes(intervals: Sequence[Interval]) -> Dict[str, int]:
    """Assign each interval of one resource to the first free lane.

    Intervals are visited by start date, ties broken by input order then id,
    so the same input always yields the same lanes. A lane is free when its
    last interval ended strictly before the next one starts. The number of
    lanes used equals the peak number of simultaneously active intervals.
    """

    lane_ends: List[date] = []
    assignment: Dict[str, int] = {}
    for interval in sorted(intervals, key=lambda item: (item.start, item.order, item.id)):
        for lane, lane_end in enumerate(lane_ends):
            if lane_end < interval.start:
                lane_ends[lane] = interval.end
                assignment[interval.id] = lane
                break
        else:
            assignment[interval.id] = len(lane_ends)
            lane_ends.append(interval.end)
    return assignment


def allocate_resource_lanes(intervals: Iterable[Interval]) -> Dict[str, Dict[str, int]]:
    """Run ``allocate_lanes`` independently for every resource."""

    by_resource: Dict[str, List[Interval]] = defaultdict(list)
    for interval in intervals:
        by_resource[interval.resource_id].append(interval)
    return {
        resource_id: allocate_lanes(resource_intervals)
        for resource_id, resource_intervals in by_resource.items()
    }


def lane_count(assignment: Mapping[str, int]) -> int:
    return max(assignment.values()) + 1 if assignment else 0


def max_concurrency(intervals: Iterable[Interval]) -> int:
    """Peak number of intervals active on the same day (inclusive bounds)."""

    events = []
    for interval in intervals:
        # starts sort before ends on the same day so touching bounds overlap
        events.append((interval.start, 0))
        events.append((interval.end, 1))
    events.sort()
    active = peak = 0
    for _, kind in events:
        if kind == 0:
            active += 1
            peak = max(peak, active)
        else:
            active -= 1
    return peak


__all__ = ["allocate_lanes", "allocate_resource_lanes", "lane_count", "max_concurrency"]
