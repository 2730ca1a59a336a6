"""Overlap detection between approved bookings across all resources."""

from __future__ import annotations

import heapq
from collections import Counter
from datetime import date, timedelta
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from .domain import DisplayPeriod, Interval
from .logger import get_logger

log = get_logger(__name__)

PAIRWISE = "pairwise"
SWEEP = "sweep"


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Inclusive overlap test; touching endpoints count as overlapping."""

    return a_start <= b_end and b_start <= a_end


def _sort_key(interval: Interval) -> Tuple[date, int, str]:
    return (interval.start, interval.order, interval.id)


def find_conflicts_pairwise(intervals: Sequence[Interval]) -> FrozenSet[str]:
    flagged: Set[str] = set()
    for i, first in enumerate(intervals):
        for second in intervals[i + 1 :]:
            if first.overlaps(second):
                flagged.add(first.id)
                flagged.add(second.id)
    return frozenset(flagged)


def find_conflicts_sweep(intervals: Sequence[Interval]) -> FrozenSet[str]:
    """Sweep-line form of ``find_conflicts_pairwise`` with identical output."""

    flagged: Set[str] = set()
    active: List[Tuple[date, int, Interval]] = []
    for index, interval in enumerate(sorted(intervals, key=_sort_key)):
        while active and active[0][0] < interval.start:
            heapq.heappop(active)
        if active:
            flagged.add(interval.id)
            flagged.update(entry[2].id for entry in active)
        heapq.heappush(active, (interval.end, index, interval))
    return frozenset(flagged)


def find_conflicts(intervals: Sequence[Interval], algorithm: str = SWEEP) -> FrozenSet[str]:
    """Return the ids of intervals overlapping at least one other interval."""

    if algorithm == SWEEP:
        flagged = find_conflicts_sweep(intervals)
    elif algorithm == PAIRWISE:
        flagged = find_conflicts_pairwise(intervals)
    else:
        raise ValueError(f"Unknown conflict algorithm {algorithm!r}")
    log.debug("%d of %d intervals in conflict (%s)", len(flagged), len(intervals), algorithm)
    return flagged


def find_all_overlaps(
    intervals: Sequence[Interval], *, distinct_resources: bool = False
) -> List[Tuple[Interval, Interval]]:
    """List every overlapping pair, in input order."""

    pairs: List[Tuple[Interval, Interval]] = []
    for i, first in enumerate(intervals):
        for second in intervals[i + 1 :]:
            if distinct_resources and first.resource_id == second.resource_id:
                continue
            if first.overlaps(second):
                pairs.append((first, second))
    return pairs


def candidate_conflicts(existing: Iterable[Interval], candidate: Interval) -> List[Interval]:
    """Existing intervals of other resources that overlap a proposed booking."""

    return [
        interval
        for interval in existing
        if interval.resource_id != candidate.resource_id
        and interval.id != candidate.id
        and interval.overlaps(candidate)
    ]


def daily_counts(intervals: Iterable[Interval], period: DisplayPeriod) -> Dict[date, int]:
    """Number of intervals active on each day of the period that has any."""

    counts: Counter = Counter()
    for interval in intervals:
        clipped = period.clip(interval)
        if clipped is None:
            continue
        for day in clipped.each_day():
            counts[day] += 1
    return dict(counts)


def monthly_conflicts(
    intervals: Iterable[Interval],
    period: DisplayPeriod,
    *,
    resource_id: Optional[str] = None,
) -> List[bool]:
    """Flag each month in which some single day has two or more active intervals.

    With ``resource_id`` only that resource's intervals are counted.
    """

    if resource_id is not None:
        intervals = [interval for interval in intervals if interval.resource_id == resource_id]
    flags = [False] * 12
    for day, count in daily_counts(intervals, period).items():
        if count > 1:
            flags[day.month - 1] = True
    return flags


def overlapping_days(first: Interval, second: Interval) -> int:
    """Number of calendar days shared by two intervals."""

    start = max(first.start, second.start)
    end = min(first.end, second.end)
    if end < start:
        return 0
    return (end - start + timedelta(days=1)).days


__all__ = [
    "PAIRWISE",
    "SWEEP",
    "ranges_overlap",
    "find_conflicts",
    "find_conflicts_pairwise",
    "find_conflicts_sweep",
    "find_all_overlaps",
    "candidate_conflicts",
    "daily_counts",
    "monthly_conflicts",
    "overlapping_days",
]
