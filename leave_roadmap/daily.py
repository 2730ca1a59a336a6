"""Per-day view of approved leave for calendar rendering."""

from __future__ import annotations

import calendar
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import AbstractSet, Dict, Iterable, List, Optional, Sequence, Tuple

from .business_days import DEFAULT_SEARCH_LIMIT, NO_HOLIDAYS, try_next_business_day
from .domain import Diagnostic, DiagnosticKind, DisplayPeriod, Interval


@dataclass(frozen=True, slots=True)
class DayCell:
    """Leave active on a date and whether someone returns to work that day."""

    intervals: Tuple[Interval, ...] = ()
    is_return_day: bool = False
    returning_resources: Tuple[str, ...] = ()

    @property
    def resource_ids(self) -> Tuple[str, ...]:
        seen: Dict[str, None] = {}
        for interval in self.intervals:
            seen.setdefault(interval.resource_id, None)
        return tuple(seen)

    @property
    def is_multi_resource(self) -> bool:
        return len(self.resource_ids) > 1


@dataclass(slots=True)
class ReturnDays:
    by_date: Dict[date, List[Interval]] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class MonthSummary:
    """Footer data for one calendar month."""

    month: int
    resource_ids: Tuple[str, ...]
    has_conflict: bool


def _visible(interval: Interval, visible_resources: Optional[AbstractSet[str]]) -> bool:
    return visible_resources is None or interval.resource_id in visible_resources


def collect_return_days(
    intervals: Iterable[Interval],
    period: DisplayPeriod,
    holidays: AbstractSet[date] = NO_HOLIDAYS,
    *,
    visible_resources: Optional[AbstractSet[str]] = None,
    max_iterations: int = DEFAULT_SEARCH_LIMIT,
) -> ReturnDays:
    """Next business day after each interval ending in the period.

    Return days falling outside the period are dropped. A failed search is
    reported as a diagnostic for that interval only.
    """

    result = ReturnDays()
    for interval in intervals:
        if not _visible(interval, visible_resources) or not period.contains(interval.end):
            continue
        returning = try_next_business_day(interval.end, holidays, max_iterations=max_iterations)
        if returning is None:
            result.diagnostics.append(
                Diagnostic(
                    record_id=interval.id,
                    kind=DiagnosticKind.BOUNDARY_EXCEEDED,
                    reason=f"no business day within {max_iterations} days after {interval.end.isoformat()}",
                )
            )
            continue
        if period.contains(returning):
            result.by_date.setdefault(returning, []).append(interval)
    return result


def aggregate_days(
    clipped: Iterable[Interval],
    period: DisplayPeriod,
    holidays: AbstractSet[date] = NO_HOLIDAYS,
    *,
    unclipped: Optional[Iterable[Interval]] = None,
    visible_resources: Optional[AbstractSet[str]] = None,
    return_days: Optional[ReturnDays] = None,
    max_iterations: int = DEFAULT_SEARCH_LIMIT,
) -> Dict[str, DayCell]:
    """Map ISO date strings to the leave active that day.

    ``clipped`` must already be cut to the period. Return days are derived
    from ``unclipped`` (defaults to ``clipped``) unless ``return_days`` is
    given. Dates that are only return days appear with no intervals.
    """

    clipped = list(clipped)
    active: Dict[date, List[Interval]] = defaultdict(list)
    for interval in clipped:
        if not _visible(interval, visible_resources):
            continue
        for day in interval.each_day():
            active[day].append(interval)

    if return_days is None:
        return_days = collect_return_days(
            clipped if unclipped is None else unclipped,
            period,
            holidays,
            visible_resources=visible_resources,
            max_iterations=max_iterations,
        )

    cells: Dict[str, DayCell] = {}
    for day in sorted(set(active) | set(return_days.by_date)):
        returning = return_days.by_date.get(day, [])
        cells[day.isoformat()] = DayCell(
            intervals=tuple(active.get(day, ())),
            is_return_day=bool(returning),
            returning_resources=tuple(dict.fromkeys(interval.resource_id for interval in returning)),
        )
    return cells


def multi_resource_days(cells: Dict[str, DayCell]) -> List[str]:
    """Dates on which two or more distinct resources are on leave."""

    return [day for day, cell in cells.items() if cell.is_multi_resource]


def month_summaries(
    cells: Dict[str, DayCell],
    intervals: Sequence[Interval],
    period: DisplayPeriod,
) -> List[MonthSummary]:
    """Resources on leave in each month and whether any day has two bookings."""

    conflict_months = {
        date.fromisoformat(day).month for day, cell in cells.items() if len(cell.intervals) > 1
    }
    summaries = []
    for month in range(1, 13):
        month_start = date(period.year, month, 1)
        month_end = date(period.year, month, calendar.monthrange(period.year, month)[1])
        resource_ids = tuple(
            dict.fromkeys(
                interval.resource_id
                for interval in intervals
                if interval.start <= month_end and interval.end >= month_start
            )
        )
        summaries.append(
            MonthSummary(month=month, resource_ids=resource_ids, has_conflict=month in conflict_months)
        )
    return summaries


__all__ = [
    "DayCell",
    "ReturnDays",
    "MonthSummary",
    "collect_return_days",
    "aggregate_days",
    "multi_resource_days",
    "month_summaries",
]
