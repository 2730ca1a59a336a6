"""Map calendar dates onto fractional positions of a display year."""

from __future__ import annotations

import calendar
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import FrozenSet, Iterable, List, Optional, Sequence

from .domain import DisplayPeriod, Interval, TimelinePosition

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
WEEK_LABELS = ("S1", "S2", "S3", "S4")
GRANULARITIES = ("month", "week", "day")


@dataclass(frozen=True, slots=True)
class RoadmapUnit:
    """One column of a roadmap header at a given granularity."""

    key: str
    label: str
    start: date
    end: date
    left: float
    width: float


@dataclass(frozen=True, slots=True)
class UnitOccupancy:
    unit: RoadmapUnit
    resource_ids: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def has_conflict(self) -> bool:
        return len(self.resource_ids) > 1


def days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def day_of_year(day: date) -> int:
    return day.timetuple().tm_yday


def _fraction_span(start: date, end: date, period: DisplayPeriod) -> TimelinePosition:
    total = period.total_days
    start_day = day_of_year(start)
    end_day = day_of_year(end)
    return TimelinePosition(
        left=(start_day - 1) / total,
        width=(end_day - start_day + 1) / total,
    )


def position_for(interval: Interval, period: DisplayPeriod) -> TimelinePosition:
    """Left offset and width of a clipped interval as fractions of the year."""

    if not (period.contains(interval.start) and period.contains(interval.end)):
        raise ValueError(f"Interval {interval.id!r} is not clipped to {period.year}")
    return _fraction_span(interval.start, interval.end, period)


def month_widths(year: int) -> List[float]:
    total = days_in_year(year)
    return [calendar.monthrange(year, month)[1] / total for month in range(1, 13)]


def today_position(year: int, today: Optional[date] = None) -> Optional[float]:
    """Fractional position of today's marker, ``None`` outside the current year."""

    today = today or date.today()
    if today.year != year:
        return None
    return (day_of_year(today) - 1) / days_in_year(year)


def week_labels() -> Sequence[str]:
    return WEEK_LABELS


def _month_units(period: DisplayPeriod) -> List[RoadmapUnit]:
    units = []
    for month in range(1, 13):
        start = date(period.year, month, 1)
        end = date(period.year, month, calendar.monthrange(period.year, month)[1])
        span = _fraction_span(start, end, period)
        units.append(
            RoadmapUnit(
                key=f"{period.year}-{month - 1}",
                label=MONTH_LABELS[month - 1],
                start=start,
                end=end,
                left=span.left,
                width=span.width,
            )
        )
    return units


def _week_units(period: DisplayPeriod) -> List[RoadmapUnit]:
    # Monday-based weeks; the first and last weeks are cut at the year bounds
    units = []
    start = period.start
    index = 0
    while True:
        end = start + timedelta(days=min(6 - start.weekday(), (period.end - start).days))
        span = _fraction_span(start, end, period)
        units.append(
            RoadmapUnit(
                key=f"{period.year}-w{index}",
                label=f"W{index + 1}",
                start=start,
                end=end,
                left=span.left,
                width=span.width,
            )
        )
        if end == period.end:
            return units
        start = end + timedelta(days=1)
        index += 1


def _day_units(period: DisplayPeriod) -> List[RoadmapUnit]:
    units = []
    for offset in range(period.total_days):
        day = period.start + timedelta(days=offset)
        span = _fraction_span(day, day, period)
        units.append(
            RoadmapUnit(
                key=day.isoformat(),
                label=f"{day.day}/{day.month}",
                start=day,
                end=day,
                left=span.left,
                width=span.width,
            )
        )
    return units


def roadmap_units(year: int, granularity: str = "month") -> List[RoadmapUnit]:
    """Header columns for a year at ``month``, ``week`` or ``day`` granularity."""

    period = DisplayPeriod(year)
    if granularity == "month":
        return _month_units(period)
    if granularity == "week":
        return _week_units(period)
    if granularity == "day":
        return _day_units(period)
    raise ValueError(f"Unknown granularity {granularity!r}; expected one of {GRANULARITIES}")


def unit_occupancy(units: Iterable[RoadmapUnit], intervals: Sequence[Interval]) -> List[UnitOccupancy]:
    """Resources with leave intersecting each unit; several resources is a conflict."""

    occupancy = []
    for unit in units:
        resource_ids = frozenset(
            interval.resource_id
            for interval in intervals
            if interval.start <= unit.end and unit.start <= interval.end
        )
        occupancy.append(UnitOccupancy(unit=unit, resource_ids=resource_ids))
    return occupancy


def year_options(current_year: Optional[int] = None) -> List[int]:
    """Years offered by the year picker: two back, three ahead."""

    current_year = current_year or date.today().year
    return list(range(current_year - 2, current_year + 4))


def suggest_display_year(intervals: Iterable[Interval], today: Optional[date] = None) -> int:
    """Most common start year among the intervals, else the current year."""

    counts = Counter(interval.start.year for interval in intervals)
    if not counts:
        return (today or date.today()).year
    # ties resolve to the earliest year
    best_count = max(counts.values())
    return min(year for year, count in counts.items() if count == best_count)


__all__ = [
    "MONTH_LABELS",
    "WEEK_LABELS",
    "GRANULARITIES",
    "RoadmapUnit",
    "UnitOccupancy",
    "days_in_year",
    "day_of_year",
    "position_for",
    "month_widths",
    "today_position",
    "week_labels",
    "roadmap_units",
    "unit_occupancy",
    "year_options",
    "suggest_display_year",
]
