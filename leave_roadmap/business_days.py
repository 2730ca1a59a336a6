"""Business-day arithmetic over weekends and a supplied holiday set.

Two counting policies coexist on purpose. The return day after a leave skips
weekends *and* holidays, while the "total days" figure shown in booking lists
only skips weekends. Both are exposed under distinct names until the product
owners decide whether they should agree.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import AbstractSet, FrozenSet, Iterable, Optional

from .domain import Interval
from .errors import BoundaryExceeded
from .logger import get_logger
from .validation import DateLike, parse_iso_date

log = get_logger(__name__)

WEEKEND_DAYS = frozenset({5, 6})
DEFAULT_SEARCH_LIMIT = 3650

NO_HOLIDAYS: FrozenSet[date] = frozenset()


@dataclass(frozen=True, slots=True)
class DayTotals:
    """Both day counts for a booking, side by side."""

    business_days: int
    weekdays: int


def parse_holidays(values: Optional[Iterable[DateLike]]) -> FrozenSet[date]:
    """Build a holiday set, skipping entries that are not valid dates."""

    holidays = set()
    for value in values or ():
        try:
            holidays.add(parse_iso_date(value))
        except ValueError:
            log.warning("Ignoring unparseable holiday %r", value)
    return frozenset(holidays)


def is_weekend(day: date) -> bool:
    return day.weekday() in WEEKEND_DAYS


def is_business_day(day: date, holidays: AbstractSet[date] = NO_HOLIDAYS) -> bool:
    return not is_weekend(day) and day not in holidays


def _each_day(start: date, end: date):
    for offset in range((end - start).days + 1):
        yield start + timedelta(days=offset)


def business_day_count(start: date, end: date, holidays: AbstractSet[date] = NO_HOLIDAYS) -> int:
    """Count days in ``[start, end]`` that are neither weekend nor holiday."""

    return sum(1 for day in _each_day(start, end) if is_business_day(day, holidays))


def weekday_count(start: date, end: date) -> int:
    """Count days in ``[start, end]`` that are not Saturday or Sunday."""

    return sum(1 for day in _each_day(start, end) if not is_weekend(day))


def next_business_day(
    day: date,
    holidays: AbstractSet[date] = NO_HOLIDAYS,
    *,
    max_iterations: int = DEFAULT_SEARCH_LIMIT,
) -> date:
    """Return the first business day strictly after ``day``.

    Raises ``BoundaryExceeded`` when no business day is found within
    ``max_iterations`` days, which only happens with a pathological holiday
    set.
    """

    candidate = day
    for _ in range(max_iterations):
        try:
            candidate += timedelta(days=1)
        except OverflowError as exc:
            raise BoundaryExceeded(f"No business day after {day.isoformat()} before date.max") from exc
        if is_business_day(candidate, holidays):
            return candidate
    raise BoundaryExceeded(
        f"No business day within {max_iterations} days after {day.isoformat()}"
    )


def try_next_business_day(
    day: date,
    holidays: AbstractSet[date] = NO_HOLIDAYS,
    *,
    max_iterations: int = DEFAULT_SEARCH_LIMIT,
) -> Optional[date]:
    """Like ``next_business_day`` but returns ``None`` instead of raising."""

    try:
        return next_business_day(day, holidays, max_iterations=max_iterations)
    except BoundaryExceeded as exc:
        log.warning("%s", exc)
        return None


def booking_day_totals(interval: Interval, holidays: AbstractSet[date] = NO_HOLIDAYS) -> DayTotals:
    return DayTotals(
        business_days=business_day_count(interval.start, interval.end, holidays),
        weekdays=weekday_count(interval.start, interval.end),
    )


__all__ = [
    "DEFAULT_SEARCH_LIMIT",
    "DayTotals",
    "parse_holidays",
    "is_weekend",
    "is_business_day",
    "business_day_count",
    "weekday_count",
    "next_business_day",
    "try_next_business_day",
    "booking_day_totals",
]
