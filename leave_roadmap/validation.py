"""Turn raw booking records into typed, year-clipped intervals."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

from .domain import (
    BookingRecord,
    BookingStatus,
    Diagnostic,
    DiagnosticKind,
    DisplayPeriod,
    Interval,
    Resource,
)
from .errors import InputError
from .logger import get_logger

log = get_logger(__name__)

DateLike = Union[str, date, datetime]


class UnknownResourcePolicy(str, Enum):
    """What to do with a booking whose resource id is not in the resource list."""

    REJECT = "reject"
    PLACEHOLDER = "placeholder"


@dataclass(slots=True)
class ValidationResult:
    """Valid intervals plus the diagnostics for everything that was dropped."""

    intervals: List[Interval] = field(default_factory=list)
    clipped: List[Interval] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    placeholders: List[Resource] = field(default_factory=list)


def parse_iso_date(value: DateLike) -> date:
    """Parse an ISO-8601 date or datetime into a calendar date.

    Datetimes keep the date as written; no timezone conversion is applied.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 string, got {type(value).__name__}")
    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text).date()


def to_interval(record: BookingRecord, order: int = 0) -> Interval:
    """Build an interval from a record, raising ``InputError`` when malformed."""

    try:
        start = parse_iso_date(record.start_date)
    except ValueError as exc:
        raise InputError(record.id, f"unparseable start date {record.start_date!r}") from exc
    try:
        end = parse_iso_date(record.end_date)
    except ValueError as exc:
        raise InputError(record.id, f"unparseable end date {record.end_date!r}") from exc
    if end < start:
        raise InputError(
            record.id,
            f"end date {end.isoformat()} is before start date {start.isoformat()}",
            DiagnosticKind.END_BEFORE_START,
        )
    return Interval(
        id=record.id,
        resource_id=record.resource_id,
        start=start,
        end=end,
        status=BookingStatus.parse(record.status),
        order=order,
    )


def clip_to_period(interval: Interval, period: DisplayPeriod) -> Optional[Interval]:
    return period.clip(interval)


def _placeholder_for(record: BookingRecord) -> Resource:
    name = record.resource_name.strip() if record.resource_name else ""
    return Resource(id=record.resource_id, name=name or record.resource_id, placeholder=True)


def validate_bookings(
    records: Iterable[BookingRecord],
    period: DisplayPeriod,
    *,
    resources: Optional[Sequence[Resource]] = None,
    unknown_resource_policy: UnknownResourcePolicy = UnknownResourcePolicy.REJECT,
    report_outside_period: bool = False,
) -> ValidationResult:
    """Validate records against the display period.

    Only approved bookings are kept. A malformed record never aborts the run:
    it is excluded and described by a diagnostic instead.
    """

    result = ValidationResult()
    known: Optional[Mapping[str, Resource]] = (
        {resource.id: resource for resource in resources} if resources is not None else None
    )
    placeholders: Dict[str, Resource] = {}
    seen_ids: Set[str] = set()

    for order, record in enumerate(records):
        try:
            interval = to_interval(record, order)
        except InputError as exc:
            log.warning("Excluding booking %s: %s", record.id, exc.reason)
            result.diagnostics.append(
                Diagnostic(record_id=record.id, kind=exc.kind, reason=exc.reason)
            )
            continue

        if interval.status is not BookingStatus.APPROVED:
            continue

        if interval.id in seen_ids:
            reason = "id already used by an earlier approved booking"
            log.warning("Excluding booking %s: %s", record.id, reason)
            result.diagnostics.append(
                Diagnostic(record_id=record.id, kind=DiagnosticKind.DUPLICATE_ID, reason=reason)
            )
            continue
        seen_ids.add(interval.id)

        if known is not None and interval.resource_id not in known:
            if unknown_resource_policy is UnknownResourcePolicy.REJECT:
                reason = f"unknown resource {interval.resource_id!r}"
                log.warning("Excluding booking %s: %s", record.id, reason)
                result.diagnostics.append(
                    Diagnostic(record_id=record.id, kind=DiagnosticKind.UNKNOWN_RESOURCE, reason=reason)
                )
                continue
            if interval.resource_id not in placeholders:
                log.info("Creating placeholder resource for %s", interval.resource_id)
                placeholders[interval.resource_id] = _placeholder_for(record)

        result.intervals.append(interval)
        clipped = period.clip(interval)
        if clipped is None:
            if report_outside_period:
                result.diagnostics.append(
                    Diagnostic(
                        record_id=record.id,
                        kind=DiagnosticKind.OUTSIDE_PERIOD,
                        reason=f"no overlap with {period.year}",
                    )
                )
            continue
        result.clipped.append(clipped)

    result.placeholders = list(placeholders.values())
    log.debug(
        "Validated %d approved bookings (%d in %d), %d diagnostics",
        len(result.intervals),
        len(result.clipped),
        period.year,
        len(result.diagnostics),
    )
    return result


__all__ = [
    "UnknownResourcePolicy",
    "ValidationResult",
    "parse_iso_date",
    "to_interval",
    "clip_to_period",
    "validate_bookings",
]
