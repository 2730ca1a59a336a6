"""Layout pipeline and the service facade used by the dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import (
    AbstractSet,
    Any,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)
from uuid import uuid4

from .business_days import (
    DEFAULT_SEARCH_LIMIT,
    DayTotals,
    booking_day_totals,
    parse_holidays,
)
from .conflicts import SWEEP, candidate_conflicts, find_conflicts, monthly_conflicts, overlapping_days
from .daily import DayCell, aggregate_days, collect_return_days, month_summaries, MonthSummary
from .domain import (
    BookingRecord,
    BookingStatus,
    Diagnostic,
    DisplayPeriod,
    Interval,
    Resource,
    TimelinePosition,
)
from .errors import InputError
from .lanes import allocate_resource_lanes
from .logger import get_logger
from .repository import InMemoryRepository
from .timeline import month_widths, position_for, today_position, year_options
from .validation import DateLike, UnknownResourcePolicy, parse_iso_date, to_interval, validate_bookings

log = get_logger(__name__)

ResourceInput = Union[Resource, Mapping[str, Any]]
BookingInput = Union[BookingRecord, Mapping[str, Any]]


@dataclass(slots=True)
class LayoutOptions:
    """Tuning knobs for a layout run."""

    unknown_resource_policy: UnknownResourcePolicy = UnknownResourcePolicy.REJECT
    business_day_search_limit: int = DEFAULT_SEARCH_LIMIT
    conflict_algorithm: str = SWEEP
    today: Optional[date] = None
    report_outside_period: bool = False


@dataclass(frozen=True, slots=True)
class LaneSegment:
    """A bar on a resource's roadmap row."""

    interval: Interval
    source: Interval
    lane: int
    position: TimelinePosition
    has_conflict: bool
    business_days: int
    weekdays: int


@dataclass(frozen=True, slots=True)
class ResourceRow:
    resource: Resource
    segments: Tuple[LaneSegment, ...] = ()
    lane_count: int = 0
    monthly_conflicts: Tuple[bool, ...] = (False,) * 12


@dataclass(frozen=True, slots=True)
class LayoutResult:
    """Everything the rendering layer needs for one display year."""

    year: int
    rows: Tuple[ResourceRow, ...]
    lanes: Mapping[str, Mapping[str, int]]
    conflicts: FrozenSet[str]
    monthly_conflicts: Tuple[bool, ...]
    month_widths: Tuple[float, ...]
    today_position: Optional[float]
    days: Mapping[str, DayCell]
    months: Tuple[MonthSummary, ...]
    diagnostics: Tuple[Diagnostic, ...]
    placeholders: Tuple[Resource, ...] = ()

    @property
    def resources(self) -> Tuple[Resource, ...]:
        return tuple(row.resource for row in self.rows)

    def row_for(self, resource_id: str) -> Optional[ResourceRow]:
        return next((row for row in self.rows if row.resource.id == resource_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month_widths": list(self.month_widths),
            "today_position": self.today_position,
            "monthly_conflicts": list(self.monthly_conflicts),
            "conflicts": sorted(self.conflicts),
            "lanes": {resource_id: dict(lanes) for resource_id, lanes in self.lanes.items()},
            "rows": [
                {
                    "resource": {
                        "id": row.resource.id,
                        "name": row.resource.name,
                        "avatar_url": row.resource.avatar_url,
                        "department": row.resource.department,
                        "placeholder": row.resource.placeholder,
                    },
                    "lane_count": row.lane_count,
                    "monthly_conflicts": list(row.monthly_conflicts),
                    "segments": [
                        {
                            "id": segment.interval.id,
                            "start": segment.interval.start.isoformat(),
                            "end": segment.interval.end.isoformat(),
                            "booking_start": segment.source.start.isoformat(),
                            "booking_end": segment.source.end.isoformat(),
                            "lane": segment.lane,
                            "left": segment.position.left,
                            "width": segment.position.width,
                            "has_conflict": segment.has_conflict,
                            "business_days": segment.business_days,
                            "weekdays": segment.weekdays,
                        }
                        for segment in row.segments
                    ],
                }
                for row in self.rows
            ],
            "days": {
                day: {
                    "intervals": [interval.id for interval in cell.intervals],
                    "resources": list(cell.resource_ids),
                    "is_return_day": cell.is_return_day,
                    "returning_resources": list(cell.returning_resources),
                }
                for day, cell in self.days.items()
            },
            "months": [
                {
                    "month": summary.month,
                    "resources": list(summary.resource_ids),
                    "has_conflict": summary.has_conflict,
                }
                for summary in self.months
            ],
            "diagnostics": [diagnostic.as_dict() for diagnostic in self.diagnostics],
        }


def _as_resource(value: ResourceInput) -> Resource:
    return value if isinstance(value, Resource) else Resource.from_mapping(value)


def _as_record(value: BookingInput) -> BookingRecord:
    return value if isinstance(value, BookingRecord) else BookingRecord.from_mapping(value)


def layout(
    resources: Optional[Iterable[ResourceInput]],
    bookings: Iterable[BookingInput],
    holidays: Optional[Iterable[DateLike]],
    year: int,
    *,
    options: Optional[LayoutOptions] = None,
    visible_resources: Optional[AbstractSet[str]] = None,
) -> LayoutResult:
    """Compute lanes, conflicts, positions and the per-day map for ``year``.

    The function is pure: inputs are read once and a fresh result is built on
    every call. Bad records end up in ``diagnostics``; nothing raises for a
    single malformed booking. ``visible_resources`` narrows only the per-day
    calendar map; placeholder resources always stay visible.
    """

    options = options or LayoutOptions()
    period = DisplayPeriod(year)
    holiday_set = parse_holidays(holidays)
    resource_list = [_as_resource(resource) for resource in resources] if resources is not None else None
    records = [_as_record(booking) for booking in bookings]

    validation = validate_bookings(
        records,
        period,
        resources=resource_list,
        unknown_resource_policy=options.unknown_resource_policy,
        report_outside_period=options.report_outside_period,
    )
    conflicts = find_conflicts(validation.intervals, options.conflict_algorithm)
    lanes = allocate_resource_lanes(validation.clipped)
    sources = {interval.id: interval for interval in validation.intervals}

    if resource_list is None:
        resource_list = [
            Resource(id=resource_id, name=resource_id)
            for resource_id in dict.fromkeys(interval.resource_id for interval in validation.intervals)
        ]
    row_resources = resource_list + validation.placeholders

    rows = []
    for resource in row_resources:
        resource_lanes = lanes.get(resource.id, {})
        resource_intervals = [interval for interval in validation.clipped if interval.resource_id == resource.id]
        segments = []
        for interval in resource_intervals:
            totals = booking_day_totals(sources[interval.id], holiday_set)
            segments.append(
                LaneSegment(
                    interval=interval,
                    source=sources[interval.id],
                    lane=resource_lanes[interval.id],
                    position=position_for(interval, period),
                    has_conflict=interval.id in conflicts,
                    business_days=totals.business_days,
                    weekdays=totals.weekdays,
                )
            )
        segments.sort(key=lambda segment: (segment.lane, segment.interval.start, segment.interval.order))
        rows.append(
            ResourceRow(
                resource=resource,
                segments=tuple(segments),
                lane_count=max(resource_lanes.values()) + 1 if resource_lanes else 0,
                monthly_conflicts=tuple(monthly_conflicts(resource_intervals, period)),
            )
        )

    if visible_resources is not None:
        visible_resources = set(visible_resources) | {resource.id for resource in validation.placeholders}
    return_days = collect_return_days(
        validation.intervals,
        period,
        holiday_set,
        visible_resources=visible_resources,
        max_iterations=options.business_day_search_limit,
    )
    days = aggregate_days(
        validation.clipped,
        period,
        holiday_set,
        visible_resources=visible_resources,
        return_days=return_days,
    )
    calendar_intervals = [
        interval
        for interval in validation.intervals
        if visible_resources is None or interval.resource_id in visible_resources
    ]

    diagnostics = tuple(validation.diagnostics + return_days.diagnostics)
    log.info(
        "Layout %d: %d rows, %d intervals, %d conflicts, %d diagnostics",
        year,
        len(rows),
        len(validation.clipped),
        len(conflicts),
        len(diagnostics),
    )
    return LayoutResult(
        year=year,
        rows=tuple(rows),
        lanes=lanes,
        conflicts=conflicts,
        monthly_conflicts=tuple(monthly_conflicts(validation.clipped, period)),
        month_widths=tuple(month_widths(year)),
        today_position=today_position(year, options.today),
        days=days,
        months=tuple(month_summaries(days, calendar_intervals, period)),
        diagnostics=diagnostics,
        placeholders=tuple(validation.placeholders),
    )


@dataclass(slots=True)
class ConflictDetail:
    """An existing booking that clashes with a submitted one."""

    booking_id: str
    resource_id: str
    resource_name: str
    start: date
    end: date
    shared_days: int


@dataclass(slots=True)
class BookingSubmission:
    """Outcome of submitting a booking: created, or held back by conflicts."""

    booking: Optional[BookingRecord]
    conflicts: List[ConflictDetail] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.booking is not None


class RoadmapService:
    """Facade that exposes the roadmap use-cases to clients."""

    def __init__(
        self,
        resource_repo: Optional[InMemoryRepository[Resource]] = None,
        booking_repo: Optional[InMemoryRepository[BookingRecord]] = None,
        holidays: Optional[Iterable[DateLike]] = None,
        options: Optional[LayoutOptions] = None,
    ) -> None:
        self.resources = resource_repo or InMemoryRepository()
        self.bookings = booking_repo or InMemoryRepository()
        self.holidays = parse_holidays(holidays)
        self.layout_options = options or LayoutOptions()

    # ------------------------------------------------------------------
    # Collaborator data
    # ------------------------------------------------------------------
    def register_resource(
        self,
        name: str,
        *,
        avatar_url: Optional[str] = None,
        department: Optional[str] = None,
    ) -> Resource:
        if not name.strip():
            raise ValueError("A resource needs a name")
        resource = Resource(
            id=str(uuid4()),
            name=name.strip(),
            avatar_url=avatar_url,
            department=department,
        )
        self.resources.add(resource.id, resource)
        return resource

    def set_holidays(self, values: Iterable[DateLike]) -> FrozenSet[date]:
        self.holidays = parse_holidays(values)
        return self.holidays

    def add_holiday(self, value: DateLike) -> date:
        """Add one holiday; an unparseable value raises ``InputError``."""

        try:
            holiday = parse_iso_date(value)
        except ValueError as exc:
            raise InputError(str(value), f"unparseable holiday {value!r}") from exc
        self.holidays = self.holidays | {holiday}
        return holiday

    def approved_intervals(self) -> List[Interval]:
        intervals = []
        for order, record in enumerate(self.bookings.snapshot()):
            if BookingStatus.parse(record.status) is not BookingStatus.APPROVED:
                continue
            try:
                intervals.append(to_interval(record, order))
            except InputError as exc:
                log.warning("Skipping booking %s: %s", record.id, exc.reason)
        return intervals

    def check_conflicts(self, candidate: Interval) -> List[ConflictDetail]:
        """Approved bookings of other resources overlapping ``candidate``."""

        details = []
        for interval in candidate_conflicts(self.approved_intervals(), candidate):
            if interval.resource_id in self.resources:
                name = self.resources.get(interval.resource_id).name
            else:
                name = self.bookings.get(interval.id).resource_name or interval.resource_id
            details.append(
                ConflictDetail(
                    booking_id=interval.id,
                    resource_id=interval.resource_id,
                    resource_name=name,
                    start=interval.start,
                    end=interval.end,
                    shared_days=overlapping_days(interval, candidate),
                )
            )
        return details

    def submit_booking(
        self,
        resource_id: str,
        start_date: DateLike,
        end_date: DateLike,
        *,
        status: Union[str, BookingStatus] = BookingStatus.APPROVED,
        force: bool = False,
    ) -> BookingSubmission:
        """Store a booking unless it clashes with someone else's leave.

        With ``force`` the booking is stored anyway and the clashes are still
        reported. Malformed dates raise ``InputError``.
        """

        resource = self.resources.get(resource_id)
        record = BookingRecord(
            id=str(uuid4()),
            resource_id=resource.id,
            start_date=_iso(start_date),
            end_date=_iso(end_date),
            status=BookingStatus.parse(status).value,
            resource_name=resource.name,
        )
        candidate = to_interval(record, order=len(self.bookings))
        conflicts = self.check_conflicts(candidate)
        if conflicts and not force:
            log.info("Booking for %s held back by %d conflicts", resource.name, len(conflicts))
            return BookingSubmission(booking=None, conflicts=conflicts)
        self.bookings.add(record.id, record)
        return BookingSubmission(booking=record, conflicts=conflicts)

    def update_booking_status(self, booking_id: str, status: Union[str, BookingStatus]) -> BookingRecord:
        record = self.bookings.get(booking_id)
        record.status = BookingStatus.parse(status).value
        self.bookings.upsert(record.id, record)
        return record

    def booking_totals(self, booking_id: str) -> DayTotals:
        record = self.bookings.get(booking_id)
        return booking_day_totals(to_interval(record), self.holidays)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    def update_layout_options(
        self,
        *,
        unknown_resource_policy: Union[str, UnknownResourcePolicy],
        business_day_search_limit: int,
        conflict_algorithm: str,
        report_outside_period: bool,
        today: Optional[date] = None,
    ) -> LayoutOptions:
        """Apply new layout options for subsequent layouts."""

        self.layout_options = LayoutOptions(
            unknown_resource_policy=UnknownResourcePolicy(unknown_resource_policy),
            business_day_search_limit=max(business_day_search_limit, 1),
            conflict_algorithm=conflict_algorithm,
            today=today,
            report_outside_period=report_outside_period,
        )
        return self.layout_options

    def build_layout(self, year: int, *, visible_resources: Optional[AbstractSet[str]] = None) -> LayoutResult:
        return layout(
            self.resources.snapshot(),
            self.bookings.snapshot(),
            self.holidays,
            year,
            options=self.layout_options,
            visible_resources=visible_resources,
        )

    def year_options(self, current_year: Optional[int] = None) -> List[int]:
        return year_options(current_year)


def _iso(value: DateLike) -> str:
    return value.isoformat() if isinstance(value, date) else str(value)


__all__ = [
    "LayoutOptions",
    "LaneSegment",
    "ResourceRow",
    "LayoutResult",
    "ConflictDetail",
    "BookingSubmission",
    "RoadmapService",
    "layout",
]
