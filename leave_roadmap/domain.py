"""Core data structures for the leave roadmap engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import Enum
from typing import Any, Mapping, Optional


class BookingStatus(str, Enum):
    """Lifecycle stages of a leave booking."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"

    @classmethod
    def parse(cls, value: object) -> "BookingStatus":
        """Map a collaborator status string onto a status.

        Unknown strings are treated as pending rather than rejected so that a
        new workflow state never breaks the roadmap.
        """

        if isinstance(value, BookingStatus):
            return value
        text = str(value or "").strip().lower()
        return _STATUS_ALIASES.get(text, cls.PENDING)

    @property
    def label(self) -> str:
        return {
            BookingStatus.PENDING: "Pendente",
            BookingStatus.APPROVED: "Aprovado",
            BookingStatus.REJECTED: "Rejeitado",
            BookingStatus.CANCELLED: "Cancelado",
        }[self]


_STATUS_ALIASES = {
    "pending": BookingStatus.PENDING,
    "pendente": BookingStatus.PENDING,
    "approved": BookingStatus.APPROVED,
    "aprovado": BookingStatus.APPROVED,
    "rejected": BookingStatus.REJECTED,
    "rejeitado": BookingStatus.REJECTED,
    "cancelled": BookingStatus.CANCELLED,
    "canceled": BookingStatus.CANCELLED,
    "cancelado": BookingStatus.CANCELLED,
}


class DiagnosticKind(str, Enum):
    """Reasons a booking record did not make it into a layout."""

    INVALID_DATE = "invalid_date"
    END_BEFORE_START = "end_before_start"
    UNKNOWN_RESOURCE = "unknown_resource"
    OUTSIDE_PERIOD = "outside_period"
    BOUNDARY_EXCEEDED = "boundary_exceeded"
    DUPLICATE_ID = "duplicate_id"


@dataclass(slots=True)
class Resource:
    """A person or team that can hold leave bookings."""

    id: str
    name: str
    avatar_url: Optional[str] = None
    department: Optional[str] = None
    placeholder: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Resource":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            avatar_url=data.get("avatarUrl", data.get("avatar_url")),
            department=data.get("department"),
        )


@dataclass(slots=True)
class BookingRecord:
    """Raw booking as supplied by the persistence layer."""

    id: str
    resource_id: str
    start_date: str
    end_date: str
    status: str = BookingStatus.PENDING.value
    resource_name: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BookingRecord":
        """Accept both the API's camelCase keys and snake_case keys."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return ""

        return cls(
            id=str(pick("id")),
            resource_id=str(pick("resourceId", "resource_id", "userId", "user_id")),
            start_date=pick("startDate", "start_date"),
            end_date=pick("endDate", "end_date"),
            status=str(pick("status") or BookingStatus.PENDING.value),
            resource_name=str(pick("resourceName", "resource_name", "userName")),
        )


@dataclass(frozen=True, slots=True)
class Interval:
    """A validated booking with parsed, inclusive dates."""

    id: str
    resource_id: str
    start: date
    end: date
    status: BookingStatus = BookingStatus.APPROVED
    order: int = 0

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def overlaps(self, other: "Interval") -> bool:
        return self.start <= other.end and other.start <= self.end

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def each_day(self):
        # counted so that an interval ending on date.max never steps past it
        for offset in range(self.days):
            yield self.start + timedelta(days=offset)


@dataclass(frozen=True, slots=True)
class DisplayPeriod:
    """A single calendar year shown on the roadmap."""

    year: int

    def __post_init__(self) -> None:
        if self.year < date.min.year or self.year > date.max.year:
            raise ValueError(f"Display year out of range: {self.year}")

    @property
    def start(self) -> date:
        return date(self.year, 1, 1)

    @property
    def end(self) -> date:
        return date(self.year, 12, 31)

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def clip(self, interval: Interval) -> Optional[Interval]:
        """Truncate an interval to this year, ``None`` when they are disjoint."""

        if interval.end < self.start or interval.start > self.end:
            return None
        start = max(interval.start, self.start)
        end = min(interval.end, self.end)
        if start == interval.start and end == interval.end:
            return interval
        return replace(interval, start=start, end=end)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A record excluded from computation, surfaced as data."""

    record_id: str
    kind: DiagnosticKind
    reason: str

    def as_dict(self) -> dict:
        return {"record_id": self.record_id, "kind": self.kind.value, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class TimelinePosition:
    """Horizontal placement of a bar as fractions of the display year."""

    left: float
    width: float


__all__ = [
    "BookingStatus",
    "DiagnosticKind",
    "Resource",
    "BookingRecord",
    "Interval",
    "DisplayPeriod",
    "Diagnostic",
    "TimelinePosition",
]
