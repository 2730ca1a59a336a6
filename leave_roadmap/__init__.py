"""Scheduling and timeline-layout engine for the annual leave roadmap.

This package turns approved leave bookings into roadmap layout data: display
lanes per resource, cross-resource conflict flags, fractional positions within
a display year and a per-day calendar map with return days.
"""

from .domain import (
    BookingRecord,
    BookingStatus,
    Diagnostic,
    DiagnosticKind,
    DisplayPeriod,
    Interval,
    Resource,
    TimelinePosition,
)
from .services import LayoutOptions, LayoutResult, RoadmapService, layout
from .validation import UnknownResourcePolicy

__all__ = [
    "BookingRecord",
    "BookingStatus",
    "Diagnostic",
    "DiagnosticKind",
    "DisplayPeriod",
    "Interval",
    "Resource",
    "TimelinePosition",
    "LayoutOptions",
    "LayoutResult",
    "RoadmapService",
    "UnknownResourcePolicy",
    "layout",
]
