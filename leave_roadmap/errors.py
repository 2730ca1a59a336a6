"""Exceptions raised inside the leave roadmap engine."""

from __future__ import annotations

from .domain import DiagnosticKind
from .repository import DuplicateRecordError, RecordNotFoundError


class RoadmapError(RuntimeError):
    """Base exception for engine errors."""


class InputError(RoadmapError):
    """Raised when an input record (booking or holiday) is malformed."""

    def __init__(
        self,
        record_id: str,
        reason: str,
        kind: DiagnosticKind = DiagnosticKind.INVALID_DATE,
    ) -> None:
        super().__init__(f"Record {record_id!r}: {reason}")
        self.record_id = record_id
        self.reason = reason
        self.kind = kind


class BoundaryExceeded(RoadmapError):
    """Raised when a business-day search runs past its iteration cap."""


# Mapping of exceptions to HTTP status codes used by the web layer
HTTP_STATUS = {
    RecordNotFoundError: 404,
    DuplicateRecordError: 409,
    InputError: 400,
    BoundaryExceeded: 422,
}


__all__ = ["RoadmapError", "InputError", "BoundaryExceeded", "HTTP_STATUS"]
