"""FastAPI-based web interface for the leave roadmap."""

from __future__ import annotations

import os
from datetime import date, timedelta
from pathlib import Path
from typing import List, Optional, Set

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from ..domain import BookingStatus
from ..errors import HTTP_STATUS
from ..logger import configure_logging
from ..services import RoadmapService
from ..timeline import GRANULARITIES, MONTH_LABELS, roadmap_units, unit_occupancy, week_labels

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

LANE_HEIGHT_PX = 28


def create_app(service: Optional[RoadmapService] = None, *, demo_data: bool = True) -> FastAPI:
    configure_logging(os.environ.get("LEAVE_ROADMAP_LOG_LEVEL", "INFO").upper())
    service = service or RoadmapService()
    if demo_data:
        ensure_demo_data(service)

    app = FastAPI(title="Roadmap de Férias")
    app.state.roadmap_service = service

    @app.get("/")
    async def index():
        return RedirectResponse(f"/roadmap/{date.today().year}", status_code=303)

    @app.get("/roadmap/{year}")
    async def roadmap(request: Request, year: int, granularity: str = "month", hidden: str = ""):
        service: RoadmapService = request.app.state.roadmap_service
        if granularity not in GRANULARITIES:
            granularity = "month"
        hidden_ids = set(split_csv(hidden))
        visible = {resource.id for resource in service.resources if resource.id not in hidden_ids}
        result = _build_layout(service, year, visible if hidden_ids else None)
        units = roadmap_units(year, granularity)
        approved = service.approved_intervals()
        return templates.TemplateResponse(
            "roadmap.html",
            {
                "request": request,
                "layout": result,
                "year": year,
                "year_options": service.year_options(),
                "month_labels": MONTH_LABELS,
                "week_labels": week_labels(),
                "granularity": granularity,
                "granularities": GRANULARITIES,
                "occupancy": unit_occupancy(units, approved),
                "lane_height": LANE_HEIGHT_PX,
                "statuses": list(BookingStatus),
            },
        )

    @app.get("/api/layout/{year}")
    async def layout_json(request: Request, year: int, visible: str = ""):
        service: RoadmapService = request.app.state.roadmap_service
        visible_ids: Optional[Set[str]] = set(split_csv(visible)) or None
        return _build_layout(service, year, visible_ids).to_dict()

    @app.get("/api/units/{year}")
    async def units_json(request: Request, year: int, granularity: str = "month"):
        service: RoadmapService = request.app.state.roadmap_service
        try:
            units = roadmap_units(year, granularity)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return [
            {
                "key": entry.unit.key,
                "label": entry.unit.label,
                "start": entry.unit.start.isoformat(),
                "end": entry.unit.end.isoformat(),
                "left": entry.unit.left,
                "width": entry.unit.width,
                "resources": sorted(entry.resource_ids),
                "has_conflict": entry.has_conflict,
            }
            for entry in unit_occupancy(units, service.approved_intervals())
        ]

    @app.get("/api/bookings/{booking_id}/days")
    async def booking_days(request: Request, booking_id: str):
        service: RoadmapService = request.app.state.roadmap_service
        try:
            totals = service.booking_totals(booking_id)
        except tuple(HTTP_STATUS) as exc:
            raise HTTPException(status_code=HTTP_STATUS[type(exc)], detail=str(exc)) from exc
        return {
            "booking_id": booking_id,
            "business_days": totals.business_days,
            "weekdays": totals.weekdays,
        }

    @app.post("/bookings")
    async def submit_booking(
        request: Request,
        resource_id: str = Form(...),
        start_date: str = Form(...),
        end_date: str = Form(...),
        status: str = Form(BookingStatus.APPROVED.value),
        force: Optional[str] = Form(None),
    ):
        service: RoadmapService = request.app.state.roadmap_service
        try:
            submission = service.submit_booking(
                resource_id,
                start_date,
                end_date,
                status=status,
                force=force is not None,
            )
        except tuple(HTTP_STATUS) as exc:
            raise HTTPException(status_code=HTTP_STATUS[type(exc)], detail=str(exc)) from exc
        if not submission.created:
            return JSONResponse(
                status_code=409,
                content={
                    "detail": f"{len(submission.conflicts)} conflicting booking(s)",
                    "conflicts": [
                        {
                            "booking_id": conflict.booking_id,
                            "resource_id": conflict.resource_id,
                            "resource_name": conflict.resource_name,
                            "start": conflict.start.isoformat(),
                            "end": conflict.end.isoformat(),
                            "shared_days": conflict.shared_days,
                        }
                        for conflict in submission.conflicts
                    ],
                },
            )
        year = submission.booking.start_date[:4]
        return RedirectResponse(f"/roadmap/{year}", status_code=303)

    @app.post("/bookings/{booking_id}/status")
    async def update_status(booking_id: str, request: Request, status: str = Form(...)):
        service: RoadmapService = request.app.state.roadmap_service
        try:
            record = service.update_booking_status(booking_id, status)
        except tuple(HTTP_STATUS) as exc:
            raise HTTPException(status_code=HTTP_STATUS[type(exc)], detail=str(exc)) from exc
        return RedirectResponse(f"/roadmap/{record.start_date[:4]}", status_code=303)

    @app.post("/holidays")
    async def add_holiday(request: Request, day: str = Form(...)):
        service: RoadmapService = request.app.state.roadmap_service
        try:
            holiday = service.add_holiday(day)
        except tuple(HTTP_STATUS) as exc:
            raise HTTPException(status_code=HTTP_STATUS[type(exc)], detail=str(exc)) from exc
        return RedirectResponse(f"/roadmap/{holiday.year}", status_code=303)

    return app


def _build_layout(service: RoadmapService, year: int, visible: Optional[Set[str]]):
    try:
        return service.build_layout(year, visible_resources=visible)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def split_csv(values: str) -> List[str]:
    return [value.strip() for value in values.split(",") if value.strip()]


def _monday_on_or_after(day: date) -> date:
    while day.weekday() != 0:
        day += timedelta(days=1)
    return day


def ensure_demo_data(service: RoadmapService) -> None:
    if len(service.resources) > 0:
        return

    year = date.today().year
    service.set_holidays(
        f"{year}-{month_day}"
        for month_day in ("01-01", "04-21", "05-01", "09-07", "10-12", "11-02", "11-15", "12-25")
    )

    ana = service.register_resource("Ana Souza", department="Manutenção Predial")
    bruno = service.register_resource("Bruno Lima", department="Refrigeração")
    carla = service.register_resource("Carla Mendes", department="Elétrica")
    diego = service.register_resource("Diego Alves", department="Refrigeração")

    january = _monday_on_or_after(date(year, 1, 6))
    july = _monday_on_or_after(date(year, 7, 1))
    service.submit_booking(ana.id, january, january + timedelta(days=13))
    service.submit_booking(bruno.id, january + timedelta(days=7), january + timedelta(days=18), force=True)
    service.submit_booking(carla.id, july, july + timedelta(days=20))
    service.submit_booking(diego.id, date(year, 12, 15), date(year + 1, 1, 9))
    service.submit_booking(
        ana.id,
        date(year, 10, 1),
        date(year, 10, 10),
        status=BookingStatus.PENDING,
    )


__all__ = ["create_app", "ensure_demo_data", "split_csv"]
