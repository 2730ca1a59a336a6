"""Demonstration script for the leave roadmap engine."""

from __future__ import annotations

from datetime import date
from pprint import pprint

from . import RoadmapService
from .logger import configure_logging


def main() -> None:
    configure_logging("INFO")
    roadmap = RoadmapService(
        holidays=["2025-01-01", "2025-04-18", "2025-04-21", "2025-05-01", "2025-12-25"],
    )

    # Equipe
    ana = roadmap.register_resource("Ana Souza", department="Manutenção Predial")
    bruno = roadmap.register_resource("Bruno Lima", department="Refrigeração")
    carla = roadmap.register_resource("Carla Mendes", department="Elétrica")

    # Solicitações de férias
    roadmap.submit_booking(ana.id, date(2025, 1, 6), date(2025, 1, 17))
    roadmap.submit_booking(ana.id, date(2025, 1, 13), date(2025, 1, 24))
    held = roadmap.submit_booking(bruno.id, date(2025, 1, 15), date(2025, 1, 20))
    if not held.created:
        print("Conflitos detectados:")
        for conflict in held.conflicts:
            print(
                f" - {conflict.resource_name}: {conflict.start:%d/%m} - {conflict.end:%d/%m}"
                f" ({conflict.shared_days} dias em comum)"
            )
        roadmap.submit_booking(bruno.id, date(2025, 1, 15), date(2025, 1, 20), force=True)
    roadmap.submit_booking(carla.id, date(2025, 12, 15), date(2026, 1, 9))

    result = roadmap.build_layout(2025)

    print("\nRoadmap 2025")
    for row in result.rows:
        print(f" {row.resource.name} ({row.lane_count} faixa(s))")
        for segment in row.segments:
            marker = "  CONFLITO" if segment.has_conflict else ""
            print(
                f"   faixa {segment.lane}: {segment.interval.start:%d/%m} - {segment.interval.end:%d/%m}"
                f" left={segment.position.left:.3f} width={segment.position.width:.3f}"
                f" dias úteis={segment.business_days}{marker}"
            )

    print("\nRetornos")
    for day, cell in result.days.items():
        if cell.is_return_day:
            print(f" - {day}: {', '.join(cell.returning_resources)}")

    print("\nMeses com conflito diário")
    pprint([index + 1 for index, flag in enumerate(result.monthly_conflicts) if flag])


if __name__ == "__main__":  # pragma: no cover - manual execution
    main()
