import json
from datetime import date
from pathlib import Path

import pytest

from fieldroute.data import stops_repository
from fieldroute.models.domain import RouteKey, StopStatus


@pytest.fixture(autouse=True)
def clear_stop_cache():
    stops_repository.load_stops.cache_clear()
    yield
    stops_repository.load_stops.cache_clear()


def _write_stops(path: Path) -> Path:
    path.write_text(
        json.dumps(
            [
                {"id": "J1", "customerName": "Acme", "time": "09:00 AM", "status": "Scheduled",
                 "technicianId": "1", "date": "2025-03-14", "title": "Boiler check"},
                {"id": "J2", "customer_name": "Beta", "scheduled_time": "10:30 AM", "status": "In Progress",
                 "technician_id": "1", "date": "2025-03-14"},
                {"id": "J3", "customerName": "Acme", "time": "01:00 PM", "status": "Cancel",
                 "technicianId": "2", "date": "2025-03-14"},
                {"customerName": "No id", "technicianId": "1", "date": "2025-03-14"},
            ]
        ),
        encoding="utf-8",
    )
    return path


def test_load_stops_parses_both_key_styles(tmp_path: Path) -> None:
    stops = stops_repository.load_stops(_write_stops(tmp_path / "stops.json"))

    assert [stop.id for stop in stops] == ["J1", "J2", "J3"]
    assert stops[0].title == "Boiler check"
    assert stops[1].status == StopStatus.IN_PROGRESS
    assert stops[1].scheduled_time == "10:30 AM"
    assert stops[2].status == StopStatus.CANCELLED
    assert stops[2].date == date(2025, 3, 14)


def test_missing_stop_file_means_no_stops(tmp_path: Path) -> None:
    assert stops_repository.load_stops(tmp_path / "absent.json") == tuple()


def test_get_stops_for_route_filters_by_technician_and_date(tmp_path: Path, monkeypatch) -> None:
    stops = stops_repository.load_stops(_write_stops(tmp_path / "stops.json"))
    monkeypatch.setattr(stops_repository, "load_stops", lambda: stops)

    result = stops_repository.get_stops_for_route(RouteKey("1", date(2025, 3, 14)), allow_demo=False)

    assert [stop.id for stop in result] == ["J1", "J2"]
    assert stops_repository.get_stops_for_route(RouteKey("1", date(2025, 3, 15)), allow_demo=False) == []


def test_demo_stops_for_empty_route(monkeypatch) -> None:
    monkeypatch.setattr(stops_repository, "load_stops", lambda: tuple())
    key = RouteKey("4", date(2025, 3, 14))

    result = stops_repository.get_stops_for_route(key, allow_demo=True)

    assert [stop.id for stop in result] == [f"DEMO-4-2025-03-14-{n}" for n in range(1, 5)]
    assert [stop.scheduled_time for stop in result] == ["09:00 AM", "11:00 AM", "02:00 PM", "04:00 PM"]
    assert all(stop.technician_id == "4" and stop.date == key.date for stop in result)
