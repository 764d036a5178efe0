"""Data access helpers for loading technician stops."""

from __future__ import annotations

import functools
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Optional

from ..config import settings
from ..models.domain import RouteKey, Stop, StopStatus

_DEMO_TEMPLATES = (
    ("HVAC Service Call", "09:00 AM", "123 Main St, Chicago, IL"),
    ("Plumbing Inspection", "11:00 AM", "456 Oak Ave, Chicago, IL"),
    ("AC Maintenance", "02:00 PM", "789 Pine Rd, Chicago, IL"),
    ("Electrical Repair", "04:00 PM", "321 Elm St, Chicago, IL"),
)
_DEMO_CUSTOMERS = ("John Smith", "Sarah Johnson", "Robert Miller", "Emma Davis")


def _first(row: dict[str, Any], *names: str) -> Optional[Any]:
    for name in names:
        value = row.get(name)
        if value not in (None, ""):
            return value
    return None


def stop_from_record(row: dict[str, Any]) -> Stop:
    """Build a Stop from a job record (camelCase or snake_case keys)."""
    stop_id = _first(row, "id", "stop_id", "jobId")
    technician_id = _first(row, "technicianId", "technician_id")
    raw_date = _first(row, "date")
    if stop_id is None or technician_id is None or raw_date is None:
        raise ValueError(f"Stop record is missing id, technician or date: {row}")
    return Stop(
        id=str(stop_id),
        customer_name=str(_first(row, "customerName", "customer_name") or ""),
        scheduled_time=str(_first(row, "time", "scheduledTime", "scheduled_time") or ""),
        status=StopStatus.parse(_first(row, "status") or StopStatus.SCHEDULED),
        technician_id=str(technician_id),
        date=raw_date if isinstance(raw_date, date) else date.fromisoformat(str(raw_date)[:10]),
        title=_first(row, "title"),
        location=_first(row, "location"),
    )


@functools.lru_cache(maxsize=1)
def load_stops(source: Optional[Path] = None) -> tuple[Stop, ...]:
    """Load stops from the configured JSON file; a missing file means no stops."""

    json_path = source or settings.stops_file
    if not json_path.exists():
        logging.info(f"Stop file not found: {json_path}; no stops loaded")
        return tuple()

    with json_path.open("r", encoding="utf-8") as handle:
        records = json.load(handle)
    if not isinstance(records, list):
        raise ValueError(f"Stop file '{json_path}' must contain a JSON array.")

    stops: list[Stop] = []
    for row in records:
        try:
            stops.append(stop_from_record(row))
        except (ValueError, TypeError, AttributeError) as exc:
            logging.warning(f"Skipping stop record: {exc}")
    return tuple(stops)


def generate_demo_stops(key: RouteKey) -> list[Stop]:
    """Deterministic placeholder stops for a technician/date without any jobs."""
    return [
        Stop(
            id=f"DEMO-{key.technician_id}-{key.date_str}-{index + 1}",
            customer_name=_DEMO_CUSTOMERS[index],
            scheduled_time=time,
            status=StopStatus.SCHEDULED,
            technician_id=key.technician_id,
            date=key.date,
            title=title,
            location=location,
        )
        for index, (title, time, location) in enumerate(_DEMO_TEMPLATES)
    ]


def get_stops_for_route(key: RouteKey, *, allow_demo: Optional[bool] = None) -> list[Stop]:
    stops = [
        stop
        for stop in load_stops()
        if stop.technician_id == key.technician_id and stop.date == key.date
    ]
    use_demo = settings.demo_stops_when_empty if allow_demo is None else allow_demo
    if not stops and use_demo:
        logging.info(f"No stops for route {key}; using demo stops")
        return generate_demo_stops(key)
    return stops
