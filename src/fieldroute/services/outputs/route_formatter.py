"""Serializers for route views."""

from __future__ import annotations

import csv
import io

from ..routing.service import RouteView

CSV_FIELDS = [
    "technician_id",
    "date",
    "sequence",
    "stop_id",
    "customer_name",
    "status",
    "scheduled_time",
    "predicted_time",
    "is_current",
    "is_next",
]


def _rows(view: RouteView) -> list[dict]:
    current = view.progress.current_index if view.progress else -1
    upcoming = view.progress.next_index if view.progress else -1
    return [
        {
            "technician_id": view.key.technician_id,
            "date": view.key.date_str,
            "sequence": index + 1,
            "stop_id": stop.id,
            "customer_name": stop.customer_name,
            "status": stop.status.value,
            "scheduled_time": stop.scheduled_time,
            "predicted_time": predicted,
            "is_current": index == current,
            "is_next": index == upcoming,
        }
        for index, (stop, predicted) in enumerate(zip(view.stops, view.predicted_times))
    ]


def route_view_to_json(view: RouteView) -> dict:
    payload = {
        "technician_id": view.key.technician_id,
        "date": view.key.date_str,
        "context": view.context.value,
        "order": [stop.id for stop in view.stops],
        "stops": _rows(view),
        "current_index": -1,
        "next_index": -1,
    }
    if view.progress is not None:
        payload.update(
            current_index=view.progress.current_index,
            next_index=view.progress.next_index,
            completed_count=view.progress.completed_count,
            remaining_count=view.progress.remaining_count,
        )
    return payload


def route_view_to_csv(view: RouteView) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS)
    writer.writeheader()
    for row in _rows(view):
        writer.writerow(row)
    return buffer.getvalue()
