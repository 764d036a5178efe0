from datetime import date

from fieldroute.models.domain import RouteKey, Stop, StopStatus
from fieldroute.services.outputs.route_formatter import CSV_FIELDS, route_view_to_csv, route_view_to_json
from fieldroute.services.routing.progress import RouteProgress
from fieldroute.services.routing.service import RouteContext, RouteView

KEY = RouteKey("3", date(2025, 6, 2))


def _view(progress=None) -> RouteView:
    stops = [
        Stop("A", "Acme", "09:00 AM", StopStatus.COMPLETED, "3", KEY.date),
        Stop("B", "Beta", "10:30 AM", StopStatus.SCHEDULED, "3", KEY.date),
    ]
    return RouteView(
        key=KEY,
        context=RouteContext.TRACKING,
        stops=stops,
        predicted_times=["09:00 AM", "10:00 AM"],
        progress=progress,
    )


def test_route_view_to_json_without_progress() -> None:
    payload = route_view_to_json(_view())

    assert payload["order"] == ["A", "B"]
    assert payload["date"] == "2025-06-02"
    assert payload["current_index"] == -1
    assert "completed_count" not in payload
    assert payload["stops"][1]["sequence"] == 2
    assert payload["stops"][1]["predicted_time"] == "10:00 AM"
    assert payload["stops"][0]["status"] == "Completed"


def test_route_view_to_csv_marks_current_and_next() -> None:
    content = route_view_to_csv(_view(RouteProgress(1, -1, 1, 1)))
    lines = content.strip().splitlines()

    assert lines[0] == ",".join(CSV_FIELDS)
    assert lines[2].startswith("3,2025-06-02,2,B,Beta,Scheduled,10:30 AM,10:00 AM,True,False")
