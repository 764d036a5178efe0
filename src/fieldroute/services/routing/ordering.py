"""Route order helpers: reconciliation, default sorts and override application."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence, TypeVar

from ...models.domain import CLOSED_STATUSES, Stop, StopStatus
from .time_codec import minutes_from_12_hour

StopT = TypeVar("StopT", bound=Stop)


def reconcile(order: Sequence[str], known_ids: Iterable[str]) -> list[str]:
    """Repair a persisted order against the stop ids currently known.

    Unseen ids are appended in discovery order, ids that are no longer known are
    dropped, and the relative order of everything else is preserved.
    """
    known = list(dict.fromkeys(known_ids))
    known_set = set(known)
    seen: set[str] = set()
    repaired: list[str] = []
    for stop_id in order:
        if stop_id in known_set and stop_id not in seen:
            repaired.append(stop_id)
            seen.add(stop_id)
    repaired.extend(stop_id for stop_id in known if stop_id not in seen)
    return repaired


def default_order(stops: Sequence[StopT]) -> list[StopT]:
    """Ascending by scheduled time in minutes; ties keep their input position."""
    return sorted(stops, key=lambda stop: minutes_from_12_hour(stop.scheduled_time))


def tracking_order(stops: Sequence[StopT]) -> list[StopT]:
    """Default order for the tracking surface when nothing is persisted.

    Open stops come first by ascending time, closed stops (completed or
    cancelled) sink to the bottom with the latest first.
    """
    open_stops = [stop for stop in stops if stop.status not in CLOSED_STATUSES]
    closed_stops = [stop for stop in stops if stop.status in CLOSED_STATUSES]
    closed_sorted = sorted(
        closed_stops,
        key=lambda stop: -minutes_from_12_hour(stop.scheduled_time),
    )
    return default_order(open_stops) + closed_sorted


def apply_order(stops: Sequence[StopT], order: Sequence[str]) -> list[StopT]:
    """Materialise ``order`` as stop objects, reconciling it first."""
    by_id = {stop.id: stop for stop in stops}
    return [by_id[stop_id] for stop_id in reconcile(order, (stop.id for stop in stops))]


def apply_overrides(
    stops: Sequence[StopT],
    statuses: Mapping[str, StopStatus],
    time_overrides: Mapping[str, str],
) -> list[StopT]:
    """Overlay persisted statuses and committed times on freshly loaded stops."""
    result: list[StopT] = []
    for stop in stops:
        updated = stop
        if stop.id in time_overrides:
            updated = updated.with_time(time_overrides[stop.id])
        if stop.id in statuses and statuses[stop.id] != stop.status:
            updated = updated.with_status(statuses[stop.id])
        result.append(updated)
    return result


def merge_visible_order(route_order: Sequence[str], visible_order: Sequence[str]) -> list[str]:
    """Write ``visible_order`` back into the slots its ids hold in ``route_order``.

    Ids that are not visible keep their positions; visible ids missing from
    ``route_order`` are appended.
    """
    visible = list(dict.fromkeys(visible_order))
    visible_set = set(visible)
    replacements = iter(visible)
    merged = [
        next(replacements) if stop_id in visible_set else stop_id
        for stop_id in dict.fromkeys(route_order)
    ]
    merged.extend(replacements)
    return merged
