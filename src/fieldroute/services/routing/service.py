"""Route orchestration service."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from ...config import settings
from ...data.stops_repository import get_stops_for_route
from ...models.domain import PLANNING_STATUSES, RouteKey, Stop, StopStatus, to_planned, to_tracked
from ...persistence.store import JsonFileKeyValueStore, StopOrderStore
from .ordering import apply_order, apply_overrides, default_order, tracking_order
from .progress import ProgressTracker, RouteProgress
from .reorder import ReorderPipeline, ReorderState
from .scheduler import SequentialScheduler


class RouteContext(str, Enum):
    PLANNING = "planning"
    TRACKING = "tracking"


class SessionConflictError(RuntimeError):
    """Raised when a second reorder session is opened for the same route."""


@dataclass(slots=True)
class RouteView:
    key: RouteKey
    context: RouteContext
    stops: list[Stop]
    predicted_times: list[str]
    progress: Optional[RouteProgress] = None


@functools.lru_cache(maxsize=1)
def get_store() -> StopOrderStore:
    """Process-wide store backed by the local JSON file."""
    return StopOrderStore(JsonFileKeyValueStore())


def load_route(
    key: RouteKey,
    *,
    context: RouteContext = RouteContext.PLANNING,
    now_minutes: Optional[int] = None,
    store: Optional[StopOrderStore] = None,
    scheduler: Optional[SequentialScheduler] = None,
    tracker: Optional[ProgressTracker] = None,
) -> RouteView:
    store = store or get_store()
    scheduler = scheduler or SequentialScheduler()

    state = store.load(key.technician_id, key.date)
    stops = apply_overrides(get_stops_for_route(key), state.statuses, state.time_overrides)

    if context == RouteContext.PLANNING:
        hidden = [stop.id for stop in stops if stop.status not in PLANNING_STATUSES]
        if hidden:
            logging.info(f"Route {key}: {len(hidden)} started or finished stops not shown for planning")
        planned: list[Stop] = [to_planned(stop) for stop in stops if stop.status in PLANNING_STATUSES]
        ordered = apply_order(planned, state.order) if state.order else default_order(planned)
    else:
        tracked: list[Stop] = [to_tracked(stop) for stop in stops]
        ordered = apply_order(tracked, state.order) if state.order else tracking_order(tracked)

    progress = None
    if now_minutes is not None:
        progress = (tracker or ProgressTracker()).snapshot(ordered, now_minutes)

    return RouteView(
        key=key,
        context=context,
        stops=ordered,
        predicted_times=scheduler.schedule(ordered),
        progress=progress,
    )


def route_order_ids(key: RouteKey, *, store: Optional[StopOrderStore] = None) -> list[str]:
    """Ids of every stop on the route, in the order the tracking surface shows them."""
    view = load_route(key, context=RouteContext.TRACKING, store=store)
    return [stop.id for stop in view.stops]


def update_stop_status(
    key: RouteKey,
    stop_id: str,
    status: StopStatus | str,
    *,
    store: Optional[StopOrderStore] = None,
) -> StopStatus:
    store = store or get_store()
    parsed = StopStatus.parse(status)
    known_ids = {stop.id for stop in get_stops_for_route(key)}
    if stop_id not in known_ids:
        raise ValueError(f"Stop '{stop_id}' is not on route {key}.")

    state = store.load(key.technician_id, key.date)
    statuses = dict(state.statuses)
    statuses[stop_id] = parsed
    store.save_statuses(key.technician_id, key.date, statuses)
    logging.info(f"Stop {stop_id} on route {key} marked {parsed.value}")
    return parsed


def save_schedule(
    key: RouteKey,
    stop_ids: Sequence[str],
    *,
    min_stops: Optional[int] = None,
    store: Optional[StopOrderStore] = None,
    scheduler: Optional[SequentialScheduler] = None,
) -> RouteView:
    """Persist an explicit stop order with sequential times (the "save route" action)."""
    store = store or get_store()
    scheduler = scheduler or SequentialScheduler()
    min_stops = settings.min_stops_to_save if min_stops is None else min_stops

    if len(stop_ids) < min_stops:
        raise ValueError(f"At least {min_stops} stops are required to save a route.")
    if len(set(stop_ids)) != len(stop_ids):
        raise ValueError("Stop ids must be unique.")

    view = load_route(key, store=store, scheduler=scheduler)
    by_id = {stop.id: stop for stop in view.stops}
    unknown = [stop_id for stop_id in stop_ids if stop_id not in by_id]
    if unknown:
        raise ValueError(f"Unknown stop ids for route {key}: {', '.join(unknown)}")

    ordered = apply_order(view.stops, stop_ids)
    pipeline = ReorderPipeline(
        key, ordered, store=store, scheduler=scheduler, route_order=route_order_ids(key, store=store)
    )
    committed = pipeline.commit_schedule()
    return RouteView(
        key=key,
        context=RouteContext.PLANNING,
        stops=committed,
        predicted_times=scheduler.schedule(committed),
    )


class ReorderSessions:
    """Live reorder pipelines, at most one per route key."""

    def __init__(self, store: Optional[StopOrderStore] = None) -> None:
        self._store = store
        self._sessions: dict[RouteKey, ReorderPipeline] = {}

    @property
    def store(self) -> StopOrderStore:
        return self._store or get_store()

    def start(self, key: RouteKey, scheduler: Optional[SequentialScheduler] = None) -> ReorderPipeline:
        existing = self._sessions.get(key)
        if existing is not None and existing.state != ReorderState.IDLE:
            raise SessionConflictError(f"Route {key} already has a reorder in progress.")
        view = load_route(key, store=self.store, scheduler=scheduler)
        pipeline = ReorderPipeline(
            key,
            view.stops,
            store=self.store,
            scheduler=scheduler,
            route_order=route_order_ids(key, store=self.store),
        )
        pipeline.on_drag_start()
        self._sessions[key] = pipeline
        return pipeline

    def get(self, key: RouteKey) -> ReorderPipeline:
        try:
            return self._sessions[key]
        except KeyError:
            raise LookupError(f"No reorder in progress for route {key}.") from None

    def _release_if_idle(self, key: RouteKey) -> None:
        pipeline = self._sessions.get(key)
        if pipeline is not None and pipeline.state == ReorderState.IDLE:
            del self._sessions[key]

    def drag_end(self, key: RouteKey, moved_id: Optional[str], target_id: Optional[str]) -> ReorderPipeline:
        pipeline = self.get(key)
        pipeline.on_drag_end(moved_id, target_id)
        self._release_if_idle(key)
        return pipeline

    def set_customer_time(self, key: RouteKey, customer_name: str, time24: str) -> bool:
        return self.get(key).set_customer_time(customer_name, time24)

    def confirm(self, key: RouteKey) -> list[Stop]:
        pipeline = self.get(key)
        committed = pipeline.confirm()
        if committed is None:
            raise ValueError(f"Route {key} has no reorder awaiting confirmation.")
        self._release_if_idle(key)
        return committed

    def cancel(self, key: RouteKey) -> list[Stop]:
        pipeline = self.get(key)
        pipeline.cancel()
        self._release_if_idle(key)
        return pipeline.stops

    def clear(self) -> None:
        self._sessions.clear()


sessions = ReorderSessions()
