"""Interactive drag-and-drop reordering of a technician's route.

A drag gesture does not touch the committed route. It produces a pending
candidate order together with one negotiated time per customer; the candidate
is only applied (re-sorted by those times and persisted) on ``confirm`` and is
dropped without trace on ``cancel``::

    idle -> dragging -> pending_confirmation -> committed | cancelled -> idle
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Literal, Optional, Sequence

from ...config import settings
from ...models.domain import PendingReorder, RouteKey, Stop
from ...persistence.store import StopOrderStore
from .ordering import merge_visible_order, reconcile
from .scheduler import SequentialScheduler
from .time_codec import is_valid_24_hour, minutes_from_12_hour, minutes_from_24_hour, to_12_hour, to_24_hour


class ReorderState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    PENDING_CONFIRMATION = "pending_confirmation"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


def move_id(order: Sequence[str], moved_id: str, target_id: str) -> list[str]:
    """Move ``moved_id`` to the index currently held by ``target_id``."""
    result = list(order)
    old_index = result.index(moved_id)
    new_index = result.index(target_id)
    result.insert(new_index, result.pop(old_index))
    return result


def seed_customer_times(
    ordered_stops: Sequence[Stop],
    policy: Literal["first", "last"] = "first",
) -> dict[str, str]:
    """One 24-hour time per customer, taken from its first (or last) stop in order."""
    seeds: dict[str, str] = {}
    for stop in ordered_stops:
        if policy == "first" and stop.customer_name in seeds:
            continue
        seeds[stop.customer_name] = to_24_hour(stop.scheduled_time)
    return seeds


class ReorderPipeline:
    """Single-writer reorder session for one route."""

    def __init__(
        self,
        key: RouteKey,
        stops: Sequence[Stop],
        *,
        store: Optional[StopOrderStore] = None,
        scheduler: Optional[SequentialScheduler] = None,
        seed_policy: Optional[Literal["first", "last"]] = None,
        route_order: Optional[Sequence[str]] = None,
    ) -> None:
        self.key = key
        self.store = store
        self.scheduler = scheduler or SequentialScheduler()
        self.seed_policy = seed_policy or settings.customer_time_seed
        self._stops: list[Stop] = list(stops)
        # Full route order, including stops this session cannot see.
        self._route_order: list[str] = list(route_order) if route_order is not None else self.order
        self._snapshot: Optional[list[Stop]] = None
        self.pending: Optional[PendingReorder] = None
        self.state = ReorderState.IDLE
        self.last_outcome: Optional[ReorderState] = None

    @property
    def stops(self) -> list[Stop]:
        """Committed stops in route order."""
        return list(self._stops)

    @property
    def order(self) -> list[str]:
        return [stop.id for stop in self._stops]

    def _by_id(self) -> dict[str, Stop]:
        return {stop.id: stop for stop in self._stops}

    def _reset(self, outcome: Optional[ReorderState] = None) -> None:
        self._snapshot = None
        self.pending = None
        self.state = ReorderState.IDLE
        if outcome is not None:
            self.last_outcome = outcome

    def on_drag_start(self) -> None:
        if self.state != ReorderState.IDLE:
            logging.debug(f"Drag start ignored for route {self.key} in state {self.state.value}")
            return
        self._snapshot = list(self._stops)
        self.state = ReorderState.DRAGGING

    def on_drag_end(self, moved_id: Optional[str], target_id: Optional[str]) -> None:
        if self.state != ReorderState.DRAGGING:
            return
        if not moved_id or not target_id or moved_id == target_id:
            self._reset()
            return
        known = self._by_id()
        if moved_id not in known or target_id not in known:
            logging.warning(
                f"Rejected drag on route {self.key}: unknown stop id ({moved_id} -> {target_id})"
            )
            return

        candidate_order = move_id(self.order, moved_id, target_id)
        candidate_stops = [known[stop_id] for stop_id in candidate_order]
        self.pending = PendingReorder(
            candidate_order=candidate_order,
            customer_time_overrides=seed_customer_times(candidate_stops, self.seed_policy),
        )
        self.state = ReorderState.PENDING_CONFIRMATION

    def move(self, moved_id: str, target_id: str) -> None:
        """Drag start and drag end in one call."""
        self.on_drag_start()
        self.on_drag_end(moved_id, target_id)

    def set_customer_time(self, customer_name: str, time24: str) -> bool:
        if self.state != ReorderState.PENDING_CONFIRMATION or self.pending is None:
            return False
        if customer_name not in self.pending.customer_time_overrides:
            logging.warning(f"No stops for customer '{customer_name}' on route {self.key}")
            return False
        if not is_valid_24_hour(time24):
            logging.warning(f"Ignoring invalid time '{time24}' for customer '{customer_name}'")
            return False
        self.pending.customer_time_overrides[customer_name] = to_24_hour(time24)
        return True

    def candidate_stops(self) -> list[Stop]:
        """Stops in candidate order while pending, otherwise the committed order."""
        if self.pending is None:
            return self.stops
        known = self._by_id()
        return [known[stop_id] for stop_id in self.pending.candidate_order]

    def predicted_times(self) -> list[str]:
        return self.scheduler.schedule(self.candidate_stops())

    def _effective_minutes(self, stop: Stop) -> int:
        overrides = self.pending.customer_time_overrides if self.pending else {}
        override = overrides.get(stop.customer_name)
        if override is not None:
            return minutes_from_24_hour(override)
        return minutes_from_12_hour(stop.scheduled_time)

    def preview_sorted_order(self) -> list[Stop]:
        """Candidate order sorted by effective customer time; ties keep candidate position."""
        return sorted(self.candidate_stops(), key=self._effective_minutes)

    def confirm(self) -> Optional[list[Stop]]:
        if self.state != ReorderState.PENDING_CONFIRMATION or self.pending is None:
            return None
        overrides = self.pending.customer_time_overrides
        final_stops = [
            stop.with_time(to_12_hour(overrides[stop.customer_name]))
            if stop.customer_name in overrides
            else stop
            for stop in self.preview_sorted_order()
        ]
        self._stops = final_stops
        self._persist(retimed={stop.id for stop in final_stops if stop.customer_name in overrides})
        logging.info(f"Committed reorder on route {self.key}: {', '.join(self.order)}")
        self._reset(ReorderState.COMMITTED)
        return self.stops

    def cancel(self) -> bool:
        if self.state not in (ReorderState.PENDING_CONFIRMATION, ReorderState.DRAGGING):
            return False
        if self._snapshot is not None:
            self._stops = self._snapshot
        logging.info(f"Cancelled reorder on route {self.key}")
        self._reset(ReorderState.CANCELLED)
        return True

    def commit_schedule(self) -> list[Stop]:
        """Stamp every stop with its sequential time and persist the route as is."""
        if self.state != ReorderState.IDLE:
            raise ValueError(f"Route {self.key} has a reorder in progress.")
        self._stops = self.scheduler.apply(self._stops)
        self._persist(retimed={stop.id for stop in self._stops})
        return self.stops

    def _persist(self, retimed: set[str]) -> None:
        if self.store is None:
            return
        existing = self.store.load(self.key.technician_id, self.key.date)
        # Status edits made elsewhere since the session opened win over ours.
        statuses = {stop.id: stop.status for stop in self._stops}
        statuses.update(existing.statuses)
        time_overrides = dict(existing.time_overrides)
        time_overrides.update(
            {stop.id: stop.scheduled_time for stop in self._stops if stop.id in retimed}
        )
        known_ids = [*self._route_order, *self.order]
        base = reconcile(existing.order if existing.order is not None else self._route_order, known_ids)
        full_order = merge_visible_order(base, self.order)
        self.store.save(self.key.technician_id, self.key.date, full_order, statuses, time_overrides)
        self._route_order = full_order
