"""Current/next stop detection for the tracking surface."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import CLOSED_STATUSES, Stop, StopStatus
from .time_codec import minutes_from_12_hour


def minutes_since_midnight(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def current_stop_index(
    ordered_stops: Sequence[Stop],
    now_minutes: int,
    grace_minutes: int = 30,
) -> int:
    """Index of the stop closest to ``now_minutes``, or -1.

    Open stops no more than ``grace_minutes`` in the past are preferred; if every
    open stop is older than that, the most recent one wins. With no open stops
    the first ``In Progress`` stop is used.
    """
    upcoming: Optional[tuple[int, int]] = None
    past: Optional[tuple[int, int]] = None
    for index, stop in enumerate(ordered_stops):
        if stop.status in CLOSED_STATUSES:
            continue
        stop_minutes = minutes_from_12_hour(stop.scheduled_time)
        diff = abs(stop_minutes - now_minutes)
        if stop_minutes >= now_minutes - grace_minutes:
            if upcoming is None or diff < upcoming[0]:
                upcoming = (diff, index)
        elif past is None or diff < past[0]:
            past = (diff, index)

    if upcoming is not None:
        return upcoming[1]
    if past is not None:
        return past[1]
    return next(
        (index for index, stop in enumerate(ordered_stops) if stop.status == StopStatus.IN_PROGRESS),
        -1,
    )


def next_stop_index(ordered_stops: Sequence[Stop], current_index: int) -> int:
    """First ``Scheduled`` stop after ``current_index``, else the first anywhere, else -1."""
    if 0 <= current_index < len(ordered_stops) - 1:
        for index in range(current_index + 1, len(ordered_stops)):
            if ordered_stops[index].status == StopStatus.SCHEDULED:
                return index
    return next(
        (index for index, stop in enumerate(ordered_stops) if stop.status == StopStatus.SCHEDULED),
        -1,
    )


@dataclass(slots=True)
class RouteProgress:
    current_index: int
    next_index: int
    completed_count: int
    remaining_count: int


class ProgressTracker:
    def __init__(self, grace_minutes: Optional[int] = None) -> None:
        self.grace_minutes = (
            settings.current_stop_grace_minutes if grace_minutes is None else grace_minutes
        )

    def current_stop_index(self, ordered_stops: Sequence[Stop], now_minutes: int) -> int:
        return current_stop_index(ordered_stops, now_minutes, self.grace_minutes)

    def next_stop_index(self, ordered_stops: Sequence[Stop], current_index: int) -> int:
        return next_stop_index(ordered_stops, current_index)

    def snapshot(self, ordered_stops: Sequence[Stop], now_minutes: int) -> RouteProgress:
        current = self.current_stop_index(ordered_stops, now_minutes)
        completed = sum(1 for stop in ordered_stops if stop.status == StopStatus.COMPLETED)
        remaining = sum(1 for stop in ordered_stops if stop.status not in CLOSED_STATUSES)
        return RouteProgress(
            current_index=current,
            next_index=self.next_stop_index(ordered_stops, current),
            completed_count=completed,
            remaining_count=remaining,
        )
