"""Position-based stop time prediction."""

from __future__ import annotations

from typing import Optional, Sequence, Union

from ...config import settings
from ...models.domain import Stop
from .time_codec import add_minutes, is_valid_24_hour, to_12_hour


def schedule(
    ordered_stops: Sequence[Union[Stop, str]],
    start_time24: str,
    duration_minutes: int,
) -> list[str]:
    """Predict a 12-hour display time for every stop strictly by its position.

    The stop at index ``i`` starts ``i * duration_minutes`` after ``start_time24``.
    Only the length of ``ordered_stops`` matters, so stop objects or bare ids work.
    """
    return [
        to_12_hour(add_minutes(start_time24, index * duration_minutes))
        for index in range(len(ordered_stops))
    ]


class SequentialScheduler:
    """Schedule bound to a start time and per-stop duration."""

    def __init__(
        self,
        start_time24: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> None:
        if start_time24 is not None and not is_valid_24_hour(start_time24):
            raise ValueError(f"Invalid start time '{start_time24}', expected HH:MM (24-hour)")
        self.start_time24 = start_time24 or settings.route_start_time
        self.duration_minutes = (
            settings.stop_duration_minutes if duration_minutes is None else duration_minutes
        )

    def schedule(self, ordered_stops: Sequence[Union[Stop, str]]) -> list[str]:
        return schedule(ordered_stops, self.start_time24, self.duration_minutes)

    def time_overrides(self, ordered_stops: Sequence[Stop]) -> dict[str, str]:
        """Map each stop id to its predicted time, in the shape the store persists."""
        times = self.schedule(ordered_stops)
        return {stop.id: time for stop, time in zip(ordered_stops, times)}

    def apply(self, ordered_stops: Sequence[Stop]) -> list[Stop]:
        """Return copies of the stops carrying their predicted times."""
        return [stop.with_time(time) for stop, time in zip(ordered_stops, self.schedule(ordered_stops))]
