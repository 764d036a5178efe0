"""Domain models for technician stops and their routes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Optional


class StopStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @classmethod
    def parse(cls, value: "StopStatus | str") -> "StopStatus":
        """Accept canonical values plus the legacy spellings older clients stored."""
        if isinstance(value, StopStatus):
            return value
        normalized = str(value).strip().lower().replace("_", " ")
        aliases = {
            "scheduled": cls.SCHEDULED,
            "in progress": cls.IN_PROGRESS,
            "inprogress": cls.IN_PROGRESS,
            "completed": cls.COMPLETED,
            "cancelled": cls.CANCELLED,
            "canceled": cls.CANCELLED,
            "cancel": cls.CANCELLED,
        }
        try:
            return aliases[normalized]
        except KeyError:
            raise ValueError(f"Unknown stop status '{value}'") from None


# Statuses the editable scheduling surface can show.
PLANNING_STATUSES = frozenset({StopStatus.SCHEDULED, StopStatus.CANCELLED})
# Statuses that take a stop out of the live progress calculation.
CLOSED_STATUSES = frozenset({StopStatus.COMPLETED, StopStatus.CANCELLED})


@dataclass(slots=True)
class Stop:
    """One technician visit as supplied by the job records."""

    id: str
    customer_name: str
    scheduled_time: str
    status: StopStatus
    technician_id: str
    date: date
    title: Optional[str] = None
    location: Optional[str] = None

    def with_time(self, scheduled_time: str) -> "Stop":
        return replace(self, scheduled_time=scheduled_time)

    def with_status(self, status: StopStatus) -> "Stop":
        return replace(self, status=status)


@dataclass(slots=True)
class PlannedStop(Stop):
    """Stop on the editable scheduling surface (Scheduled or Cancelled only)."""

    def __post_init__(self) -> None:
        if self.status not in PLANNING_STATUSES:
            raise ValueError(
                f"Stop {self.id} has status '{self.status.value}', which cannot be planned."
            )


@dataclass(slots=True)
class TrackedStop(Stop):
    """Stop on the read-only tracking surface (full lifecycle)."""


def to_planned(stop: Stop) -> PlannedStop:
    return PlannedStop(
        id=stop.id,
        customer_name=stop.customer_name,
        scheduled_time=stop.scheduled_time,
        status=StopStatus.parse(stop.status),
        technician_id=stop.technician_id,
        date=stop.date,
        title=stop.title,
        location=stop.location,
    )


def to_tracked(stop: Stop) -> TrackedStop:
    return TrackedStop(
        id=stop.id,
        customer_name=stop.customer_name,
        scheduled_time=stop.scheduled_time,
        status=StopStatus.parse(stop.status),
        technician_id=stop.technician_id,
        date=stop.date,
        title=stop.title,
        location=stop.location,
    )


@dataclass(frozen=True, slots=True)
class RouteKey:
    """Identifies one technician's route on one calendar day."""

    technician_id: str
    date: date

    @property
    def date_str(self) -> str:
        return self.date.isoformat()

    def __str__(self) -> str:
        return f"{self.technician_id}_{self.date_str}"


@dataclass(slots=True)
class RouteState:
    """Persisted values for one route key; absent entries load as None/empty."""

    order: Optional[list[str]] = None
    statuses: dict[str, StopStatus] = field(default_factory=dict)
    time_overrides: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class PendingReorder:
    candidate_order: list[str]
    customer_time_overrides: dict[str, str]
