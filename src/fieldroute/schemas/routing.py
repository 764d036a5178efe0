"""Route request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..services.routing.time_codec import is_valid_24_hour


def _check_time24(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_valid_24_hour(value):
        raise ValueError(f"Expected HH:MM (24-hour), got '{value}'")
    return value


class StopModel(BaseModel):
    sequence: int
    stop_id: str
    customer_name: str
    status: str
    scheduled_time: str
    predicted_time: str
    is_current: bool = False
    is_next: bool = False


class RouteResponse(BaseModel):
    technician_id: str
    date: str
    context: str
    order: List[str]
    stops: List[StopModel]
    current_index: int = -1
    next_index: int = -1
    completed_count: Optional[int] = None
    remaining_count: Optional[int] = None


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="Scheduled, In Progress, Completed or Cancelled")


class StatusUpdateResponse(BaseModel):
    stop_id: str
    status: str


class ScheduleRequest(BaseModel):
    stop_ids: List[str] = Field(..., description="Stop ids in the desired visiting order.")
    start_time: Optional[str] = Field(default=None, description="Start-of-route time (24-hour HH:MM).")
    duration_minutes: Optional[int] = Field(default=None, ge=0)

    @field_validator("start_time")
    @classmethod
    def _validate_start(cls, value: Optional[str]) -> Optional[str]:
        return _check_time24(value)


class ReorderStartRequest(BaseModel):
    start_time: Optional[str] = Field(default=None, description="Start-of-route time (24-hour HH:MM).")
    duration_minutes: Optional[int] = Field(default=None, ge=0)

    @field_validator("start_time")
    @classmethod
    def _validate_start(cls, value: Optional[str]) -> Optional[str]:
        return _check_time24(value)


class DragEndRequest(BaseModel):
    moved_id: Optional[str] = None
    target_id: Optional[str] = None


class CustomerTimeRequest(BaseModel):
    customer_name: str
    time: str = Field(..., description="Negotiated visit time (24-hour HH:MM).")

    @field_validator("time")
    @classmethod
    def _validate_time(cls, value: str) -> str:
        return _check_time24(value)


class PreviewStopModel(BaseModel):
    stop_id: str
    customer_name: str
    scheduled_time: str


class ReorderSessionResponse(BaseModel):
    technician_id: str
    date: str
    state: str
    last_outcome: Optional[str] = None
    order: List[str]
    predicted_times: List[str]
    candidate_order: Optional[List[str]] = None
    customer_times: Optional[dict[str, str]] = None
    preview: Optional[List[PreviewStopModel]] = None
