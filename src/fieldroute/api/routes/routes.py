"""Route sequencing endpoints."""

from __future__ import annotations

import logging
from datetime import date, datetime

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from ...models.domain import RouteKey
from ...schemas.routing import (
    CustomerTimeRequest,
    DragEndRequest,
    PreviewStopModel,
    ReorderSessionResponse,
    ReorderStartRequest,
    RouteResponse,
    ScheduleRequest,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from ...services.outputs.route_formatter import route_view_to_csv, route_view_to_json
from ...services.routing.progress import minutes_since_midnight
from ...services.routing.reorder import ReorderPipeline, ReorderState
from ...services.routing.scheduler import SequentialScheduler
from ...services.routing.service import (
    RouteContext,
    SessionConflictError,
    load_route,
    save_schedule,
    sessions,
    update_stop_status,
)
from ...services.routing.time_codec import is_valid_24_hour, minutes_from_24_hour

router = APIRouter(prefix="/routes", tags=["routes"])


def _now_minutes(now: str | None) -> int:
    if now is None:
        return minutes_since_midnight(datetime.now())
    if not is_valid_24_hour(now):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid time '{now}', expected HH:MM")
    return minutes_from_24_hour(now)


def _session_payload(pipeline: ReorderPipeline) -> ReorderSessionResponse:
    response = ReorderSessionResponse(
        technician_id=pipeline.key.technician_id,
        date=pipeline.key.date_str,
        state=pipeline.state.value,
        last_outcome=pipeline.last_outcome.value if pipeline.last_outcome else None,
        order=pipeline.order,
        predicted_times=pipeline.predicted_times(),
    )
    if pipeline.state == ReorderState.PENDING_CONFIRMATION and pipeline.pending is not None:
        response.candidate_order = list(pipeline.pending.candidate_order)
        response.customer_times = dict(pipeline.pending.customer_time_overrides)
        response.preview = [
            PreviewStopModel(stop_id=stop.id, customer_name=stop.customer_name, scheduled_time=stop.scheduled_time)
            for stop in pipeline.preview_sorted_order()
        ]
    return response


@router.get("/{technician_id}/{route_date}", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def get_route(
    technician_id: str,
    route_date: date,
    context: RouteContext = Query(default=RouteContext.PLANNING),
    now: str | None = Query(default=None, description="Wall-clock time (HH:MM) for current/next stop"),
    start_time: str | None = Query(default=None, description="Start-of-route time (HH:MM)"),
    duration_minutes: int | None = Query(default=None, ge=0),
) -> RouteResponse:
    if start_time is not None and not is_valid_24_hour(start_time):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid start time '{start_time}'")
    key = RouteKey(technician_id, route_date)
    now_minutes = _now_minutes(now) if context == RouteContext.TRACKING else None
    try:
        view = load_route(
            key,
            context=context,
            now_minutes=now_minutes,
            scheduler=SequentialScheduler(start_time, duration_minutes),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error loading route {key}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to load route: {str(exc)}",
        ) from exc
    return RouteResponse(**route_view_to_json(view))


@router.get("/{technician_id}/{route_date}/export.csv", response_class=PlainTextResponse)
def export_route(
    technician_id: str,
    route_date: date,
    context: RouteContext = Query(default=RouteContext.TRACKING),
    now: str | None = Query(default=None),
) -> PlainTextResponse:
    key = RouteKey(technician_id, route_date)
    now_minutes = _now_minutes(now) if context == RouteContext.TRACKING else None
    try:
        view = load_route(key, context=context, now_minutes=now_minutes)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error exporting route {key}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to export route: {str(exc)}",
        ) from exc
    return PlainTextResponse(route_view_to_csv(view), media_type="text/csv")


@router.put(
    "/{technician_id}/{route_date}/stops/{stop_id}/status",
    response_model=StatusUpdateResponse,
    status_code=status.HTTP_200_OK,
)
def set_stop_status(
    technician_id: str, route_date: date, stop_id: str, payload: StatusUpdateRequest
) -> StatusUpdateResponse:
    key = RouteKey(technician_id, route_date)
    try:
        updated = update_stop_status(key, stop_id, payload.status)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error updating stop {stop_id} on route {key}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update stop status: {str(exc)}",
        ) from exc
    return StatusUpdateResponse(stop_id=stop_id, status=updated.value)


@router.post("/{technician_id}/{route_date}/schedule", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def schedule_route(technician_id: str, route_date: date, payload: ScheduleRequest) -> RouteResponse:
    key = RouteKey(technician_id, route_date)
    try:
        view = save_schedule(
            key,
            payload.stop_ids,
            scheduler=SequentialScheduler(payload.start_time, payload.duration_minutes),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error saving schedule for route {key}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save route: {str(exc)}",
        ) from exc
    return RouteResponse(**route_view_to_json(view))


@router.get("/{technician_id}/{route_date}/reorder", response_model=ReorderSessionResponse)
def get_reorder(technician_id: str, route_date: date) -> ReorderSessionResponse:
    key = RouteKey(technician_id, route_date)
    try:
        return _session_payload(sessions.get(key))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error reading reorder on route {key}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to read reorder: {str(exc)}",
        ) from exc


@router.post("/{technician_id}/{route_date}/reorder/start", response_model=ReorderSessionResponse)
def start_reorder(
    technician_id: str, route_date: date, payload: ReorderStartRequest | None = None
) -> ReorderSessionResponse:
    payload = payload or ReorderStartRequest()
    key = RouteKey(technician_id, route_date)
    try:
        pipeline = sessions.start(
            key,
            scheduler=SequentialScheduler(payload.start_time, payload.duration_minutes),
        )
    except SessionConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error starting reorder on route {key}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to start reorder: {str(exc)}",
        ) from exc
    return _session_payload(pipeline)


@router.post("/{technician_id}/{route_date}/reorder/drag-end", response_model=ReorderSessionResponse)
def drag_end(technician_id: str, route_date: date, payload: DragEndRequest) -> ReorderSessionResponse:
    key = RouteKey(technician_id, route_date)
    try:
        pipeline = sessions.drag_end(key, payload.moved_id, payload.target_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error applying drag on route {key}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to apply drag: {str(exc)}",
        ) from exc
    return _session_payload(pipeline)


@router.post("/{technician_id}/{route_date}/reorder/customer-time", response_model=ReorderSessionResponse)
def set_customer_time(
    technician_id: str, route_date: date, payload: CustomerTimeRequest
) -> ReorderSessionResponse:
    key = RouteKey(technician_id, route_date)
    try:
        accepted = sessions.set_customer_time(key, payload.customer_name, payload.time)
        pipeline = sessions.get(key)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error setting customer time on route {key}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to set customer time: {str(exc)}",
        ) from exc
    if not accepted:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot set a time for '{payload.customer_name}' on route {key}.",
        )
    return _session_payload(pipeline)


@router.post("/{technician_id}/{route_date}/reorder/confirm", response_model=ReorderSessionResponse)
def confirm_reorder(technician_id: str, route_date: date) -> ReorderSessionResponse:
    key = RouteKey(technician_id, route_date)
    try:
        pipeline = sessions.get(key)
        sessions.confirm(key)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error confirming reorder on route {key}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to confirm reorder: {str(exc)}",
        ) from exc
    return _session_payload(pipeline)


@router.post("/{technician_id}/{route_date}/reorder/cancel", response_model=ReorderSessionResponse)
def cancel_reorder(technician_id: str, route_date: date) -> ReorderSessionResponse:
    key = RouteKey(technician_id, route_date)
    try:
        pipeline = sessions.get(key)
        sessions.cancel(key)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error cancelling reorder on route {key}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to cancel reorder: {str(exc)}",
        ) from exc
    return _session_payload(pipeline)
