from datetime import date

import pytest

from fieldroute.models.domain import RouteKey, Stop, StopStatus
from fieldroute.persistence.store import InMemoryKeyValueStore, StopOrderStore
from fieldroute.services.routing.reorder import ReorderPipeline, ReorderState, move_id, seed_customer_times
from fieldroute.services.routing.scheduler import SequentialScheduler

KEY = RouteKey("1", date(2025, 3, 14))


def _stop(sid: str, customer: str, time: str) -> Stop:
    return Stop(
        id=sid,
        customer_name=customer,
        scheduled_time=time,
        status=StopStatus.SCHEDULED,
        technician_id=KEY.technician_id,
        date=KEY.date,
    )


@pytest.fixture
def stops() -> list[Stop]:
    return [
        _stop("S1", "Acme", "09:00 AM"),
        _stop("S2", "Acme", "11:00 AM"),
        _stop("S3", "Beta", "10:00 AM"),
    ]


@pytest.fixture
def store() -> StopOrderStore:
    return StopOrderStore(InMemoryKeyValueStore())


def test_move_id_uses_splice_semantics() -> None:
    assert move_id(["a", "b", "c", "d"], "d", "b") == ["a", "d", "b", "c"]
    assert move_id(["a", "b", "c", "d"], "a", "c") == ["b", "c", "a", "d"]


def test_seed_customer_times_first_occurrence_wins(stops) -> None:
    assert seed_customer_times(stops) == {"Acme": "09:00", "Beta": "10:00"}
    assert seed_customer_times(stops, "last") == {"Acme": "11:00", "Beta": "10:00"}


def test_drag_end_builds_pending_reorder(stops) -> None:
    pipeline = ReorderPipeline(KEY, stops)
    pipeline.on_drag_start()
    assert pipeline.state == ReorderState.DRAGGING

    pipeline.on_drag_end("S3", "S1")

    assert pipeline.state == ReorderState.PENDING_CONFIRMATION
    assert pipeline.pending.candidate_order == ["S3", "S1", "S2"]
    assert pipeline.pending.customer_time_overrides == {"Beta": "10:00", "Acme": "09:00"}
    assert pipeline.order == ["S1", "S2", "S3"]
    assert pipeline.predicted_times() == ["09:00 AM", "10:00 AM", "11:00 AM"]


def test_customer_grouped_commit(stops, store) -> None:
    pipeline = ReorderPipeline(KEY, stops, store=store)
    pipeline.on_drag_start()
    pipeline.on_drag_end("S3", "S1")
    assert pipeline.set_customer_time("Acme", "14:00")

    committed = pipeline.confirm()

    assert [stop.id for stop in committed] == ["S3", "S1", "S2"]
    times = {stop.id: stop.scheduled_time for stop in committed}
    assert times == {"S1": "02:00 PM", "S2": "02:00 PM", "S3": "10:00 AM"}
    assert pipeline.state == ReorderState.IDLE
    assert pipeline.last_outcome == ReorderState.COMMITTED
    assert pipeline.pending is None

    state = store.load(KEY.technician_id, KEY.date)
    assert state.order == ["S3", "S1", "S2"]
    assert state.time_overrides == {"S3": "10:00 AM", "S1": "02:00 PM", "S2": "02:00 PM"}
    assert state.statuses == {"S1": StopStatus.SCHEDULED, "S2": StopStatus.SCHEDULED, "S3": StopStatus.SCHEDULED}


def test_preview_is_a_view_over_the_candidate(stops) -> None:
    pipeline = ReorderPipeline(KEY, stops)
    pipeline.move("S1", "S3")
    assert pipeline.pending.candidate_order == ["S2", "S3", "S1"]

    pipeline.set_customer_time("Beta", "16:00")
    first = [stop.id for stop in pipeline.preview_sorted_order()]
    pipeline.set_customer_time("Beta", "07:00")
    second = [stop.id for stop in pipeline.preview_sorted_order()]

    # Acme is seeded from S2, its first stop in candidate order.
    assert first == ["S2", "S1", "S3"]
    assert second == ["S3", "S2", "S1"]
    assert pipeline.pending.candidate_order == ["S2", "S3", "S1"]


def test_cancel_restores_original_order_and_times(stops, store) -> None:
    pipeline = ReorderPipeline(KEY, stops, store=store)
    before = pipeline.stops

    pipeline.on_drag_start()
    pipeline.on_drag_end("S2", "S1")
    pipeline.set_customer_time("Acme", "18:30")
    assert pipeline.cancel() is True

    assert pipeline.stops == before
    assert all(after is original for after, original in zip(pipeline.stops, before))
    assert pipeline.state == ReorderState.IDLE
    assert pipeline.last_outcome == ReorderState.CANCELLED
    assert store.backend.keys() == []


def test_cancel_while_dragging(stops) -> None:
    pipeline = ReorderPipeline(KEY, stops)
    pipeline.on_drag_start()

    assert pipeline.cancel() is True
    assert pipeline.order == ["S1", "S2", "S3"]
    assert pipeline.cancel() is False


def test_drag_end_on_same_or_missing_id_returns_to_idle(stops) -> None:
    pipeline = ReorderPipeline(KEY, stops)
    pipeline.on_drag_start()
    pipeline.on_drag_end("S1", "S1")
    assert pipeline.state == ReorderState.IDLE
    assert pipeline.pending is None

    pipeline.on_drag_start()
    pipeline.on_drag_end("S1", None)
    assert pipeline.state == ReorderState.IDLE


def test_drag_end_with_unknown_id_is_rejected(stops) -> None:
    pipeline = ReorderPipeline(KEY, stops)
    pipeline.on_drag_start()

    pipeline.on_drag_end("S1", "NOPE")

    assert pipeline.state == ReorderState.DRAGGING
    assert pipeline.pending is None
    pipeline.on_drag_end("S1", "S2")
    assert pipeline.state == ReorderState.PENDING_CONFIRMATION


def test_calls_out_of_state_are_ignored(stops, store) -> None:
    pipeline = ReorderPipeline(KEY, stops, store=store)

    pipeline.on_drag_end("S3", "S1")
    assert pipeline.state == ReorderState.IDLE
    assert pipeline.set_customer_time("Acme", "10:00") is False
    assert pipeline.confirm() is None
    assert pipeline.cancel() is False

    pipeline.on_drag_start()
    pipeline.on_drag_start()
    assert pipeline.state == ReorderState.DRAGGING
    assert pipeline.set_customer_time("Acme", "10:00") is False
    assert store.backend.keys() == []


def test_set_customer_time_rejects_unknown_customer_and_bad_time(stops) -> None:
    pipeline = ReorderPipeline(KEY, stops)
    pipeline.move("S3", "S1")

    assert pipeline.set_customer_time("Gamma", "10:00") is False
    assert pipeline.set_customer_time("Acme", "25:00") is False
    assert pipeline.set_customer_time("Acme", "7:05") is True
    assert pipeline.pending.customer_time_overrides["Acme"] == "07:05"


def test_confirm_keeps_statuses_changed_elsewhere(stops, store) -> None:
    store.save_statuses(KEY.technician_id, KEY.date, {"S2": StopStatus.CANCELLED})
    pipeline = ReorderPipeline(KEY, stops, store=store)
    pipeline.move("S3", "S1")

    pipeline.confirm()

    assert store.load(KEY.technician_id, KEY.date).statuses["S2"] == StopStatus.CANCELLED


def test_last_seed_policy(stops) -> None:
    pipeline = ReorderPipeline(KEY, stops, seed_policy="last")
    pipeline.move("S3", "S1")

    committed = pipeline.confirm()

    assert [stop.id for stop in committed] == ["S3", "S1", "S2"]
    assert {stop.scheduled_time for stop in committed if stop.customer_name == "Acme"} == {"11:00 AM"}


def test_commit_schedule_stamps_sequential_times(stops, store) -> None:
    pipeline = ReorderPipeline(KEY, stops, store=store, scheduler=SequentialScheduler("08:00", 30))

    committed = pipeline.commit_schedule()

    assert [stop.scheduled_time for stop in committed] == ["08:00 AM", "08:30 AM", "09:00 AM"]
    state = store.load(KEY.technician_id, KEY.date)
    assert state.order == ["S1", "S2", "S3"]
    assert state.time_overrides == {"S1": "08:00 AM", "S2": "08:30 AM", "S3": "09:00 AM"}


def test_commit_schedule_refuses_during_reorder(stops) -> None:
    pipeline = ReorderPipeline(KEY, stops)
    pipeline.on_drag_start()

    with pytest.raises(ValueError):
        pipeline.commit_schedule()
