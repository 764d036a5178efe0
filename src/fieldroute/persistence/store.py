"""Local key-value persistence for route order, statuses and committed times."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..config import settings
from ..models.domain import RouteState, StopStatus

ORDER_KEY = "route_order_{technician_id}_{date}"
STATUSES_KEY = "route_statuses_{technician_id}_{date}"
TIME_OVERRIDES_KEY = "job_time_overrides_{technician_id}_{date}"


class KeyValueBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Dictionary-backed store; the default fake for tests."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileKeyValueStore:
    """Single JSON document on disk holding raw string values by key."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = (path or settings.store_path).resolve()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logging.warning(f"Key-value store {self.path} is unreadable ({exc}); starting empty")
            return {}
        if not isinstance(data, dict):
            logging.warning(f"Key-value store {self.path} is not an object; starting empty")
            return {}
        return {str(key): value for key, value in data.items() if isinstance(value, str)}

    def _write_all(self, data: dict[str, str]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".store_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)


def _date_str(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else str(value)


class StopOrderStore:
    """Persisted route state scoped by ``(technician_id, date)``.

    The three entries are read independently: a corrupt entry loads as absent
    and never blocks the other two.
    """

    def __init__(self, backend: KeyValueBackend | None = None) -> None:
        self.backend = backend if backend is not None else InMemoryKeyValueStore()

    @staticmethod
    def keys_for(technician_id: str, day: date | str) -> tuple[str, str, str]:
        params = {"technician_id": technician_id, "date": _date_str(day)}
        return (
            ORDER_KEY.format(**params),
            STATUSES_KEY.format(**params),
            TIME_OVERRIDES_KEY.format(**params),
        )

    def _read_json(self, key: str) -> Any:
        raw = self.backend.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as exc:
            logging.warning(f"Ignoring malformed store entry '{key}': {exc}")
            return None

    def _load_order(self, key: str) -> Optional[list[str]]:
        value = self._read_json(key)
        if value is None:
            return None
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            logging.warning(f"Ignoring store entry '{key}': expected an array of stop ids")
            return None
        return value

    def _load_statuses(self, key: str) -> dict[str, StopStatus]:
        value = self._read_json(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            logging.warning(f"Ignoring store entry '{key}': expected an object")
            return {}
        statuses: dict[str, StopStatus] = {}
        for stop_id, raw_status in value.items():
            try:
                statuses[str(stop_id)] = StopStatus.parse(raw_status)
            except ValueError:
                logging.warning(f"Ignoring unknown status '{raw_status}' for stop {stop_id} in '{key}'")
        return statuses

    def _load_time_overrides(self, key: str) -> dict[str, str]:
        value = self._read_json(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            logging.warning(f"Ignoring store entry '{key}': expected an object")
            return {}
        return {str(stop_id): time for stop_id, time in value.items() if isinstance(time, str)}

    def load(self, technician_id: str, day: date | str) -> RouteState:
        order_key, statuses_key, overrides_key = self.keys_for(technician_id, day)
        return RouteState(
            order=self._load_order(order_key),
            statuses=self._load_statuses(statuses_key),
            time_overrides=self._load_time_overrides(overrides_key),
        )

    def save_order(self, technician_id: str, day: date | str, order: Sequence[str]) -> None:
        order_key, _, _ = self.keys_for(technician_id, day)
        self.backend.set(order_key, json.dumps(list(order)))

    def save_statuses(
        self, technician_id: str, day: date | str, statuses: Mapping[str, StopStatus | str]
    ) -> None:
        _, statuses_key, _ = self.keys_for(technician_id, day)
        payload = {stop_id: StopStatus.parse(status).value for stop_id, status in statuses.items()}
        self.backend.set(statuses_key, json.dumps(payload))

    def save_time_overrides(
        self, technician_id: str, day: date | str, time_overrides: Mapping[str, str]
    ) -> None:
        _, _, overrides_key = self.keys_for(technician_id, day)
        self.backend.set(overrides_key, json.dumps(dict(time_overrides)))

    def save(
        self,
        technician_id: str,
        day: date | str,
        order: Sequence[str],
        statuses: Mapping[str, StopStatus | str],
        time_overrides: Mapping[str, str],
    ) -> None:
        self.save_order(technician_id, day, order)
        self.save_statuses(technician_id, day, statuses)
        self.save_time_overrides(technician_id, day, time_overrides)
        logging.info(
            f"Saved route {technician_id}/{_date_str(day)}: {len(order)} stops, "
            f"{len(time_overrides)} time overrides"
        )

    def clear(self, technician_id: str, day: date | str) -> None:
        for key in self.keys_for(technician_id, day):
            self.backend.delete(key)
