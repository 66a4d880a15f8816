"""
Configuración de fixtures para pytest.

Fakes en memoria de kintone y de la base de origen: los servicios se
prueban sin red ni SQL Server.
"""
from __future__ import annotations

import copy
import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import pytest

from sekou_sync.infrastructure.database.session import QueryResult
from sekou_sync.infrastructure.external.kintone.kintone_client import KintoneApiError
from sekou_sync.infrastructure.security.sync_pass_lock import SyncPassLock


_CONDITION_RE = re.compile(r'(\S+) = "((?:[^"\\]|\\.)*)"')


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)


def _id_order(record: Mapping[str, Any]) -> tuple:
    """Orden por $id numérico; ids no numéricos van al final."""
    value = str((record.get("$id") or {}).get("value"))
    return (0, int(value), "") if value.isdigit() else (1, 0, value)


class FakeKintoneStore:
    """
    Almacén kintone en memoria.

    Soporta las queries de igualdad `campo = "valor" and ...` que usa la
    reconciliación, y registra cada llamada en `calls`.
    """

    def __init__(self) -> None:
        self.apps: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self._next_id = 1
        self.fail_keys: set[str] = set()
        self.fail_listing: Dict[str, Exception] = {}
        self.fail_get: Optional[Exception] = None

    def seed(self, app: str, fields: Mapping[str, Any]) -> str:
        """Crea un registro a partir de valores planos {campo: valor}."""
        return self._insert(app, {code: {"value": value} for code, value in fields.items()})

    def records(self, app: str) -> List[Dict[str, Any]]:
        return self.apps.get(app, [])

    def _insert(self, app: str, record: Mapping[str, Any]) -> str:
        record_id = str(self._next_id)
        self._next_id += 1
        stored = copy.deepcopy(dict(record))
        stored["$id"] = {"value": record_id}
        stored["$revision"] = {"value": "1"}
        self.apps.setdefault(app, []).append(stored)
        return record_id

    def get_records(self, *, app: str, query: str, fields: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        self.calls.append(("get", app, query))
        if self.fail_get is not None:
            raise self.fail_get
        conditions = [(code, _unescape(value)) for code, value in _CONDITION_RE.findall(query)]
        matches = [
            r for r in self.records(app)
            if all(str((r.get(code) or {}).get("value")) == value for code, value in conditions)
        ]
        return copy.deepcopy(sorted(matches, key=_id_order))

    def iter_all_records(
        self, *, app: str, query: str = "", fields: Optional[Sequence[str]] = None
    ) -> Iterable[Dict[str, Any]]:
        self.calls.append(("list", app, query))
        if app in self.fail_listing:
            raise self.fail_listing[app]
        return iter(copy.deepcopy(sorted(self.records(app), key=_id_order)))

    def add_record(self, *, app: str, record: Mapping[str, Any]) -> str:
        self.calls.append(("add", app, record))
        self._maybe_fail(record)
        return self._insert(app, record)

    def update_record(self, *, app: str, record_id: str, record: Mapping[str, Any]) -> Optional[str]:
        self.calls.append(("update", app, record_id, record))
        self._maybe_fail(record)
        for stored in self.records(app):
            if stored["$id"]["value"] == record_id:
                stored.update(copy.deepcopy(dict(record)))
                revision = str(int(stored["$revision"]["value"]) + 1)
                stored["$revision"] = {"value": revision}
                return revision
        raise KintoneApiError(f"record {record_id} not found", status_code=404, body="{}")

    def _maybe_fail(self, record: Mapping[str, Any]) -> None:
        key = (record.get("KEY") or {}).get("value")
        if key in self.fail_keys:
            raise KintoneApiError("invalid field value", status_code=400, body='{"code":"CB_VA01"}')

    def writes(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("add", "update")]


class FakeScheduleRepository:
    """Repositorio de origen con respuestas predefinidas."""

    def __init__(
        self,
        *,
        rows: Optional[List[Dict[str, Any]]] = None,
        crew: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        heartbeat: Optional[QueryResult] = None,
        rows_error: Optional[Exception] = None,
        crew_error: Optional[Exception] = None,
    ) -> None:
        self.rows = rows or []
        self.crew = crew or {}
        self.heartbeat = heartbeat if heartbeat is not None else QueryResult(rows=[{"cnt": 1}], rowcount=1)
        self.rows_error = rows_error
        self.crew_error = crew_error
        self.calls: List[tuple] = []

    def _rows(self) -> QueryResult:
        if self.rows_error is not None:
            return QueryResult.failed(self.rows_error)
        return QueryResult(rows=list(self.rows), rowcount=len(self.rows))

    def count_recent_replications(self, window_minutes):
        self.calls.append(("heartbeat", window_minutes))
        return self.heartbeat

    def fetch_scheduled_for_day(self, day):
        self.calls.append(("today", day))
        return self._rows()

    def fetch_single(self, project_no, round_no):
        self.calls.append(("single", project_no, round_no))
        matches = [
            r for r in self.rows
            if str(r.get("project_no")) == str(project_no) and str(r.get("round_no")) == str(round_no)
        ]
        if self.rows_error is not None:
            return QueryResult.failed(self.rows_error)
        return QueryResult(rows=matches, rowcount=len(matches))

    def fetch_modified_between(self, start, end):
        self.calls.append(("range", start, end))
        return self._rows()

    def fetch_crew_assignments(self, project_no, round_no):
        self.calls.append(("crew", project_no, round_no))
        if self.crew_error is not None:
            return QueryResult.failed(self.crew_error)
        rows = self.crew.get(f"{project_no}_{round_no}", [])
        return QueryResult(rows=list(rows), rowcount=len(rows))


class FakeDatabase:
    """Registra las sentencias ejecutadas; `fail_when(sql, params)` simula errores de escritura."""

    def __init__(self, fail_when: Optional[Callable[[str, Mapping[str, Any]], bool]] = None) -> None:
        self.executed: List[tuple[str, Dict[str, Any]]] = []
        self._fail_when = fail_when

    def fetch_all(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        return QueryResult()

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        params = dict(params or {})
        if self._fail_when is not None and self._fail_when(sql, params):
            return QueryResult.failed(RuntimeError("constraint violation"))
        self.executed.append((sql, params))
        return QueryResult(rowcount=1)


def make_source_row(**overrides: Any) -> Dict[str, Any]:
    """Fila de origen con los alias de PROJECT_SELECT."""
    row: Dict[str, Any] = {
        "project_no": "123456789",
        "round_no": 1,
        "category": "新規",
        "media_name": "野立看板",
        "content": "設置",
        "media_type": "01",
        "sales_code": "S001",
        "sales_name": "山田",
        "prefecture_code": "27",
        "prefecture": "大阪府",
        "city": "大阪市",
        "location": "北区梅田1-1",
        "coordinates": "34.7025,135.4959",
        "media_structure": "2",
        "size_label": "H900×W1800",
        "area": 1.62,
        "tatami": 1,
        "board_bottom": 1500,
        "ground_level": 0,
        "pillar_diameter": "φ76.3",
        "pillar_count": 2,
        "scheduled_date": "2024-05-01",
        "start_planned_date": "2024-04-30",
        "work_date": None,
        "completion_date": None,
        "instructions": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def kintone_store() -> FakeKintoneStore:
    return FakeKintoneStore()


@pytest.fixture(autouse=True)
def cleanup_pass_locks():
    """Limpia los locks de pasada antes y despues de cada test."""
    SyncPassLock._locks.clear()
    yield
    SyncPassLock._locks.clear()
