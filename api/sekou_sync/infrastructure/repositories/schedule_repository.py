"""
Repositorio de lectura sobre la base de origen (SekouSiji).

Solo ejecuta SQL con parámetros enlazados y devuelve `QueryResult`;
la política (qué hacer si falla) pertenece a los servicios.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sekou_sync.application.interfaces.record_store import SqlDatabase
from sekou_sync.infrastructure.database import queries
from sekou_sync.infrastructure.database.session import QueryResult


class ScheduleRepository:
    """
    Consultas de planificación de obras, cuadrillas y heartbeat de replicación.
    """

    def __init__(self, database: SqlDatabase, *, project_no_sentinel: int = 900000000) -> None:
        self._db = database
        self._sentinel = project_no_sentinel

    def count_recent_replications(self, window_minutes: int) -> QueryResult:
        return self._db.fetch_all(queries.REPLICATION_HEARTBEAT, {"window_minutes": int(window_minutes)})

    def fetch_scheduled_for_day(self, day: date) -> QueryResult:
        return self._db.fetch_all(queries.SCOPE_TODAY, {"sentinel": self._sentinel, "today": day})

    def fetch_single(self, project_no: Any, round_no: Any) -> QueryResult:
        return self._db.fetch_all(
            queries.SCOPE_SINGLE,
            {"sentinel": self._sentinel, "project_no": str(project_no), "round_no": str(round_no)},
        )

    def fetch_modified_between(self, start: datetime, end: datetime) -> QueryResult:
        return self._db.fetch_all(
            queries.SCOPE_RANGE,
            {"sentinel": self._sentinel, "range_start": start, "range_end": end},
        )

    def fetch_crew_assignments(self, project_no: Any, round_no: Any) -> QueryResult:
        return self._db.fetch_all(
            queries.CREW_ASSIGNMENTS,
            {"project_no": str(project_no), "round_no": str(round_no)},
        )
