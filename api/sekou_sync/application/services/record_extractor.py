"""
Extracción del conjunto de trabajo desde la base de origen.

Alcances soportados (ver `SyncScope`): today, single, range.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, List

from loguru import logger

from sekou_sync.domain.entities.sync_records import ScopeKind, SourceProjectRecord, SyncScope
from sekou_sync.infrastructure.database.session import QueryResult
from sekou_sync.infrastructure.repositories.schedule_repository import ScheduleRepository


class RecordExtractor:
    """
    Devuelve filas elegibles para sincronizar, una por (企画番号, 工事回数).

    Reglas:
    - 企画番号 por debajo del centinela de proyectos de prueba
    - 工事予定日 presente
    - 工事回数 presente (sin él la fila está a medio cargar)
    - Nunca lanza por errores de consulta: devuelve lista vacía y lo registra
    """

    def __init__(
        self,
        repository: ScheduleRepository,
        *,
        project_no_sentinel: int = 900000000,
        local_today: Callable[[], date],
    ) -> None:
        self._repository = repository
        self._sentinel = project_no_sentinel
        self._local_today = local_today

    def extract(self, scope: SyncScope) -> List[SourceProjectRecord]:
        result = self._query(scope)
        if not result.ok:
            logger.error(f"Extracción {scope.describe()} falló; se trata como 'nada que sincronizar': {result.error}")
            return []

        records: List[SourceProjectRecord] = []
        seen: set[str] = set()
        for row in result.rows:
            record = SourceProjectRecord.from_row(row)
            if not self._is_eligible(record):
                logger.debug(f"Fila descartada (no elegible): {row.get('project_no')}_{row.get('round_no')}")
                continue
            if record.key in seen:
                continue
            seen.add(record.key)
            records.append(record)

        logger.info(f"Extracción {scope.describe()}: {len(records)} registro(s) elegibles")
        return records

    def _query(self, scope: SyncScope) -> QueryResult:
        if scope.kind is ScopeKind.SINGLE:
            return self._repository.fetch_single(scope.project_no, scope.round_no)
        if scope.kind is ScopeKind.RANGE:
            return self._repository.fetch_modified_between(scope.start, scope.end)
        return self._repository.fetch_scheduled_for_day(self._local_today())

    def _is_eligible(self, record: SourceProjectRecord) -> bool:
        if record.round_no is None or str(record.round_no).strip() == "":
            return False
        if record.scheduled_date is None:
            return False
        try:
            return Decimal(str(record.project_no).strip()) < self._sentinel
        except InvalidOperation:
            return False
