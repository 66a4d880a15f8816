"""
Casos de uso del flujo forward (SQL Server -> kintone).

- run_today_pass: disparo programado, con compuerta de replicación
- patch_record: re-sincroniza un único (企画番号, 工事回数)
- recover_range: re-sincroniza lo modificado en un periodo de días
"""
from __future__ import annotations

import time
from datetime import date
from typing import Any, Callable, Optional

from loguru import logger

from sekou_sync.application.services.change_detector import ChangeDetector
from sekou_sync.application.services.record_extractor import RecordExtractor
from sekou_sync.application.services.upsert_executor import UpsertExecutor
from sekou_sync.domain.entities.sync_records import (
    BatchReport,
    PassStatus,
    SyncScope,
    UpsertOutcome,
    build_composite_key,
)
from sekou_sync.shared.exceptions.sync import InvalidSyncRequestException, SourceRecordNotFoundException
from sekou_sync.shared.utils.datetime_utils import DateTimeUtils


def _require_digits(name: str, value: Any) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise InvalidSyncRequestException(f"Falta el parámetro {name}", field=name)
    if not text.isdigit():
        raise InvalidSyncRequestException(f"{name} debe ser numérico: {text}", field=name, value=text)
    return text


class ForwardSyncUseCases:
    """
    Orquesta una pasada forward sobre colaboradores de una sola pasada.

    Los registros se procesan en secuencia: el orden de las escrituras en
    kintone es determinista y no hay carreras entre registros del lote.
    """

    def __init__(
        self,
        *,
        detector: ChangeDetector,
        extractor: RecordExtractor,
        executor: UpsertExecutor,
        deadline_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._detector = detector
        self._extractor = extractor
        self._executor = executor
        self._deadline_seconds = deadline_seconds
        self._clock = clock

    def run_today_pass(self) -> BatchReport:
        """Pasada programada: solo corre si la replicación trajo cambios recientes."""
        scope = SyncScope.today()
        if not self._detector.should_sync():
            logger.info("Sin replicación reciente; pasada omitida")
            return BatchReport(scope=scope.describe(), status=PassStatus.SKIPPED)
        return self._run_batch(scope)

    def patch_record(self, project_no: Any, round_no: Any) -> UpsertOutcome:
        """
        Re-sincroniza un único registro sin pasar por la compuerta.

        Raises:
            InvalidSyncRequestException: parámetros ausentes o no numéricos
            SourceRecordNotFoundException: la fila no existe o no es elegible
        """
        project = _require_digits("projectNo", project_no)
        round_ = _require_digits("sekoRecordNo", round_no)

        records = self._extractor.extract(SyncScope.single(project, round_))
        if not records:
            raise SourceRecordNotFoundException(
                f"No se encontró el registro {build_composite_key(project, round_)} en la base de origen"
            )
        outcome = self._executor.upsert(records[0])
        logger.info(f"Patch {outcome.key}: {outcome.status.value}")
        return outcome

    def recover_range(self, from_day: Any, to_day: Any) -> BatchReport:
        """
        Re-sincroniza todo lo modificado entre `from_day` y `to_day` (ambos inclusive).

        Raises:
            InvalidSyncRequestException: fechas ausentes, mal formadas o invertidas
        """
        start_day = self._parse_day("fromDate", from_day)
        end_day = self._parse_day("toDate", to_day)
        if end_day < start_day:
            raise InvalidSyncRequestException(
                f"fromDate ({start_day}) es posterior a toDate ({end_day})", field="fromDate", value=start_day
            )
        start, end = DateTimeUtils.day_window(start_day, end_day)
        return self._run_batch(SyncScope.range(start, end))

    @staticmethod
    def _parse_day(name: str, value: Any) -> date:
        if isinstance(value, date):
            return value
        if value is None or not str(value).strip():
            raise InvalidSyncRequestException(f"Falta el parámetro {name}", field=name)
        parsed = DateTimeUtils.parse_iso_date(str(value))
        if parsed is None:
            raise InvalidSyncRequestException(f"{name} debe tener formato YYYY-MM-DD", field=name, value=value)
        return parsed

    def _run_batch(self, scope: SyncScope) -> BatchReport:
        records = self._extractor.extract(scope)
        report = BatchReport(scope=scope.describe(), extracted=len(records))
        started = self._clock()

        for index, record in enumerate(records):
            if self._deadline_seconds is not None and self._clock() - started >= self._deadline_seconds:
                report.deferred_keys = [r.key for r in records[index:]]
                logger.warning(
                    f"Plazo de {self._deadline_seconds}s agotado en {scope.describe()}; "
                    f"{len(report.deferred_keys)} registro(s) diferidos a la próxima pasada"
                )
                break
            report.outcomes.append(self._executor.upsert(record))

        if report.failed_keys:
            logger.warning(f"Pasada {scope.describe()} con fallos: {', '.join(report.failed_keys)}")
        logger.success(f"Pasada {scope.describe()} completada: {report.summary()}")
        return report
