"""
Caso de uso del flujo inverso (kintone -> SQL Server).
"""
from __future__ import annotations

from typing import Optional, Sequence

from loguru import logger

from sekou_sync.application.interfaces.record_store import RemoteRecordStore
from sekou_sync.application.services.reverse_row_mapper import map_detail_row, map_header_row
from sekou_sync.domain.entities.sync_records import ReverseSyncReport
from sekou_sync.infrastructure.external.kintone.kintone_client import KintoneApiError
from sekou_sync.infrastructure.repositories.reverse_sync_repository import ReverseSyncRepository
from sekou_sync.shared.exceptions.sync import RemoteStoreException


class ReverseSyncUseCases:
    """
    Lista todos los registros de la app de 業務日報 y los fusiona en las
    tablas cabecera/detalle.

    Por registro: primero la cabecera; el detalle solo si la cabecera quedó
    confirmada. Un detalle fallido no revierte la cabecera (cada MERGE es su
    propia transacción) y la siguiente pasada lo reintenta.
    """

    def __init__(
        self,
        store: RemoteRecordStore,
        repository: ReverseSyncRepository,
        *,
        app_id: str,
        query: str = "",
        fields: Optional[Sequence[str]] = None,
    ) -> None:
        self._store = store
        self._repository = repository
        self._app_id = app_id
        self._query = query
        self._fields = fields

    def run_pass(self) -> ReverseSyncReport:
        """
        Raises:
            RemoteStoreException: si no se puede listar la app de kintone
        """
        try:
            records = list(self._store.iter_all_records(app=self._app_id, query=self._query, fields=self._fields))
        except KintoneApiError as e:
            logger.error(f"No se pudieron listar los registros de kintone (app {self._app_id}): {e}")
            raise RemoteStoreException(str(e), status_code=e.status_code) from e

        report = ReverseSyncReport(listed=len(records))
        logger.info(f"Registros de kintone a fusionar: {len(records)}")

        for record in records:
            rid = str((record.get("$id") or {}).get("value"))
            try:
                header = map_header_row(record)
                detail = map_detail_row(record)
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Registro {rid}: no se pudo convertir a filas SQL: {e}")
                report.failed_ids.append(rid)
                continue

            header_result = self._repository.merge_header(header)
            if not header_result.ok:
                logger.error(f"Registro {rid}: MERGE de cabecera fallido, se omite el detalle: {header_result.error}")
                report.failed_ids.append(rid)
                continue
            report.headers_merged += 1

            detail_result = self._repository.merge_detail(detail)
            if not detail_result.ok:
                logger.error(f"Registro {rid}: MERGE de detalle fallido (cabecera ya confirmada): {detail_result.error}")
                report.failed_ids.append(rid)
                continue
            report.details_merged += 1
            logger.debug(f"Registro {rid} fusionado en SQL")

        logger.success(f"Pasada inversa completada: {report.summary()}")
        return report
