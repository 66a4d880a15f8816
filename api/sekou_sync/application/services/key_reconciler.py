"""
Reconciliación de identidad entre la fila de origen y el registro de kintone.

La búsqueda es por igualdad sobre 企画No y KIKAKU_SEKO_RECORD_NO, ambos
comparados como cadenas (kintone no tiene un campo entero para el 工事回数).
"""
from __future__ import annotations

from typing import Any, Optional

from loguru import logger

from sekou_sync.application.interfaces.record_store import RemoteRecordStore
from sekou_sync.domain.entities.sync_records import RemoteRecordHandle, build_composite_key, key_part
from sekou_sync.infrastructure.external.kintone.kintone_client import quote_query_value

PROJECT_FIELD = "企画No"
ROUND_FIELD = "KIKAKU_SEKO_RECORD_NO"


def build_match_query(project_no: Any, round_no: Any) -> str:
    """Query kintone del registro de un par (企画番号, 工事回数), el más antiguo primero."""
    return (
        f"{PROJECT_FIELD} = {quote_query_value(key_part(project_no))} "
        f"and {ROUND_FIELD} = {quote_query_value(key_part(round_no))} "
        f"order by $id asc"
    )


class KeyReconciler:
    def __init__(self, store: RemoteRecordStore, *, app_id: str) -> None:
        self._store = store
        self._app_id = app_id

    def find_existing(self, project_no: Any, round_no: Any) -> Optional[RemoteRecordHandle]:
        """
        Devuelve el registro que corresponde a la clave compuesta, o None.

        Más de una coincidencia es un error de reconciliación previo: se
        registra con todos los $id y se usa el de menor $id.
        Los errores de kintone se propagan al ejecutor de upsert.
        """
        records = self._store.get_records(
            app=self._app_id,
            query=build_match_query(project_no, round_no),
            fields=["$id", "$revision"],
        )
        if not records:
            return None

        if len(records) > 1:
            ids = [str(r.get("$id", {}).get("value")) for r in records]
            logger.warning(
                f"Clave {build_composite_key(project_no, round_no)} duplicada en kintone "
                f"({len(records)} registros: {', '.join(ids)}); se actualiza $id={ids[0]}"
            )

        first = records[0]
        return RemoteRecordHandle(
            record_id=str(first["$id"]["value"]),
            revision=(first.get("$revision") or {}).get("value"),
        )
