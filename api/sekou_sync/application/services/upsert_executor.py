"""
Upsert idempotente de un registro de origen en la app de obras de kintone.
"""
from __future__ import annotations

from typing import Any, Dict, List

from loguru import logger

from sekou_sync.application.interfaces.record_store import RemoteRecordStore
from sekou_sync.application.services.field_mapper import map_to_remote_fields
from sekou_sync.application.services.key_reconciler import KeyReconciler
from sekou_sync.application.services.membership_resolver import MembershipResolver
from sekou_sync.domain.entities.sync_records import MemberRef, SourceProjectRecord, UpsertOutcome
from sekou_sync.infrastructure.external.kintone.kintone_client import KintoneApiError

KEY_FIELD = "KEY"
MEMBERS_FIELD = "メンバー"
HEADCOUNT_FIELD = "人数"


def build_payload(record: SourceProjectRecord, members: List[MemberRef]) -> Dict[str, Dict[str, Any]]:
    """Registro kintone completo: campos mapeados + KEY + cuadrilla."""
    payload = map_to_remote_fields(record)
    payload[KEY_FIELD] = {"value": record.key}
    payload[MEMBERS_FIELD] = {"value": [m.to_field_value() for m in members]}
    payload[HEADCOUNT_FIELD] = {"value": len(members)}
    return payload


class UpsertExecutor:
    """
    Crea o actualiza el registro de kintone correspondiente a una fila.

    Es la frontera de error por registro: cualquier excepción se registra con
    la clave compuesta y se devuelve como `UpsertOutcome` fallido, de modo que
    la pasada continúa con el siguiente registro.
    """

    def __init__(
        self,
        store: RemoteRecordStore,
        *,
        app_id: str,
        reconciler: KeyReconciler,
        membership: MembershipResolver,
    ) -> None:
        self._store = store
        self._app_id = app_id
        self._reconciler = reconciler
        self._membership = membership

    def upsert(self, record: SourceProjectRecord) -> UpsertOutcome:
        key = record.key
        try:
            members = self._membership.resolve_members(record.project_no, record.round_no)
            payload = build_payload(record, members)
            existing = self._reconciler.find_existing(record.project_no, record.round_no)

            if existing is None:
                record_id = self._store.add_record(app=self._app_id, record=payload)
                logger.info(f"[{key}] registro creado en kintone ($id={record_id}, miembros={len(members)})")
                return UpsertOutcome.created(key, record_id)

            self._store.update_record(app=self._app_id, record_id=existing.record_id, record=payload)
            logger.info(f"[{key}] registro actualizado en kintone ($id={existing.record_id}, miembros={len(members)})")
            return UpsertOutcome.updated(key, existing.record_id)

        except KintoneApiError as e:
            logger.error(f"[{key}] error de kintone (status={e.status_code}): {e} | body={e.body}")
            return UpsertOutcome.failed(key, str(e))
        except Exception as e:
            logger.exception(f"[{key}] error inesperado en upsert: {e}")
            return UpsertOutcome.failed(key, str(e))
