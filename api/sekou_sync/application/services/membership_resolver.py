"""
Resolución de la cuadrilla asignada a una obra a usuarios de kintone.

La app 従業員マスタ mapea 社員CD (código de empleado de la base de origen)
a ユーザーID (código de usuario kintone).
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger

from sekou_sync.application.interfaces.record_store import RemoteRecordStore
from sekou_sync.domain.entities.sync_records import MemberRef, RosterEntry, build_composite_key
from sekou_sync.infrastructure.repositories.schedule_repository import ScheduleRepository

ROSTER_USER_FIELD = "ユーザーID"
ROSTER_NAME_FIELD = "社員名"
ROSTER_CODE_FIELD = "社員CD"


def _field_value(record: Dict[str, Any], code: str) -> str:
    value = (record.get(code) or {}).get("value")
    return "" if value is None else str(value).strip()


class Roster:
    """Índice 社員CD -> RosterEntry."""

    def __init__(self, entries: List[RosterEntry]) -> None:
        self._by_code: Dict[str, RosterEntry] = {}
        for entry in entries:
            if entry.employee_code and entry.employee_code not in self._by_code:
                self._by_code[entry.employee_code] = entry

    def __len__(self) -> int:
        return len(self._by_code)

    def lookup(self, employee_code: str) -> Optional[RosterEntry]:
        return self._by_code.get(employee_code)

    @classmethod
    def load(cls, store: RemoteRecordStore, app_id: str) -> "Roster":
        records = store.iter_all_records(
            app=app_id,
            fields=[ROSTER_USER_FIELD, ROSTER_NAME_FIELD, ROSTER_CODE_FIELD],
        )
        entries = [
            RosterEntry(
                employee_code=_field_value(r, ROSTER_CODE_FIELD),
                user_id=_field_value(r, ROSTER_USER_FIELD),
                name=_field_value(r, ROSTER_NAME_FIELD),
            )
            for r in records
        ]
        return cls(entries)


class MembershipResolver:
    """
    Traduce las asignaciones de cuadrilla a referencias de usuario kintone.

    El maestro de empleados se descarga una sola vez por pasada y se cachea
    en la instancia (una instancia por pasada). Una descarga fallida no se
    cachea: el siguiente registro vuelve a intentarla.
    """

    def __init__(
        self,
        store: RemoteRecordStore,
        repository: ScheduleRepository,
        *,
        roster_app_id: str,
    ) -> None:
        self._store = store
        self._repository = repository
        self._roster_app_id = roster_app_id
        self._roster: Optional[Roster] = None

    def _get_roster(self) -> Optional[Roster]:
        if self._roster is None:
            try:
                self._roster = Roster.load(self._store, self._roster_app_id)
                logger.info(f"Maestro de empleados cargado: {len(self._roster)} empleados")
            except Exception as e:
                logger.error(f"No se pudo cargar el maestro de empleados (app {self._roster_app_id}): {e}")
                return None
        return self._roster

    def resolve_members(self, project_no: Any, round_no: Any) -> List[MemberRef]:
        """
        Miembros de la cuadrilla de (企画番号, 工事回数) como usuarios kintone.

        Nunca lanza: un fallo de consulta o del maestro devuelve lista vacía.
        Un código sin correspondencia en el maestro se emite tal cual.
        """
        key = build_composite_key(project_no, round_no)
        roster = self._get_roster()
        if roster is None:
            return []

        result = self._repository.fetch_crew_assignments(project_no, round_no)
        if not result.ok:
            logger.error(f"Error consultando la cuadrilla de {key}: {result.error}")
            return []

        members: List[MemberRef] = []
        seen: set[str] = set()
        for row in result.rows:
            raw_code = row.get("employee_code")
            code = "" if raw_code is None else str(raw_code).strip()
            if not code:
                continue
            entry = roster.lookup(code)
            if entry is not None and entry.user_id:
                user_code = entry.user_id
            else:
                logger.warning(f"Empleado {code} de {key} no existe en el maestro; se usa el código sin mapear")
                user_code = code
            if user_code not in seen:
                seen.add(user_code)
                members.append(MemberRef(code=user_code))
        return members
