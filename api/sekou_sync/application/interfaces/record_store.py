"""
Contratos de los colaboradores externos de la sincronización.

Este contrato existe para:
- Que los servicios no dependan de requests/SQLAlchemy directamente.
- Facilitar tests unitarios con fakes en memoria.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from sekou_sync.infrastructure.database.session import QueryResult


KintoneRecord = dict[str, Any]


class RemoteRecordStore(Protocol):
    """
    Primitivas del almacén remoto (una app de kintone).

    Entrega al-menos-una-vez y sin transacciones entre llamadas.
    """

    def get_records(
        self,
        *,
        app: str,
        query: str,
        fields: Optional[Sequence[str]] = None,
    ) -> list[KintoneRecord]:
        """Una página de registros que cumplen `query` (incluye order/limit)."""

    def iter_all_records(
        self,
        *,
        app: str,
        query: str = "",
        fields: Optional[Sequence[str]] = None,
    ) -> Iterable[KintoneRecord]:
        """Todos los registros que cumplen `query`, paginando internamente."""

    def add_record(self, *, app: str, record: Mapping[str, Any]) -> str:
        """Crea un registro y devuelve su $id."""

    def update_record(self, *, app: str, record_id: str, record: Mapping[str, Any]) -> Optional[str]:
        """Actualiza un registro por $id y devuelve la nueva revisión."""


class SqlDatabase(Protocol):
    """Acceso de lectura/escritura a SQL Server con resultado tipado."""

    def fetch_all(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """Filas de la consulta; nunca lanza por errores de consulta."""

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """Ejecuta y hace commit; nunca lanza por errores de consulta."""
