"""
Repositorio de escritura del flujo inverso (kintone -> SQL Server).

MERGE atómico (match-update-else-insert en una sola sentencia) sobre:
- tabla cabecera (clave npidx)
- tabla detalle (clave ndidx, referencia npidx)

Cada MERGE se ejecuta en su propia transacción: un fallo en el detalle no
deshace la cabecera ya confirmada.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Sequence

from sekou_sync.application.interfaces.record_store import SqlDatabase
from sekou_sync.core.config import is_valid_sql_identifier
from sekou_sync.domain.entities.sync_records import ReverseDetailRow, ReverseHeaderRow
from sekou_sync.infrastructure.database.session import QueryResult
from sekou_sync.shared.exceptions.sync import ConfigurationException

HEADER_COLUMNS = ("npidx", "koujibi", "member", "shoninnsha", "shouninbi", "kessaisha", "kessaibi")

DETAIL_COLUMNS = (
    "ndidx",
    "npidx",
    "kikaku_no",
    "kikaku_seko_record_no",
    "keisu",
    "naiyo",
    "quant",
    "depth",
    "diam",
    "bubun",
    "hsakusei",
    "biko",
    "starttime",
    "finishtime",
)


def build_merge_sql(table: str, columns: Sequence[str], key: str, *, immutable: Sequence[str] = ()) -> str:
    """
    Construye un MERGE de SQL Server con parámetros `:columna`.

    - ON target.key = source.key
    - WHEN MATCHED: actualiza todas las columnas salvo la clave y `immutable`
    - WHEN NOT MATCHED: inserta la fila completa
    """
    if key not in columns:
        raise ValueError(f"Falta la clave '{key}' en las columnas del MERGE")

    placeholders = ", ".join(f":{c}" for c in columns)
    source_cols = ", ".join(columns)
    update_cols = [c for c in columns if c != key and c not in immutable]
    set_sql = ", ".join(f"{c} = source.{c}" for c in update_cols)
    insert_values = ", ".join(f"source.{c}" for c in columns)

    return (
        f"MERGE INTO {table} AS target\n"
        f"USING (VALUES ({placeholders})) AS source ({source_cols})\n"
        f"ON target.{key} = source.{key}\n"
        f"WHEN MATCHED THEN\n"
        f"  UPDATE SET {set_sql}\n"
        f"WHEN NOT MATCHED THEN\n"
        f"  INSERT ({source_cols})\n"
        f"  VALUES ({insert_values});"
    )


class ReverseSyncRepository:
    def __init__(self, database: SqlDatabase, *, header_table: str, detail_table: str) -> None:
        for setting, name in (("SQL_TABLE_BASE", header_table), ("SQL_TABLE_DETAIL", detail_table)):
            if not is_valid_sql_identifier(name):
                raise ConfigurationException(
                    f"{setting} no es un nombre de tabla válido: {name!r}", setting=setting
                )
        self._db = database
        self._header_sql = build_merge_sql(header_table, HEADER_COLUMNS, "npidx")
        # npidx del detalle queda fijado por la cabecera de origen
        self._detail_sql = build_merge_sql(detail_table, DETAIL_COLUMNS, "ndidx", immutable=("npidx",))

    @property
    def header_sql(self) -> str:
        return self._header_sql

    @property
    def detail_sql(self) -> str:
        return self._detail_sql

    def merge_header(self, row: ReverseHeaderRow) -> QueryResult:
        return self._db.execute(self._header_sql, _params(row, HEADER_COLUMNS))

    def merge_detail(self, row: ReverseDetailRow) -> QueryResult:
        return self._db.execute(self._detail_sql, _params(row, DETAIL_COLUMNS))


def _params(row: Any, columns: Sequence[str]) -> dict[str, Any]:
    values = asdict(row)
    return {c: values[c] for c in columns}
