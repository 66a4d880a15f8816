"""
Gestión de la conexión a SQL Server para una pasada de sincronización.

La conexión es un recurso explícito: se crea al empezar la pasada, se
inyecta a los repositorios y se libera en un bloque finally. No hay pool
global compartido entre requests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sekou_sync.shared.exceptions.sync import DatabaseConnectionException


class QueryError(RuntimeError):
    """Error de ejecución de una consulta (SQL mal formado, constraint, timeout)."""


@dataclass(frozen=True)
class QueryResult:
    """
    Resultado tipado de una consulta.

    Permite distinguir "no hay filas" de "la consulta falló": en ambos casos
    `rows` está vacío, pero solo en el segundo `error` está presente.
    """

    rows: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[QueryError] = None
    rowcount: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, error: Exception) -> "QueryResult":
        return cls(rows=[], error=QueryError(str(error)))


class Database:
    """
    Dueño del engine SQLAlchemy de una pasada.

    Uso:
        with Database(url) as db:
            result = db.fetch_all("SELECT 1 AS one")
    """

    def __init__(
        self,
        url: str,
        *,
        engine_factory: Callable[..., Engine] = create_engine,
        **engine_kwargs: Any,
    ) -> None:
        self._url = url
        self._engine_factory = engine_factory
        self._engine_kwargs = {"pool_pre_ping": True, "future": True, **engine_kwargs}
        self._engine: Optional[Engine] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "Database":
        """
        Crea el engine y verifica la conectividad con `SELECT 1`.

        Raises:
            DatabaseConnectionException: si la base no es alcanzable
        """
        if self._engine is not None:
            return self
        try:
            engine = self._engine_factory(self._url, **self._engine_kwargs)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"No se pudo conectar a la base de datos: {e}")
            raise DatabaseConnectionException(str(e).splitlines()[0]) from e
        self._engine = engine
        logger.info("Conexión a la base de datos establecida")
        return self

    def close(self) -> None:
        """Libera todas las conexiones del engine."""
        if self._engine is None:
            return
        try:
            self._engine.dispose()
            logger.info("Conexión a la base de datos cerrada")
        finally:
            self._engine = None

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def fetch_all(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """
        Ejecuta una consulta de lectura con parámetros enlazados.

        Los errores de consulta no se propagan: se devuelven en el resultado.
        """
        engine = self._require_engine()
        try:
            with engine.connect() as conn:
                result = conn.execute(text(sql), dict(params or {}))
                rows = [dict(row) for row in result.mappings().all()]
                return QueryResult(rows=rows, rowcount=len(rows))
        except SQLAlchemyError as e:
            logger.error(f"Error de consulta: {e}")
            return QueryResult.failed(e)

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """
        Ejecuta una sentencia de escritura en su propia transacción.

        Cada llamada hace commit de forma independiente.
        """
        engine = self._require_engine()
        try:
            with engine.begin() as conn:
                result = conn.execute(text(sql), dict(params or {}))
                return QueryResult(rowcount=result.rowcount or 0)
        except SQLAlchemyError as e:
            logger.error(f"Error de escritura: {e}")
            return QueryResult.failed(e)

    def _require_engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database no está abierta; llame a open() antes de consultar")
        return self._engine
