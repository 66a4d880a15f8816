"""
Acceso a SQL Server (base de origen y tablas del flujo inverso).
"""
from sekou_sync.infrastructure.database.session import Database, QueryError, QueryResult

__all__ = ["Database", "QueryError", "QueryResult"]
