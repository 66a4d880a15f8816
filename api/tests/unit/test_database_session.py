"""
Tests unitarios para la conexión por pasada y QueryResult.

Se usa SQLite en memoria: el dialecto es distinto a SQL Server pero el
contrato (open/close, errores tipados) es el mismo.
"""
from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from sekou_sync.infrastructure.database.session import Database
from sekou_sync.shared.exceptions.sync import DatabaseConnectionException


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.open()
    yield db
    db.close()


def test_fetch_all_returns_rows_as_dicts(database) -> None:
    database.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
    database.execute("INSERT INTO t (id, name) VALUES (:id, :name)", {"id": 1, "name": "a"})

    result = database.fetch_all("SELECT id, name FROM t WHERE id = :id", {"id": 1})

    assert result.ok
    assert result.rows == [{"id": 1, "name": "a"}]


def test_query_error_is_returned_not_raised(database) -> None:
    result = database.fetch_all("SELECT * FROM missing_table")

    assert not result.ok
    assert result.rows == []
    assert result.error is not None


def test_empty_result_is_distinct_from_failure(database) -> None:
    database.execute("CREATE TABLE t (id INTEGER)")

    result = database.fetch_all("SELECT id FROM t")

    assert result.ok
    assert result.rows == []


def test_execute_reports_rowcount(database) -> None:
    database.execute("CREATE TABLE t (id INTEGER)")

    result = database.execute("INSERT INTO t (id) VALUES (:id)", {"id": 5})

    assert result.ok
    assert result.rowcount == 1


def test_unreachable_database_raises_connection_exception() -> None:
    class _UnreachableEngine:
        def connect(self):
            raise OperationalError("SELECT 1", {}, Exception("Login timeout expired"))

    def failing_factory(url, **kwargs):
        return _UnreachableEngine()

    db = Database("mssql+pyodbc://u:p@nowhere/db", engine_factory=failing_factory)

    with pytest.raises(DatabaseConnectionException):
        db.open()
    assert not db.is_open


def test_context_manager_closes_engine() -> None:
    with Database("sqlite://") as db:
        assert db.is_open
    assert not db.is_open


def test_query_before_open_is_a_programming_error() -> None:
    with pytest.raises(RuntimeError):
        Database("sqlite://").fetch_all("SELECT 1")
