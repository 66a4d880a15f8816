"""
Tests unitarios para las sentencias T-SQL de la base de origen.
"""
from __future__ import annotations

import re

from sekou_sync.infrastructure.database import queries


def _compact(sql: str) -> str:
    return re.sub(r"\s+", " ", sql)


def test_heartbeat_window_is_relative_to_server_clock() -> None:
    sql = _compact(queries.REPLICATION_HEARTBEAT)

    assert "S.ReplicaDay >= DATEADD(minute, -:window_minutes, GETDATE())" in sql
    assert ":cutoff" not in sql


def test_size_label_skips_faces_equal_to_face_one() -> None:
    sql = _compact(queries.PROJECT_SELECT)

    assert "F1.MEN_CD = 1" in sql
    assert (
        "WHEN BM.MEN_CD <> 1 AND BM.KEIYAKU_SIZE_HEIGHT = F1.KEIYAKU_SIZE_HEIGHT "
        "AND BM.KEIYAKU_SIZE_WIDTH = F1.KEIYAKU_SIZE_WIDTH THEN NULL"
    ) in sql


def test_project_select_has_unique_aliases() -> None:
    aliases = re.findall(r"\bAS (\w+),?\n", queries.PROJECT_SELECT.split("FROM SekouSiji.dbo.TKIKAKU")[0])

    assert len(aliases) == len(set(aliases))
