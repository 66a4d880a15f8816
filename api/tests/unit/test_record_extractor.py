"""
Tests unitarios para la extracción de filas elegibles.
"""
from __future__ import annotations

from datetime import date, datetime

from conftest import FakeScheduleRepository, make_source_row
from sekou_sync.application.services.record_extractor import RecordExtractor
from sekou_sync.domain.entities.sync_records import SyncScope

TODAY = date(2024, 5, 1)


def _extractor(repository: FakeScheduleRepository) -> RecordExtractor:
    return RecordExtractor(repository, project_no_sentinel=900000000, local_today=lambda: TODAY)


def test_today_scope_queries_local_day() -> None:
    repository = FakeScheduleRepository(rows=[make_source_row()])

    records = _extractor(repository).extract(SyncScope.today())

    assert [r.key for r in records] == ["123456789_1"]
    assert repository.calls == [("today", TODAY)]


def test_ineligible_rows_are_dropped() -> None:
    rows = [
        make_source_row(project_no="900000001"),
        make_source_row(project_no="111111111", round_no=None),
        make_source_row(project_no="222222222", scheduled_date=None),
        make_source_row(project_no="not-a-number"),
        make_source_row(project_no="333333333"),
    ]

    records = _extractor(FakeScheduleRepository(rows=rows)).extract(SyncScope.today())

    assert [r.key for r in records] == ["333333333_1"]


def test_duplicate_keys_are_collapsed() -> None:
    rows = [make_source_row(location="A"), make_source_row(location="B")]

    records = _extractor(FakeScheduleRepository(rows=rows)).extract(SyncScope.today())

    assert len(records) == 1
    assert records[0].location == "A"


def test_single_scope() -> None:
    rows = [make_source_row(round_no=1), make_source_row(round_no=2)]
    repository = FakeScheduleRepository(rows=rows)

    records = _extractor(repository).extract(SyncScope.single("123456789", "2"))

    assert [r.key for r in records] == ["123456789_2"]


def test_range_scope_passes_window() -> None:
    repository = FakeScheduleRepository(rows=[make_source_row()])
    start, end = datetime(2024, 1, 1), datetime(2024, 1, 8)

    _extractor(repository).extract(SyncScope.range(start, end))

    assert repository.calls == [("range", start, end)]


def test_query_failure_returns_empty() -> None:
    repository = FakeScheduleRepository(rows=[make_source_row()], rows_error=RuntimeError("syntax"))

    assert _extractor(repository).extract(SyncScope.today()) == []
