"""
Tests unitarios para las pasadas forward (today / patch / recover).
"""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

import pytest

from conftest import FakeScheduleRepository, make_source_row
from sekou_sync.application.services.change_detector import ChangeDetector
from sekou_sync.application.services.key_reconciler import KeyReconciler
from sekou_sync.application.services.membership_resolver import MembershipResolver
from sekou_sync.application.services.record_extractor import RecordExtractor
from sekou_sync.application.services.upsert_executor import UpsertExecutor
from sekou_sync.application.use_cases.forward_sync_use_cases import ForwardSyncUseCases
from sekou_sync.domain.entities.sync_records import PassStatus, UpsertStatus
from sekou_sync.infrastructure.database.session import QueryResult
from sekou_sync.shared.exceptions.sync import InvalidSyncRequestException, SourceRecordNotFoundException

APP = "100"
ROSTER_APP = "39"


def _use_cases(
    store,
    rows: List[dict],
    *,
    heartbeat: Optional[QueryResult] = None,
    deadline_seconds: Optional[float] = None,
    clock=None,
) -> tuple[ForwardSyncUseCases, FakeScheduleRepository]:
    repository = FakeScheduleRepository(rows=rows, heartbeat=heartbeat)
    executor = UpsertExecutor(
        store,
        app_id=APP,
        reconciler=KeyReconciler(store, app_id=APP),
        membership=MembershipResolver(store, repository, roster_app_id=ROSTER_APP),
    )
    kwargs = {"clock": clock} if clock is not None else {}
    use_cases = ForwardSyncUseCases(
        detector=ChangeDetector(repository),
        extractor=RecordExtractor(repository, local_today=lambda: date(2024, 5, 1)),
        executor=executor,
        deadline_seconds=deadline_seconds,
        **kwargs,
    )
    return use_cases, repository


class TestRunTodayPass:
    def test_skipped_without_recent_replication(self, kintone_store) -> None:
        use_cases, repository = _use_cases(
            kintone_store, [make_source_row()], heartbeat=QueryResult(rows=[{"cnt": 0}])
        )

        report = use_cases.run_today_pass()

        assert report.status is PassStatus.SKIPPED
        assert kintone_store.writes() == []
        assert [c[0] for c in repository.calls] == ["heartbeat"]

    def test_syncs_all_eligible_rows(self, kintone_store) -> None:
        rows = [make_source_row(project_no="111111111"), make_source_row(project_no="222222222")]
        use_cases, _ = _use_cases(kintone_store, rows)

        report = use_cases.run_today_pass()

        assert report.status is PassStatus.COMPLETED
        assert report.extracted == 2
        assert report.created == 2
        assert len(kintone_store.records(APP)) == 2

    def test_one_failure_does_not_abort_batch(self, kintone_store) -> None:
        rows = [make_source_row(project_no=p) for p in ("111111111", "222222222", "333333333")]
        kintone_store.fail_keys.add("222222222_1")
        use_cases, _ = _use_cases(kintone_store, rows)

        report = use_cases.run_today_pass()

        assert report.failed_keys == ["222222222_1"]
        assert report.created == 2
        keys = sorted(r["KEY"]["value"] for r in kintone_store.records(APP))
        assert keys == ["111111111_1", "333333333_1"]

    def test_rerun_updates_instead_of_duplicating(self, kintone_store) -> None:
        use_cases, _ = _use_cases(kintone_store, [make_source_row()])

        use_cases.run_today_pass()
        report = use_cases.run_today_pass()

        assert report.updated == 1
        assert len(kintone_store.records(APP)) == 1

    def test_deadline_defers_remaining_records(self, kintone_store) -> None:
        rows = [make_source_row(project_no=p) for p in ("111111111", "222222222", "333333333")]
        ticks = iter([0.0, 0.0, 5.0, 11.0])
        use_cases, _ = _use_cases(kintone_store, rows, deadline_seconds=10, clock=lambda: next(ticks))

        report = use_cases.run_today_pass()

        assert report.created == 2
        assert report.deferred_keys == ["333333333_1"]


class TestPatchRecord:
    def test_patch_creates_single_record(self, kintone_store) -> None:
        rows = [make_source_row(round_no=1), make_source_row(round_no=2)]
        use_cases, _ = _use_cases(kintone_store, rows, heartbeat=QueryResult(rows=[{"cnt": 0}]))

        outcome = use_cases.patch_record("123456789", "2")

        assert outcome.status is UpsertStatus.CREATED
        assert [r["KEY"]["value"] for r in kintone_store.records(APP)] == ["123456789_2"]

    @pytest.mark.parametrize("project_no,round_no", [("", "1"), ("123", None), ("12;DROP", "1"), ("123", "1 OR 1=1")])
    def test_invalid_parameters_are_rejected(self, kintone_store, project_no, round_no) -> None:
        use_cases, repository = _use_cases(kintone_store, [make_source_row()])

        with pytest.raises(InvalidSyncRequestException):
            use_cases.patch_record(project_no, round_no)
        assert repository.calls == []

    def test_missing_row_raises_not_found(self, kintone_store) -> None:
        use_cases, _ = _use_cases(kintone_store, [])

        with pytest.raises(SourceRecordNotFoundException):
            use_cases.patch_record("123456789", "9")


class TestRecoverRange:
    def test_inclusive_day_range_becomes_half_open_window(self, kintone_store) -> None:
        rows = [make_source_row(project_no="111111111"), make_source_row(project_no="222222222")]
        use_cases, repository = _use_cases(kintone_store, rows)

        report = use_cases.recover_range("2024-01-01", "2024-01-07")

        assert report.created == 2
        assert repository.calls[0] == ("range", datetime(2024, 1, 1), datetime(2024, 1, 8))

    def test_single_day_range_is_allowed(self, kintone_store) -> None:
        use_cases, repository = _use_cases(kintone_store, [])

        report = use_cases.recover_range("2024-01-01", "2024-01-01")

        assert report.extracted == 0
        assert repository.calls[0] == ("range", datetime(2024, 1, 1), datetime(2024, 1, 2))

    @pytest.mark.parametrize("from_date,to_date", [(None, "2024-01-01"), ("2024-01-01", "01/07/2024"), ("2024-01-08", "2024-01-01")])
    def test_invalid_dates_are_rejected(self, kintone_store, from_date, to_date) -> None:
        use_cases, _ = _use_cases(kintone_store, [])

        with pytest.raises(InvalidSyncRequestException):
            use_cases.recover_range(from_date, to_date)
