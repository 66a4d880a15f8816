"""
Tests unitarios para la resolución de cuadrillas a usuarios kintone.
"""
from __future__ import annotations

from conftest import FakeScheduleRepository
from sekou_sync.application.services.membership_resolver import MembershipResolver, Roster
from sekou_sync.domain.entities.sync_records import MemberRef
from sekou_sync.infrastructure.external.kintone.kintone_client import KintoneApiError

ROSTER_APP = "39"


def _seed_roster(store) -> None:
    store.seed(ROSTER_APP, {"社員CD": "E001", "ユーザーID": "yamada", "社員名": "山田"})
    store.seed(ROSTER_APP, {"社員CD": "E002", "ユーザーID": "suzuki", "社員名": "鈴木"})


def _resolver(store, crew) -> MembershipResolver:
    repository = FakeScheduleRepository(crew=crew)
    return MembershipResolver(store, repository, roster_app_id=ROSTER_APP)


def test_codes_are_mapped_through_roster(kintone_store) -> None:
    _seed_roster(kintone_store)
    resolver = _resolver(kintone_store, {"123_1": [{"employee_code": "E001"}, {"employee_code": "E002"}]})

    assert resolver.resolve_members("123", 1) == [MemberRef("yamada"), MemberRef("suzuki")]


def test_unmapped_code_is_emitted_raw(kintone_store) -> None:
    _seed_roster(kintone_store)
    resolver = _resolver(kintone_store, {"123_1": [{"employee_code": "E999"}]})

    assert resolver.resolve_members("123", 1) == [MemberRef("E999")]


def test_empty_codes_and_duplicates_are_skipped(kintone_store) -> None:
    _seed_roster(kintone_store)
    crew = {"123_1": [{"employee_code": None}, {"employee_code": " "}, {"employee_code": "E001"}, {"employee_code": "E001"}]}

    assert _resolver(kintone_store, crew).resolve_members("123", 1) == [MemberRef("yamada")]


def test_no_crew_returns_empty_list(kintone_store) -> None:
    _seed_roster(kintone_store)

    assert _resolver(kintone_store, {}).resolve_members("123", 1) == []


def test_roster_is_fetched_once_per_resolver(kintone_store) -> None:
    _seed_roster(kintone_store)
    resolver = _resolver(kintone_store, {"123_1": [{"employee_code": "E001"}], "123_2": [{"employee_code": "E002"}]})

    resolver.resolve_members("123", 1)
    resolver.resolve_members("123", 2)

    listings = [c for c in kintone_store.calls if c[0] == "list"]
    assert len(listings) == 1


def test_roster_failure_returns_empty_and_is_not_cached(kintone_store) -> None:
    kintone_store.fail_listing[ROSTER_APP] = KintoneApiError("down", status_code=503)
    resolver = _resolver(kintone_store, {"123_1": [{"employee_code": "E001"}]})

    assert resolver.resolve_members("123", 1) == []

    del kintone_store.fail_listing[ROSTER_APP]
    _seed_roster(kintone_store)
    assert resolver.resolve_members("123", 1) == [MemberRef("yamada")]


def test_crew_query_failure_returns_empty(kintone_store) -> None:
    _seed_roster(kintone_store)
    repository = FakeScheduleRepository(crew_error=RuntimeError("timeout"))
    resolver = MembershipResolver(kintone_store, repository, roster_app_id=ROSTER_APP)

    assert resolver.resolve_members("123", 1) == []


def test_roster_keeps_first_entry_per_code(kintone_store) -> None:
    kintone_store.seed(ROSTER_APP, {"社員CD": "E001", "ユーザーID": "first"})
    kintone_store.seed(ROSTER_APP, {"社員CD": "E001", "ユーザーID": "second"})

    roster = Roster.load(kintone_store, ROSTER_APP)

    assert len(roster) == 1
    assert roster.lookup("E001").user_id == "first"
