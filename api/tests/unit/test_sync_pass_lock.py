"""
Tests unitarios para el lock de pasada por flujo.
"""
from __future__ import annotations

import threading

import pytest

from sekou_sync.infrastructure.security.sync_pass_lock import SyncPassLock
from sekou_sync.shared.exceptions.sync import SyncInProgressException


def test_hold_acquires_and_releases() -> None:
    with SyncPassLock.hold("forward"):
        assert SyncPassLock.is_held("forward")

    assert not SyncPassLock.is_held("forward")


def test_second_trigger_is_rejected() -> None:
    with SyncPassLock.hold("forward"):
        with pytest.raises(SyncInProgressException) as exc_info:
            with SyncPassLock.hold("forward"):
                pass

    assert exc_info.value.status_code == 409


def test_flows_are_independent() -> None:
    with SyncPassLock.hold("forward"):
        with SyncPassLock.hold("reverse"):
            assert SyncPassLock.is_held("reverse")


def test_lock_is_released_on_error() -> None:
    with pytest.raises(ValueError):
        with SyncPassLock.hold("forward"):
            raise ValueError("boom")

    with SyncPassLock.hold("forward"):
        pass


def test_rejection_across_threads() -> None:
    entered = threading.Event()
    release = threading.Event()
    errors = []

    def holder() -> None:
        with SyncPassLock.hold("reverse"):
            entered.set()
            release.wait(timeout=5)

    thread = threading.Thread(target=holder)
    thread.start()
    entered.wait(timeout=5)
    try:
        with SyncPassLock.hold("reverse"):
            pass
    except SyncInProgressException as e:
        errors.append(e)
    finally:
        release.set()
        thread.join(timeout=5)

    assert len(errors) == 1
