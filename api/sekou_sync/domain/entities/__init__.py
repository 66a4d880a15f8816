"""
Entidades del dominio.
"""
from sekou_sync.domain.entities.sync_records import (
    BatchReport,
    MemberRef,
    PassStatus,
    RemoteRecordHandle,
    ReverseDetailRow,
    ReverseHeaderRow,
    ReverseSyncReport,
    RosterEntry,
    ScopeKind,
    SourceProjectRecord,
    SyncScope,
    UpsertOutcome,
    UpsertStatus,
    build_composite_key,
    key_part,
)

__all__ = [
    "BatchReport",
    "MemberRef",
    "PassStatus",
    "RemoteRecordHandle",
    "ReverseDetailRow",
    "ReverseHeaderRow",
    "ReverseSyncReport",
    "RosterEntry",
    "ScopeKind",
    "SourceProjectRecord",
    "SyncScope",
    "UpsertOutcome",
    "UpsertStatus",
    "build_composite_key",
    "key_part",
]
