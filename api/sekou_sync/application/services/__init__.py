"""
Servicios de aplicacion.

Contiene la logica de la sincronizacion que no pertenece
a un caso de uso especifico.
"""
from sekou_sync.application.services.change_detector import ChangeDetector
from sekou_sync.application.services.record_extractor import RecordExtractor
from sekou_sync.application.services.field_mapper import map_to_remote_fields
from sekou_sync.application.services.key_reconciler import KeyReconciler
from sekou_sync.application.services.membership_resolver import MembershipResolver, Roster
from sekou_sync.application.services.upsert_executor import UpsertExecutor, build_payload
from sekou_sync.application.services.reverse_row_mapper import map_detail_row, map_header_row

__all__ = [
    # Flujo forward (SQL -> kintone)
    "ChangeDetector",
    "RecordExtractor",
    "map_to_remote_fields",
    "KeyReconciler",
    "MembershipResolver",
    "Roster",
    "UpsertExecutor",
    "build_payload",
    # Flujo inverso (kintone -> SQL)
    "map_header_row",
    "map_detail_row",
]
