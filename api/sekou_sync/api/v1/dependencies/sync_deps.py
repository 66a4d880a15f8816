"""
Dependencias para construir los colaboradores de una pasada.

Cada pasada obtiene su propia conexión a la base de datos y sus propios
clientes de kintone; nada se comparte entre requests salvo el lock de flujo.
"""
from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Optional

from sekou_sync.application.services.change_detector import ChangeDetector
from sekou_sync.application.services.key_reconciler import KeyReconciler
from sekou_sync.application.services.membership_resolver import MembershipResolver
from sekou_sync.application.services.record_extractor import RecordExtractor
from sekou_sync.application.services.upsert_executor import UpsertExecutor
from sekou_sync.application.use_cases.forward_sync_use_cases import ForwardSyncUseCases
from sekou_sync.application.use_cases.reverse_sync_use_cases import ReverseSyncUseCases
from sekou_sync.core.config import Settings, settings as default_settings
from sekou_sync.infrastructure.database.session import Database
from sekou_sync.infrastructure.external.kintone.kintone_client import KintoneClient, KintoneCredentials
from sekou_sync.infrastructure.repositories.reverse_sync_repository import ReverseSyncRepository
from sekou_sync.infrastructure.repositories.schedule_repository import ScheduleRepository
from sekou_sync.infrastructure.security.passphrase_auth_service import PassphraseAuthService
from sekou_sync.infrastructure.security.sync_pass_lock import SyncPassLock
from sekou_sync.shared.utils.datetime_utils import DateTimeUtils

ForwardSyncFactory = Callable[[], ContextManager[ForwardSyncUseCases]]
ReverseSyncFactory = Callable[[], ContextManager[ReverseSyncUseCases]]


def build_database(config: Settings = default_settings) -> Database:
    return Database(config.effective_database_url)


def build_kintone_client(api_token: str, config: Settings = default_settings) -> KintoneClient:
    return KintoneClient(
        KintoneCredentials(domain=config.KINTONE_DOMAIN, api_token=api_token),
        timeout_s=config.KINTONE_TIMEOUT_S,
        max_retries=config.KINTONE_MAX_RETRIES,
    )


def build_forward_sync(database: Database, config: Settings = default_settings) -> ForwardSyncUseCases:
    """Compone el flujo forward sobre una base ya abierta."""
    repository = ScheduleRepository(database, project_no_sentinel=config.PROJECT_NO_SENTINEL)
    store = build_kintone_client(config.KINTONE_API_TOKEN, config)
    roster_store = build_kintone_client(config.SYAIN_API_TOKEN, config)
    tz_name = config.SYNC_TIMEZONE

    executor = UpsertExecutor(
        store,
        app_id=config.KINTONE_APP_ID,
        reconciler=KeyReconciler(store, app_id=config.KINTONE_APP_ID),
        membership=MembershipResolver(roster_store, repository, roster_app_id=config.SYAIN_APP_ID),
    )
    return ForwardSyncUseCases(
        detector=ChangeDetector(
            repository,
            window_minutes=config.REPLICA_WINDOW_MINUTES,
        ),
        extractor=RecordExtractor(
            repository,
            project_no_sentinel=config.PROJECT_NO_SENTINEL,
            local_today=lambda: DateTimeUtils.local_today(tz_name),
        ),
        executor=executor,
        deadline_seconds=config.SYNC_DEADLINE_SECONDS or None,
    )


def build_reverse_sync(database: Database, config: Settings = default_settings) -> ReverseSyncUseCases:
    """Compone el flujo inverso sobre una base ya abierta."""
    repository = ReverseSyncRepository(
        database,
        header_table=config.SQL_TABLE_BASE,
        detail_table=config.SQL_TABLE_DETAIL,
    )
    return ReverseSyncUseCases(
        build_kintone_client(config.reverse_api_token, config),
        repository,
        app_id=config.reverse_app_id,
    )


@contextmanager
def open_forward_sync(config: Settings = default_settings) -> Iterator[ForwardSyncUseCases]:
    """
    Lock del flujo -> conexión -> casos de uso. La conexión se libera
    siempre, también cuando la pasada falla.
    """
    with SyncPassLock.hold("forward"):
        database = build_database(config)
        try:
            database.open()
            yield build_forward_sync(database, config)
        finally:
            database.close()


@contextmanager
def open_reverse_sync(config: Settings = default_settings) -> Iterator[ReverseSyncUseCases]:
    with SyncPassLock.hold("reverse"):
        database = build_database(config)
        try:
            database.open()
            yield build_reverse_sync(database, config)
        finally:
            database.close()


def get_forward_sync_factory() -> ForwardSyncFactory:
    """
    Dependencia para obtener la fábrica de pasadas forward.

    Returns:
        ForwardSyncFactory: context manager que entrega ForwardSyncUseCases
    """
    return open_forward_sync


def get_reverse_sync_factory() -> ReverseSyncFactory:
    return open_reverse_sync


_auth_service: Optional[PassphraseAuthService] = None


def get_auth_service() -> PassphraseAuthService:
    """Servicio de passphrase (singleton de proceso)."""
    global _auth_service
    if _auth_service is None:
        _auth_service = PassphraseAuthService(default_settings.APP_SECRET_PASS)
    return _auth_service
