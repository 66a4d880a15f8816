"""
Lock de pasada por flujo ("forward" / "reverse").

- Dos disparos solapados del mismo flujo en el mismo proceso no deben
  procesar el mismo lote en paralelo.
- La adquisición es no bloqueante: el segundo disparo falla de inmediato
  con `SyncInProgressException` (HTTP 409) en lugar de esperar.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from loguru import logger

from sekou_sync.shared.exceptions.sync import SyncInProgressException


class SyncPassLock:
    """
    Gestor de locks por nombre de flujo.

    Usa `threading.Lock` porque las pasadas corren en threads
    (`asyncio.to_thread`) o en el CLI.
    """

    _locks: Dict[str, threading.Lock] = {}
    _meta_lock = threading.Lock()

    @classmethod
    def _get_or_create_lock(cls, flow: str) -> threading.Lock:
        with cls._meta_lock:
            lock = cls._locks.get(flow)
            if lock is None:
                lock = threading.Lock()
                cls._locks[flow] = lock
            return lock

    @classmethod
    @contextmanager
    def hold(cls, flow: str) -> Iterator[None]:
        """
        Retiene el lock del flujo durante el bloque.

        Raises:
            SyncInProgressException: si ya hay una pasada del flujo en curso
        """
        lock = cls._get_or_create_lock(flow)
        if not lock.acquire(blocking=False):
            logger.warning(f"Pasada '{flow}' ya en curso; se rechaza el disparo")
            raise SyncInProgressException(flow)
        try:
            logger.debug(f"Lock de pasada adquirido: {flow}")
            yield
        finally:
            lock.release()
            logger.debug(f"Lock de pasada liberado: {flow}")

    @classmethod
    def is_held(cls, flow: str) -> bool:
        with cls._meta_lock:
            lock = cls._locks.get(flow)
        return lock is not None and lock.locked()
