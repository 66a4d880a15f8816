"""
Compuerta de la pasada forward: solo sincroniza si la replicación trajo cambios.

Es un control de costo, no de correctitud: si la consulta falla se asume
"sin datos" y la pasada se omite.

La ventana se evalúa en el servidor (GETDATE()): S_ReplicaDay se escribe
con el reloj de la base, no con la hora local de la app.
"""
from __future__ import annotations

from loguru import logger

from sekou_sync.infrastructure.repositories.schedule_repository import ScheduleRepository


class ChangeDetector:
    def __init__(self, repository: ScheduleRepository, *, window_minutes: int = 20) -> None:
        self._repository = repository
        self._window_minutes = window_minutes

    def should_sync(self) -> bool:
        """
        True si existe al menos una fila de S_ReplicaDay con reccnt > 0
        dentro de los últimos `window_minutes` del reloj del servidor.
        """
        result = self._repository.count_recent_replications(self._window_minutes)

        if not result.ok:
            logger.error(f"Heartbeat de replicación no disponible, se omite la pasada: {result.error}")
            return False
        if not result.rows:
            return False

        count = result.rows[0].get("cnt") or 0
        logger.info(f"Heartbeat de replicación: {count} fila(s) en los últimos {self._window_minutes} min")
        return count > 0
