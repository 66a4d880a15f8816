"""
Excepciones de las pasadas de sincronización (SQL Server <-> kintone).
"""
from typing import Any, Optional

from sekou_sync.shared.exceptions.base import AppException


class SyncException(AppException):
    """Excepción base para errores de una pasada de sincronización."""

    def __init__(self, message: str, status_code: int = 500, error_code: str = "SYNC_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=error_code,
            details=details
        )


class DatabaseConnectionException(SyncException):
    """No se pudo establecer la conexión con la base de datos de origen."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Error: no se pudo conectar a la base de datos ({reason})",
            error_code="DATABASE_UNREACHABLE",
            details={"reason": reason}
        )


class RemoteStoreException(SyncException):
    """kintone no respondió a una operación fatal para la pasada (p.ej. listado completo)."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        super().__init__(
            message=f"Error: kintone no disponible ({reason})",
            error_code="REMOTE_UNAVAILABLE",
            details={"reason": reason, "remote_status": status_code}
        )


class SyncInProgressException(SyncException):
    """Ya hay una pasada del mismo flujo en curso en este proceso."""

    def __init__(self, flow: str):
        super().__init__(
            message=f"Ya hay una sincronización '{flow}' en curso. Reintente más tarde.",
            status_code=409,
            error_code="SYNC_IN_PROGRESS",
            details={"flow": flow}
        )


class InvalidSyncRequestException(SyncException):
    """Parámetros de /patch o /recover ausentes o inválidos."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        details = {"field": field, "value": str(value)} if field else None
        super().__init__(
            message=message,
            status_code=400,
            error_code="INVALID_SYNC_REQUEST",
            details=details
        )


class SourceRecordNotFoundException(SyncException):
    """El alcance pedido no tiene filas elegibles en la base de origen."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=404,
            error_code="SOURCE_RECORD_NOT_FOUND"
        )


class ConfigurationException(SyncException):
    """Configuración inválida (p.ej. nombre de tabla que no es un identificador SQL)."""

    def __init__(self, message: str, setting: str):
        super().__init__(
            message=message,
            error_code="INVALID_CONFIGURATION",
            details={"setting": setting}
        )
