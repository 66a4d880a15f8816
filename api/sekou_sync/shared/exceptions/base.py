"""
Excepción base para todas las excepciones del servicio de sincronización.
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Excepción base de la aplicación.

    Los handlers de FastAPI la convierten en una respuesta de texto plano
    con `status_code`; `error_code` y `details` quedan para el log.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje legible (se devuelve tal cual en la respuesta)
            status_code: Código de estado HTTP
            error_code: Código de error para logs
            details: Contexto adicional (clave compuesta, tabla, etc.)
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)
