"""
Middleware para manejo centralizado de errores.
"""
from fastapi import Request, status
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware para capturar y manejar errores de forma centralizada."""

    async def dispatch(self, request: Request, call_next):
        """
        Procesa la petición y captura errores no manejados.

        Args:
            request: Petición HTTP
            call_next: Siguiente middleware/handler

        Returns:
            Response: Respuesta HTTP (texto plano en caso de error)
        """
        try:
            response = await call_next(request)
            return response
        except Exception as exc:
            # Escapar llaves para evitar error de formato en loguru
            error_msg = str(exc).replace("{", "{{").replace("}", "}}")
            logger.opt(exception=exc).error(f"Error no manejado en {request.url.path}: {error_msg}")

            return PlainTextResponse(
                f"Error: {exc}",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
