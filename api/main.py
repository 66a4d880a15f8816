"""
Punto de entrada principal de la aplicación FastAPI.
Configura la aplicación, middlewares, rutas y eventos.
"""
from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse, RedirectResponse
from loguru import logger

from sekou_sync.core.config import settings
from sekou_sync.core.events import lifespan
from sekou_sync.api.v1.router import api_router
from sekou_sync.api.middlewares.error_handler import ErrorHandlerMiddleware
from sekou_sync.shared.exceptions.auth import LoginRequiredException
from sekou_sync.shared.exceptions.base import AppException


def create_application() -> FastAPI:
    """
    Factory para crear y configurar la aplicación FastAPI.

    Returns:
        FastAPI: Instancia configurada de la aplicación
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Sincronización de obras entre SQL Server y kintone",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware personalizado para manejo de errores
    application.add_middleware(ErrorHandlerMiddleware)

    application.include_router(api_router)

    @application.exception_handler(LoginRequiredException)
    async def login_required_handler(request: Request, exc: LoginRequiredException):
        return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)

    # Manejador global de excepciones personalizadas (texto plano)
    @application.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        logger.error(f"{exc.error_code} en {request.url.path}: {exc.message} {exc.details}")
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    # Health check endpoint
    @application.get("/health", tags=["Health"])
    async def health_check():
        """Endpoint para verificar el estado de la aplicación."""
        return {
            "status": "healthy",
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT
        }

    return application


# Crear instancia de la aplicación
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
