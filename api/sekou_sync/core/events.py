"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI
from loguru import logger

from sekou_sync.core.config import settings
from sekou_sync.infrastructure.security.sync_pass_lock import SyncPassLock


def configure_logging() -> None:
    """Agrega el sink de archivo rotativo de loguru."""
    logger.add(
        settings.LOG_FILE,
        rotation="500 MB",
        retention="10 days",
        level=settings.LOG_LEVEL
    )


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicacion."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            configure_logging()

            # Validar configuracion critica
            _validate_config()

            logger.success("Aplicacion iniciada correctamente")
            _print_available_urls()

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """
    Reporta la configuracion critica ausente.
    No detiene el arranque: /health debe responder igual.
    """
    for name in settings.missing_settings():
        logger.warning(f"CONFIG: {name} no configurada - las pasadas que la usan fallaran")

    if settings.INSTANCE_CONNECTION_NAME:
        logger.info(f"Instancia de base de datos: {settings.INSTANCE_CONNECTION_NAME}")


def _print_available_urls() -> None:
    """Imprime las URLs disponibles de la aplicacion."""
    access_host = "localhost" if settings.HOST == "0.0.0.0" else settings.HOST
    base_url = f"http://{access_host}:{settings.PORT}"

    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info("<bold><green>URLS DISPONIBLES:</green></bold>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info(f"<cyan>  Sync hoy:    {base_url}/</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Sync inverso:{base_url}/reverse</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Consola:     {base_url}/login</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Health:      {base_url}/health</cyan>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Registra pasadas interrumpidas por el cierre."""
        logger.info("Cerrando aplicacion...")

        for flow in ("forward", "reverse"):
            if SyncPassLock.is_held(flow):
                logger.warning(f"Pasada '{flow}' en curso durante el cierre")

        logger.success("Aplicacion cerrada correctamente")

    return shutdown


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Ciclo de vida de la aplicacion: inicio antes del yield, cierre despues."""
    await startup_handler(app)()
    try:
        yield
    finally:
        await shutdown_handler(app)()
