"""
Disparo del flujo inverso (kintone -> SQL Server).
"""
import asyncio

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from loguru import logger

from sekou_sync.api.v1.dependencies.sync_deps import ReverseSyncFactory, get_reverse_sync_factory
from sekou_sync.domain.entities.sync_records import ReverseSyncReport


router = APIRouter(tags=["Sync"])


def _run_reverse_pass(factory: ReverseSyncFactory) -> ReverseSyncReport:
    with factory() as use_cases:
        return use_cases.run_pass()


@router.get(
    "/reverse",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Fusionar los registros de kintone en las tablas SQL",
)
async def sync_reverse(factory: ReverseSyncFactory = Depends(get_reverse_sync_factory)) -> PlainTextResponse:
    logger.info("Iniciando sincronizacion kintone -> SQL desde API")
    report = await asyncio.to_thread(_run_reverse_pass, factory)

    message = f"Sincronización kintone -> SQL completada: {report.summary()}"
    if report.failed_ids:
        message += f"\nRegistros con error: {', '.join(report.failed_ids)}"
    return PlainTextResponse(message)
