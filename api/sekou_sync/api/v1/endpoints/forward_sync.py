"""
Disparo programado del flujo forward (SQL Server -> kintone).

Lo invoca un scheduler externo (cron / Cloud Scheduler) con `GET /`.
"""
import asyncio

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from loguru import logger

from sekou_sync.api.v1.dependencies.sync_deps import ForwardSyncFactory, get_forward_sync_factory
from sekou_sync.domain.entities.sync_records import BatchReport, PassStatus


router = APIRouter(tags=["Sync"])


def _run_today_pass(factory: ForwardSyncFactory) -> BatchReport:
    """Se ejecuta en un thread separado: todo el I/O de la pasada es sincrono."""
    with factory() as use_cases:
        return use_cases.run_today_pass()


@router.get(
    "/",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar las obras de hoy hacia kintone",
)
async def sync_today(factory: ForwardSyncFactory = Depends(get_forward_sync_factory)) -> PlainTextResponse:
    """
    Ejecuta la pasada del dia.

    - 200 si la pasada se omite (sin replicacion reciente) o termina,
      aunque algun registro individual haya fallado
    - 409 si ya hay una pasada forward en curso
    - 500 si la base de datos no es alcanzable
    """
    logger.info("Iniciando sincronizacion SQL -> kintone desde API")
    report = await asyncio.to_thread(_run_today_pass, factory)

    if report.status is PassStatus.SKIPPED:
        return PlainTextResponse("No hay datos replicados recientemente. Sincronización omitida.")

    message = f"Sincronización SQL -> kintone completada: {report.summary()}"
    if report.failed_keys:
        message += f"\nRegistros con error: {', '.join(report.failed_keys)}"
    if report.deferred_keys:
        message += f"\nRegistros diferidos: {', '.join(report.deferred_keys)}"
    return PlainTextResponse(message)
