"""
Router principal de la API v1.
Agrupa los disparos de sincronizacion y la consola de patch/recover.
"""
from fastapi import APIRouter

from sekou_sync.api.v1.endpoints import console, forward_sync, reverse_sync


# Las rutas se sirven en la raiz: el scheduler dispara `GET /`
api_router = APIRouter()

api_router.include_router(forward_sync.router)
api_router.include_router(reverse_sync.router)
api_router.include_router(console.router)
