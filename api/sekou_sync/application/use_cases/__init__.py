"""
Casos de uso de la aplicacion.
"""
from .forward_sync_use_cases import ForwardSyncUseCases
from .reverse_sync_use_cases import ReverseSyncUseCases

__all__ = ["ForwardSyncUseCases", "ReverseSyncUseCases"]
