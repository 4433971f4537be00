"""API dependencies for dependency injection."""

from functools import lru_cache

from fastapi import Depends

from healthbridge.config import Settings, get_settings
from healthbridge.services.health import HealthService
from healthbridge.store.base import HealthStore
from healthbridge.store.unavailable import UnavailableHealthStore


@lru_cache
def get_health_store() -> HealthStore:
    """Process-wide store handle shared by every request.

    Returns:
        The configured store backend.
    """
    settings = get_settings()
    if settings.store_backend == "unavailable":
        return UnavailableHealthStore()

    from healthbridge.database import SessionLocal
    from healthbridge.store.sql import SqlHealthStore

    return SqlHealthStore(SessionLocal, read_only=settings.store_read_only)


async def get_health_service(
    store: HealthStore = Depends(get_health_store),
    settings: Settings = Depends(get_settings),
) -> HealthService:
    """Build a service over the shared store for one request."""
    return HealthService(store, settings=settings)
