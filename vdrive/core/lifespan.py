"""Application lifespan: startup and shutdown.

Single place for wiring infrastructure (object store, cache, storage
facade) onto app.state. No business logic here.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from vdrive.application.use_cases.storage_facade import StorageFacade
from vdrive.core.config import get_settings
from vdrive.infrastructure.cache import create_cache_store
from vdrive.infrastructure.external.storage.factory import StorageFactory

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: object store, cache (Redis connects here), facade.
    Shutdown: cache disconnect when the backend supports it.
    """
    settings = get_settings()

    # ---- Startup ----
    store = StorageFactory.create_object_store(settings)
    cache = create_cache_store(settings)
    if hasattr(cache, "connect"):
        await cache.connect()
    app.state.object_store = store
    app.state.cache = cache
    app.state.storage_facade = StorageFacade(store, cache=cache, settings=settings)
    logger.info(
        "Storage ready (store=%s, cache=%s)",
        settings.storage_backend,
        settings.cache_backend,
    )

    yield

    # ---- Shutdown ----
    cache = getattr(app.state, "cache", None)
    if cache is not None and hasattr(cache, "disconnect"):
        await cache.disconnect()
        logger.info("Cache disconnected")
    app.state.storage_facade = None
