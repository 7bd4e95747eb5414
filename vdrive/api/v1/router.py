"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. Routes use
dependencies from vdrive.api.v1.dependencies.
"""

from fastapi import APIRouter

from vdrive.api.v1.endpoints import health, storage

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(storage.router, prefix="/storage", tags=["storage"])
