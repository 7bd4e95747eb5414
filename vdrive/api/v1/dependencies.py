"""Presentation-layer dependency injection.

The storage facade is built once in the lifespan and stored on
app.state; routes depend on these functions, not on infrastructure.
"""

from fastapi import HTTPException, Request

from vdrive.application.use_cases.storage_facade import StorageFacade
from vdrive.core.config import get_settings
from vdrive.core.tenant_validation import is_valid_tenant_id_format


def get_tenant_id(request: Request) -> str:
    """Resolve tenant prefix from the (already authenticated) tenant header."""
    name = get_settings().tenant_header_name
    value = request.headers.get(name)
    if not value:
        raise HTTPException(
            status_code=400,
            detail=f"Missing required header: {name}",
        )
    if not is_valid_tenant_id_format(value):
        raise HTTPException(
            status_code=400,
            detail="Invalid tenant ID format (use alphanumeric, hyphen, underscore; max 64 characters)",
        )
    return value


def get_storage_facade(request: Request) -> StorageFacade:
    facade = getattr(request.app.state, "storage_facade", None)
    if facade is None:
        raise HTTPException(status_code=503, detail="Storage is not initialized")
    return facade
