"""Storage API: thin routes delegating to StorageFacade.

Facade results are unwrapped here; an Err re-raises its VDriveException,
which the registered handler maps to the HTTP status for its error_code.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from vdrive.api.v1.dependencies import get_storage_facade, get_tenant_id
from vdrive.application.use_cases.storage_facade import StorageFacade
from vdrive.schemas.storage import (
    FolderCreate,
    FolderItem,
    FolderListingResponse,
    PathMutationResponse,
    PathRename,
    PresignedUrlResponse,
    SearchResponse,
    StorageStatsResponse,
    UploadPresignRequest,
)

router = APIRouter()

TenantId = Annotated[str, Depends(get_tenant_id)]
Facade = Annotated[StorageFacade, Depends(get_storage_facade)]


@router.post("/folders", response_model=FolderItem, status_code=201)
async def create_folder(body: FolderCreate, tenant_id: TenantId, facade: Facade):
    """Create a folder marker under parent_path."""
    result = await facade.create_folder(tenant_id, body.name, body.parent_path)
    return FolderItem.model_validate(result.unwrap())


@router.get("/folders", response_model=FolderListingResponse)
async def list_folder(
    tenant_id: TenantId,
    facade: Facade,
    path: str = Query(default="", max_length=4096),
):
    """List direct children of a folder ('' for the root)."""
    result = await facade.list_folder_contents(tenant_id, path)
    return FolderListingResponse.model_validate(result.unwrap())


@router.post("/uploads/presign", response_model=PresignedUrlResponse)
async def presign_upload(body: UploadPresignRequest, tenant_id: TenantId, facade: Facade):
    """Issue a presigned PUT URL; the client uploads directly to the store."""
    result = await facade.get_upload_presigned_url(
        tenant_id,
        body.file_name,
        body.content_type,
        body.file_size,
        body.dest_path,
    )
    return PresignedUrlResponse.model_validate(result.unwrap())


@router.get("/downloads", response_model=PresignedUrlResponse)
async def download_url(
    tenant_id: TenantId,
    facade: Facade,
    path: str = Query(..., min_length=1, max_length=4096),
):
    """Issue a presigned GET URL for an existing file."""
    result = await facade.get_download_url(tenant_id, path)
    return PresignedUrlResponse.model_validate(result.unwrap())


@router.get("/search", response_model=SearchResponse)
async def search(
    tenant_id: TenantId,
    facade: Facade,
    q: str = Query(..., max_length=255),
    max_results: int | None = Query(default=None),
    mime_type: str | None = Query(default=None, max_length=255),
):
    """Case-insensitive name search over files and folders."""
    result = await facade.search_files(tenant_id, q, max_results, mime_type)
    return SearchResponse.model_validate(result.unwrap())


@router.delete("/paths", response_model=PathMutationResponse)
async def delete_path(
    tenant_id: TenantId,
    facade: Facade,
    path: str = Query(..., min_length=1, max_length=4096),
):
    """Delete a file, or a folder and everything below it."""
    result = await facade.delete_or_rename_path(tenant_id, path)
    return PathMutationResponse.model_validate(result.unwrap())


@router.patch("/paths", response_model=PathMutationResponse)
async def rename_path(body: PathRename, tenant_id: TenantId, facade: Facade):
    """Rename or move a file or folder."""
    result = await facade.delete_or_rename_path(tenant_id, body.path, body.new_path)
    return PathMutationResponse.model_validate(result.unwrap())


@router.get("/stats", response_model=StorageStatsResponse)
async def storage_stats(tenant_id: TenantId, facade: Facade):
    """File/folder counts and sizes per extension for the tenant."""
    result = await facade.get_storage_stats(tenant_id)
    return StorageStatsResponse.model_validate(result.unwrap())
