"""Storage API schemas (request bodies and responses)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FolderCreate(BaseModel):
    """Request body for POST /storage/folders."""

    name: str = Field(..., min_length=1, max_length=255)
    parent_path: str = Field(default="", max_length=4096)


class UploadPresignRequest(BaseModel):
    """Request body for POST /storage/uploads/presign."""

    file_name: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., description="Declared size in bytes")
    dest_path: str = Field(default="", max_length=4096)


class PathRename(BaseModel):
    """Request body for PATCH /storage/paths."""

    path: str = Field(..., min_length=1, max_length=4096)
    new_path: str = Field(..., min_length=1, max_length=4096)


class FolderItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    name: str
    path: str


class FileItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    name: str
    path: str
    size: int
    mime_type: str
    last_modified: datetime | None = None


class Breadcrumb(BaseModel):
    name: str
    path: str


class FolderListingResponse(BaseModel):
    """Direct children of a folder."""

    model_config = ConfigDict(from_attributes=True)

    path: str
    folders: list[FolderItem]
    files: list[FileItem]
    breadcrumbs: list[Breadcrumb]
    total_size: int


class PresignedUrlResponse(BaseModel):
    """Presigned upload or download URL."""

    model_config = ConfigDict(from_attributes=True)

    url: str
    key: str
    expires_in: int


class SearchHitItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    name: str
    path: str
    is_folder: bool
    size: int = 0
    mime_type: str | None = None
    last_modified: datetime | None = None


class SearchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    files: list[SearchHitItem]
    total_results: int
    query: str


class KeyOutcomeItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    source_key: str
    dest_key: str | None = None
    ok: bool
    error: str | None = None


class PathMutationResponse(BaseModel):
    """Report of a delete or rename."""

    model_config = ConfigDict(from_attributes=True)

    action: str
    path: str
    new_path: str | None = None
    is_folder: bool
    outcomes: list[KeyOutcomeItem]


class FileTypeStat(BaseModel):
    count: int
    size: int


class StorageStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_files: int
    total_folders: int
    total_size: int
    file_type_stats: dict[str, FileTypeStat]
