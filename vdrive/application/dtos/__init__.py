"""Application DTOs (no SDK dependency)."""

from vdrive.application.dtos.storage import (
    DownloadLink,
    FileEntry,
    FolderEntry,
    FolderListing,
    KeyOutcome,
    PathMutation,
    PresignedUpload,
    SearchHit,
    SearchResult,
    StorageStats,
)

__all__ = [
    "DownloadLink",
    "FileEntry",
    "FolderEntry",
    "FolderListing",
    "KeyOutcome",
    "PathMutation",
    "PresignedUpload",
    "SearchHit",
    "SearchResult",
    "StorageStats",
]
