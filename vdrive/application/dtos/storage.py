"""DTOs for the virtual folder view, presigned URLs, search and stats.

Read-models that the facade caches (FolderListing, SearchResult,
StorageStats) round-trip through plain JSON-compatible dicts so every
cache backend can hold them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from vdrive.infrastructure.external.storage.protocol import ObjectStat
from vdrive.shared.utils import from_iso, to_iso


@dataclass(frozen=True)
class FileEntry:
    """File in a folder listing (derived from list/head responses)."""

    key: str
    name: str
    path: str
    size: int
    mime_type: str
    last_modified: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "mime_type": self.mime_type,
            "last_modified": to_iso(self.last_modified),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileEntry:
        return cls(
            key=data["key"],
            name=data["name"],
            path=data["path"],
            size=int(data["size"]),
            mime_type=data["mime_type"],
            last_modified=from_iso(data.get("last_modified")),
        )


@dataclass(frozen=True)
class FolderEntry:
    """Folder: explicit marker or common prefix implied by child keys."""

    key: str
    name: str
    path: str

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "name": self.name, "path": self.path}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FolderEntry:
        return cls(key=data["key"], name=data["name"], path=data["path"])


@dataclass(frozen=True)
class FolderListing:
    """Direct children of a folder, sorted by name."""

    path: str
    folders: list[FolderEntry]
    files: list[FileEntry]
    breadcrumbs: list[dict[str, str]]
    total_size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "folders": [f.to_dict() for f in self.folders],
            "files": [f.to_dict() for f in self.files],
            "breadcrumbs": [dict(b) for b in self.breadcrumbs],
            "total_size": self.total_size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FolderListing:
        return cls(
            path=data["path"],
            folders=[FolderEntry.from_dict(f) for f in data["folders"]],
            files=[FileEntry.from_dict(f) for f in data["files"]],
            breadcrumbs=[dict(b) for b in data["breadcrumbs"]],
            total_size=int(data["total_size"]),
        )


@dataclass(frozen=True)
class SearchHit:
    """Single search hit: a file or a folder whose name matched."""

    key: str
    name: str
    path: str
    is_folder: bool
    size: int = 0
    mime_type: str | None = None
    last_modified: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "path": self.path,
            "is_folder": self.is_folder,
            "size": self.size,
            "mime_type": self.mime_type,
            "last_modified": to_iso(self.last_modified),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SearchHit:
        return cls(
            key=data["key"],
            name=data["name"],
            path=data["path"],
            is_folder=bool(data["is_folder"]),
            size=int(data.get("size") or 0),
            mime_type=data.get("mime_type"),
            last_modified=from_iso(data.get("last_modified")),
        )


@dataclass(frozen=True)
class SearchResult:
    """Search hits; total_results is the number returned, not bucket-wide."""

    files: list[SearchHit]
    total_results: int
    query: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": [h.to_dict() for h in self.files],
            "total_results": self.total_results,
            "query": self.query,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SearchResult:
        return cls(
            files=[SearchHit.from_dict(h) for h in data["files"]],
            total_results=int(data["total_results"]),
            query=data["query"],
        )


@dataclass(frozen=True)
class PresignedUpload:
    """Time-bound PUT URL; the client uploads the bytes directly."""

    url: str
    key: str
    expires_in: int


@dataclass(frozen=True)
class DownloadLink:
    """Time-bound GET URL with attachment disposition."""

    url: str
    key: str
    expires_in: int


@dataclass(frozen=True)
class KeyOutcome:
    """Result of one copy/delete inside a multi-key mutation."""

    source_key: str
    dest_key: str | None
    ok: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_key": self.source_key,
            "dest_key": self.dest_key,
            "ok": self.ok,
            "error": self.error,
        }


@dataclass(frozen=True)
class PathMutation:
    """Report of a delete or rename (every key touched, in order)."""

    action: Literal["delete", "rename"]
    path: str
    new_path: str | None
    is_folder: bool
    outcomes: list[KeyOutcome] = field(default_factory=list)

    @property
    def affected_keys(self) -> int:
        return len(self.outcomes)


@dataclass(frozen=True)
class StorageStats:
    """Totals for a tenant plus per-extension {count, size} breakdown."""

    total_files: int
    total_folders: int
    total_size: int
    file_type_stats: dict[str, dict[str, int]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "total_folders": self.total_folders,
            "total_size": self.total_size,
            "file_type_stats": {k: dict(v) for k, v in self.file_type_stats.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StorageStats:
        return cls(
            total_files=int(data["total_files"]),
            total_folders=int(data["total_folders"]),
            total_size=int(data["total_size"]),
            file_type_stats={
                k: {"count": int(v["count"]), "size": int(v["size"])}
                for k, v in data["file_type_stats"].items()
            },
        )


def stat_to_dict(stat: ObjectStat) -> dict[str, Any]:
    """Cacheable form of a head_object result."""
    return {
        "key": stat.key,
        "size": stat.size,
        "content_type": stat.content_type,
        "last_modified": to_iso(stat.last_modified),
    }


def stat_from_dict(data: dict[str, Any]) -> ObjectStat:
    return ObjectStat(
        key=data["key"],
        size=int(data["size"]),
        content_type=data["content_type"],
        last_modified=from_iso(data.get("last_modified")),
    )
