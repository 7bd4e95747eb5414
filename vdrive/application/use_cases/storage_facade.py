"""Storage facade: single entry point for request handlers.

Every public method returns ``Ok(value)`` or ``Err(error)``. Reads go
through the cache; writes hit the store first and then invalidate the
affected folder, the tenant's searches and its stats (also after a
partial failure).
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from vdrive.application.dtos.storage import (
    DownloadLink,
    FolderEntry,
    FolderListing,
    PathMutation,
    PresignedUpload,
    SearchResult,
    StorageStats,
    stat_from_dict,
    stat_to_dict,
)
from vdrive.application.services.folder_emulator import FolderEmulator
from vdrive.application.services.presigned_url_issuer import PresignedURLIssuer
from vdrive.application.services.search_engine import SearchEngine
from vdrive.core.config import Settings, get_settings
from vdrive.domain import paths
from vdrive.domain.exceptions import PartialFailureError, UpstreamStoreError, VDriveException
from vdrive.domain.results import Err, Ok, Result
from vdrive.infrastructure.cache import keys as cache_keys
from vdrive.infrastructure.cache.cache_protocol import CacheProtocol
from vdrive.infrastructure.cache.payloads import unwrap, wrap
from vdrive.infrastructure.external.storage.protocol import ObjectStoreProtocol

logger = logging.getLogger(__name__)

T = TypeVar("T")

LISTING_KIND = "listing"
STAT_KIND = "stat"
STATS_KIND = "stats"


class StorageFacade:
    """Folder view, presigned URLs, search and stats for every tenant."""

    def __init__(
        self,
        store: ObjectStoreProtocol,
        cache: CacheProtocol | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Wire services from settings.

        Args:
            store: Object store (usually wrapped in RetryingObjectStore).
            cache: Shared cache; None disables caching.
            settings: Application settings; if None, uses get_settings().
        """
        self.settings = settings or get_settings()
        self.store = store
        self.cache = cache
        self.folders = FolderEmulator(
            store,
            page_size=self.settings.list_page_size,
            max_pages=self.settings.max_list_pages,
        )
        self.issuer = PresignedURLIssuer(
            store,
            max_upload_size=self.settings.max_upload_size,
            upload_expiry_seconds=self.settings.upload_url_expiry_seconds,
            download_expiry_seconds=self.settings.download_url_expiry_seconds,
            dedupe_upload_names=self.settings.dedupe_upload_names,
        )
        self.search = SearchEngine(
            self.folders,
            cache=cache,
            cache_ttl=self.settings.cache_ttl_search,
            default_max_results=self.settings.search_default_max_results,
            max_results_limit=self.settings.search_max_results_limit,
            min_query_length=self.settings.search_min_query_length,
        )

    # --- plumbing ---

    def _cache_on(self) -> bool:
        return self.cache is not None and self.cache.is_available()

    async def _run(self, operation: str, fn: Callable[[], Awaitable[T]]) -> Result[T]:
        try:
            return Ok(await fn())
        except VDriveException as e:
            if isinstance(e, UpstreamStoreError):
                logger.warning("%s failed upstream: %s", operation, e.reason or e.message)
            return Err(e)
        except Exception as e:
            logger.exception("Unexpected error in %s", operation)
            return Err(
                UpstreamStoreError(
                    operation,
                    reason=repr(e),
                    message="Unexpected storage error",
                )
            )

    async def _read_through(
        self,
        key: str,
        kind: str,
        ttl: float,
        load: Callable[[], Awaitable[Any]],
        encode: Callable[[Any], Any],
        decode: Callable[[Any], Any],
    ) -> Any:
        if self._cache_on():
            cached = unwrap(await self.cache.get(key), kind, decode)
            if cached is not None:
                return cached
        value = await load()
        if self._cache_on():
            await self.cache.set(key, wrap(kind, encode(value)), ttl=ttl)
        return value

    async def _invalidate(self, tenant: str, *folder_paths: str) -> None:
        if not self._cache_on():
            return
        for folder in dict.fromkeys(folder_paths):
            await self.cache.invalidate(cache_keys.path_pattern(tenant, folder))
        await self.cache.invalidate(cache_keys.search_pattern(tenant))
        await self.cache.delete(cache_keys.stats_key(tenant))

    # --- folders ---

    async def create_folder(
        self, tenant: str, name: str, parent_path: str = ""
    ) -> Result[FolderEntry]:
        async def op() -> FolderEntry:
            paths.validate_tenant(tenant)
            folder = await self.folders.create_folder(tenant, name, parent_path)
            await self._invalidate(tenant, paths.parent_of(folder.path))
            return folder

        return await self._run("create_folder", op)

    async def list_folder_contents(
        self, tenant: str, parent_path: str = ""
    ) -> Result[FolderListing]:
        async def op() -> FolderListing:
            paths.validate_tenant(tenant)
            parent = paths.normalize_path(parent_path, field="parent_path")
            return await self._read_through(
                cache_keys.listing_key(tenant, parent),
                LISTING_KIND,
                self.settings.cache_ttl_listing,
                lambda: self.folders.list_folder_contents(tenant, parent),
                FolderListing.to_dict,
                FolderListing.from_dict,
            )

        return await self._run("list_folder_contents", op)

    # --- presigned URLs ---

    async def get_upload_presigned_url(
        self,
        tenant: str,
        file_name: str,
        content_type: str,
        file_size: int,
        dest_path: str = "",
    ) -> Result[PresignedUpload]:
        async def op() -> PresignedUpload:
            paths.validate_tenant(tenant)
            upload = await self.issuer.get_upload_presigned_url(
                tenant, file_name, content_type, file_size, dest_path
            )
            # The client PUT lands after this returns; drop the stale listing now.
            await self._invalidate(
                tenant, paths.parent_of(paths.to_virtual_path(tenant, upload.key))
            )
            return upload

        return await self._run("get_upload_presigned_url", op)

    async def get_download_url(self, tenant: str, file_path: str) -> Result[DownloadLink]:
        async def op() -> DownloadLink:
            paths.validate_tenant(tenant)
            path = paths.normalize_path(file_path)
            stat = await self._read_through(
                cache_keys.stat_key(tenant, path),
                STAT_KIND,
                self.settings.cache_ttl_stat,
                lambda: self.issuer.head(tenant, path),
                stat_to_dict,
                stat_from_dict,
            )
            return await self.issuer.get_download_url(tenant, path, stat=stat)

        return await self._run("get_download_url", op)

    # --- search & stats ---

    async def search_files(
        self,
        tenant: str,
        query: str,
        max_results: int | None = None,
        mime_type_filter: str | None = None,
    ) -> Result[SearchResult]:
        async def op() -> SearchResult:
            paths.validate_tenant(tenant)
            return await self.search.search_files(
                tenant, query, max_results, mime_type_filter
            )

        return await self._run("search_files", op)

    async def get_storage_stats(self, tenant: str) -> Result[StorageStats]:
        async def op() -> StorageStats:
            paths.validate_tenant(tenant)
            return await self._read_through(
                cache_keys.stats_key(tenant),
                STATS_KIND,
                self.settings.cache_ttl_stats,
                lambda: self.folders.storage_stats(tenant),
                StorageStats.to_dict,
                StorageStats.from_dict,
            )

        return await self._run("get_storage_stats", op)

    # --- mutations ---

    async def delete_or_rename_path(
        self, tenant: str, path: str, new_path: str | None = None
    ) -> Result[PathMutation]:
        """Delete path when new_path is None, otherwise move it to new_path."""

        async def op() -> PathMutation:
            paths.validate_tenant(tenant)
            source = paths.normalize_path(path)
            affected = [paths.parent_of(source)]
            if new_path is not None:
                affected.append(
                    paths.parent_of(paths.normalize_path(new_path, field="new_path"))
                )
            try:
                if new_path is None:
                    mutation = await self.folders.delete_path(tenant, source)
                else:
                    mutation = await self.folders.rename_path(tenant, source, new_path)
            except PartialFailureError:
                await self._invalidate(tenant, *affected)
                raise
            await self._invalidate(tenant, *affected)
            return mutation

        return await self._run("delete_or_rename_path", op)

    # --- administration ---

    async def invalidate_tenant(self, tenant: str) -> Result[int]:
        """Drop every cached entry of the tenant; returns how many were removed."""

        async def op() -> int:
            paths.validate_tenant(tenant)
            if not self._cache_on():
                return 0
            removed = await self.cache.invalidate(cache_keys.path_pattern(tenant, ""))
            logger.info("Cache invalidated for tenant %s (%s keys)", tenant, removed)
            return removed

        return await self._run("invalidate_tenant", op)

    async def clear_cache(self) -> Result[None]:
        async def op() -> None:
            if self._cache_on():
                await self.cache.clear()

        return await self._run("clear_cache", op)
