"""Folder emulation over a flat object namespace.

Folders are zero-byte marker objects ending in '/' or prefixes implied
by deeper keys. Deletes and renames of folders expand to one store call
per key; there is no transaction, so failures are reported per key via
PartialFailureError and never rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from vdrive.application.dtos.storage import (
    FileEntry,
    FolderEntry,
    FolderListing,
    KeyOutcome,
    PathMutation,
    StorageStats,
)
from vdrive.core.constants import FOLDER_CONTENT_TYPE, PATH_DELIMITER
from vdrive.domain import paths
from vdrive.domain.exceptions import (
    NotFoundException,
    PartialFailureError,
    UpstreamStoreError,
    ValidationException,
)
from vdrive.infrastructure.exceptions import ObjectNotFoundError, ObjectStoreError
from vdrive.infrastructure.external.storage.protocol import (
    ObjectStat,
    ObjectStoreProtocol,
    ObjectSummary,
)

logger = logging.getLogger(__name__)


def upstream_error(exc: ObjectStoreError) -> UpstreamStoreError:
    """Domain error for a failed store call (reason kept for logs only)."""
    return UpstreamStoreError(exc.operation, reason=exc.reason)


def _client_error(exc: ObjectStoreError) -> str:
    """Per-key failure label safe for clients (no upstream message text)."""
    if exc.status_code is not None:
        return f"store error (HTTP {exc.status_code})"
    return "store error"


def _sort_key(name: str) -> tuple[str, str]:
    return (name.casefold(), name)


class FolderEmulator:
    """Create, list, delete and rename virtual folders for a tenant."""

    def __init__(
        self,
        store: ObjectStoreProtocol,
        page_size: int = 1000,
        max_pages: int = 100,
    ) -> None:
        self.store = store
        self.page_size = page_size
        self.max_pages = max_pages

    async def create_folder(
        self, tenant: str, name: str, parent_path: str = ""
    ) -> FolderEntry:
        """Write the folder marker. Re-creating an existing folder is a no-op."""
        clean_name = paths.sanitize_name(name)
        parent = paths.normalize_path(parent_path, field="parent_path")
        path = paths.join(parent, clean_name)
        key = paths.to_object_key(tenant, path, is_folder=True)
        try:
            await self.store.put_object(key, b"", content_type=FOLDER_CONTENT_TYPE)
        except ObjectStoreError as e:
            raise upstream_error(e) from e
        logger.info("Folder created: %s", key)
        return FolderEntry(key=key, name=clean_name, path=path)

    async def iter_keys(
        self, prefix: str, delimiter: str | None = None
    ) -> AsyncIterator[tuple[list[ObjectSummary], list[str]]]:
        """Yield (keys, common_prefixes) per page, following continuation tokens.

        Raises:
            UpstreamStoreError: Store failure, or truncated=True when the
                listing needs more than max_pages pages.
        """
        token: str | None = None
        pages = 0
        while True:
            if pages >= self.max_pages:
                logger.warning(
                    "Listing of %s exceeded %s pages; refusing partial result",
                    prefix,
                    self.max_pages,
                )
                raise UpstreamStoreError(
                    "list_objects",
                    reason=f"more than {self.max_pages} pages under {prefix}",
                    truncated=True,
                    message="Listing is too large to return completely",
                )
            try:
                page = await self.store.list_objects(
                    prefix,
                    delimiter=delimiter,
                    continuation_token=token,
                    max_keys=self.page_size,
                )
            except ObjectStoreError as e:
                raise upstream_error(e) from e
            pages += 1
            yield page.keys, page.common_prefixes
            if not page.is_truncated or not page.next_token:
                return
            token = page.next_token

    async def list_all(self, prefix: str) -> list[ObjectSummary]:
        """Every key under prefix (recursive), in store order."""
        found: list[ObjectSummary] = []
        async for keys, _ in self.iter_keys(prefix):
            found.extend(keys)
        return found

    async def list_folder_contents(
        self, tenant: str, parent_path: str = ""
    ) -> FolderListing:
        """Direct children of a folder. A folder with no keys lists as empty."""
        parent = paths.normalize_path(parent_path, field="parent_path")
        prefix = paths.to_object_key(tenant, parent, is_folder=True)
        folders: dict[str, FolderEntry] = {}
        files: list[FileEntry] = []
        async for keys, prefixes in self.iter_keys(prefix, delimiter=PATH_DELIMITER):
            for common in prefixes:
                name = paths.base_name(common)
                if not name or common in folders:
                    continue
                folders[common] = FolderEntry(
                    key=common,
                    name=name,
                    path=paths.join(parent, name),
                )
            for summary in keys:
                if summary.key == prefix or summary.key.endswith(PATH_DELIMITER):
                    continue
                name = paths.base_name(summary.key)
                files.append(
                    FileEntry(
                        key=summary.key,
                        name=name,
                        path=paths.join(parent, name),
                        size=summary.size,
                        mime_type=paths.guess_mime_type(name),
                        last_modified=summary.last_modified,
                    )
                )
        files.sort(key=lambda f: _sort_key(f.name))
        return FolderListing(
            path=parent,
            folders=sorted(folders.values(), key=lambda f: _sort_key(f.name)),
            files=files,
            breadcrumbs=paths.breadcrumbs(parent),
            total_size=sum(f.size for f in files),
        )

    async def storage_stats(self, tenant: str) -> StorageStats:
        """Totals over every key of the tenant, by lowercase file extension."""
        root = paths.tenant_root(tenant)
        folders: set[str] = set()
        by_type: dict[str, dict[str, int]] = {}
        total_files = 0
        total_size = 0
        async for summaries, _ in self.iter_keys(root):
            for summary in summaries:
                segments = [s for s in summary.key[len(root):].split(PATH_DELIMITER) if s]
                if not segments:
                    continue
                is_marker = summary.key.endswith(PATH_DELIMITER)
                folder_segments = segments if is_marker else segments[:-1]
                for depth in range(1, len(folder_segments) + 1):
                    folders.add(PATH_DELIMITER.join(folder_segments[:depth]))
                if is_marker:
                    continue
                total_files += 1
                total_size += summary.size
                bucket = by_type.setdefault(
                    paths.extension(segments[-1]), {"count": 0, "size": 0}
                )
                bucket["count"] += 1
                bucket["size"] += summary.size
        return StorageStats(
            total_files=total_files,
            total_folders=len(folders),
            total_size=total_size,
            file_type_stats=by_type,
        )

    async def stat_file(self, key: str) -> ObjectStat | None:
        """head_object, with None for a missing key."""
        try:
            return await self.store.head_object(key)
        except ObjectNotFoundError:
            return None
        except ObjectStoreError as e:
            raise upstream_error(e) from e

    async def _folder_has_keys(self, folder_key: str) -> bool:
        try:
            page = await self.store.list_objects(folder_key, max_keys=1)
        except ObjectStoreError as e:
            raise upstream_error(e) from e
        return bool(page.keys)

    async def _delete_keys(self, keys: list[str]) -> list[KeyOutcome]:
        outcomes = []
        for key in keys:
            try:
                await self.store.delete_object(key)
            except ObjectStoreError as e:
                logger.warning("Delete failed for %s: %s", key, e.reason)
                outcomes.append(KeyOutcome(key, None, ok=False, error=_client_error(e)))
            else:
                outcomes.append(KeyOutcome(key, None, ok=True))
        return outcomes

    async def delete_path(self, tenant: str, path: str) -> PathMutation:
        """Delete a file, or a folder with everything below it."""
        target = paths.normalize_path(path)
        if not target:
            raise ValidationException("Cannot delete the root folder", field="path")

        file_key = paths.to_object_key(tenant, target, is_folder=False)
        if await self.stat_file(file_key) is not None:
            outcomes = await self._delete_keys([file_key])
            is_folder = False
        else:
            folder_key = paths.to_object_key(tenant, target, is_folder=True)
            keys = [s.key for s in await self.list_all(folder_key)]
            if not keys:
                raise NotFoundException("path", target)
            # Deepest first, marker last: a partial failure leaves the folder visible.
            keys.sort(reverse=True)
            outcomes = await self._delete_keys(keys)
            is_folder = True

        mutation = PathMutation(
            action="delete",
            path=target,
            new_path=None,
            is_folder=is_folder,
            outcomes=outcomes,
        )
        self._raise_on_partial(mutation)
        logger.info("Deleted %s (%s keys)", target, len(outcomes))
        return mutation

    async def rename_path(self, tenant: str, path: str, new_path: str) -> PathMutation:
        """Move a file or folder: copy every key, then delete copied sources."""
        source = paths.normalize_path(path)
        dest = paths.normalize_path(new_path, field="new_path")
        if not source or not dest:
            raise ValidationException("Cannot rename the root folder", field="path")
        if source == dest:
            raise ValidationException(
                "New path is the same as the current path", field="new_path"
            )
        if paths.is_same_or_descendant(dest, source):
            raise ValidationException(
                "Cannot move a folder into itself", field="new_path"
            )

        source_file = paths.to_object_key(tenant, source, is_folder=False)
        dest_file = paths.to_object_key(tenant, dest, is_folder=False)
        dest_folder = paths.to_object_key(tenant, dest, is_folder=True)
        if (
            await self.stat_file(dest_file) is not None
            or await self._folder_has_keys(dest_folder)
        ):
            raise ValidationException("Destination already exists", field="new_path")

        if await self.stat_file(source_file) is not None:
            pairs = [(source_file, dest_file)]
            is_folder = False
        else:
            source_folder = paths.to_object_key(tenant, source, is_folder=True)
            keys = [s.key for s in await self.list_all(source_folder)]
            if not keys:
                raise NotFoundException("path", source)
            pairs = [(k, dest_folder + k[len(source_folder):]) for k in keys]
            is_folder = True

        copy_errors: dict[str, str] = {}
        for src, dst in pairs:
            try:
                await self.store.copy_object(src, dst)
            except ObjectStoreError as e:
                logger.warning("Copy failed %s -> %s: %s", src, dst, e.reason)
                copy_errors[src] = f"copy failed: {_client_error(e)}"

        copied = [src for src, _ in pairs if src not in copy_errors]
        delete_errors = {
            o.source_key: f"delete failed: {o.error}"
            for o in await self._delete_keys(copied)
            if not o.ok
        }

        outcomes = []
        for src, dst in pairs:
            error = copy_errors.get(src) or delete_errors.get(src)
            outcomes.append(KeyOutcome(src, dst, ok=error is None, error=error))

        mutation = PathMutation(
            action="rename",
            path=source,
            new_path=dest,
            is_folder=is_folder,
            outcomes=outcomes,
        )
        self._raise_on_partial(mutation)
        logger.info("Renamed %s -> %s (%s keys)", source, dest, len(outcomes))
        return mutation

    @staticmethod
    def _raise_on_partial(mutation: PathMutation) -> None:
        failed = [o.to_dict() for o in mutation.outcomes if not o.ok]
        if not failed:
            return
        succeeded = [o.to_dict() for o in mutation.outcomes if o.ok]
        logger.warning(
            "%s of %s partially failed: %s ok, %s failed",
            mutation.action,
            mutation.path,
            len(succeeded),
            len(failed),
        )
        raise PartialFailureError(mutation.action, mutation.path, succeeded, failed)
