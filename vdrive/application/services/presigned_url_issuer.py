"""Presigned upload and download URLs.

Clients move bytes directly to and from the object store; this service
validates the request, resolves the target key and signs. It never
writes objects.
"""

from __future__ import annotations

import logging

from vdrive.application.dtos.storage import DownloadLink, PresignedUpload
from vdrive.application.services.folder_emulator import upstream_error
from vdrive.domain import paths
from vdrive.domain.exceptions import (
    NotFoundException,
    QuotaExceededException,
    ValidationException,
)
from vdrive.infrastructure.exceptions import ObjectNotFoundError, ObjectStoreError
from vdrive.infrastructure.external.storage.protocol import (
    ObjectStat,
    ObjectStoreProtocol,
)

logger = logging.getLogger(__name__)

MAX_DEDUPE_ATTEMPTS = 1000


def _split_extension(name: str) -> tuple[str, str]:
    """('report', '.pdf') for 'report.pdf'; no extension for dotfiles."""
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return name, ""
    return stem, "." + ext


class PresignedURLIssuer:
    """Issue time-bound PUT/GET URLs for tenant files."""

    def __init__(
        self,
        store: ObjectStoreProtocol,
        max_upload_size: int,
        upload_expiry_seconds: int = 900,
        download_expiry_seconds: int = 3600,
        dedupe_upload_names: bool = True,
    ) -> None:
        self.store = store
        self.max_upload_size = max_upload_size
        self.upload_expiry_seconds = upload_expiry_seconds
        self.download_expiry_seconds = download_expiry_seconds
        self.dedupe_upload_names = dedupe_upload_names

    async def _exists(self, key: str) -> bool:
        try:
            await self.store.head_object(key)
        except ObjectNotFoundError:
            return False
        except ObjectStoreError as e:
            raise upstream_error(e) from e
        return True

    async def _unique_key(self, tenant: str, folder: str, name: str) -> str:
        """First free key among name, name(1).ext, name(2).ext, ..."""
        key = paths.to_object_key(tenant, paths.join(folder, name), is_folder=False)
        stem, ext = _split_extension(name)
        counter = 1
        while await self._exists(key):
            if counter > MAX_DEDUPE_ATTEMPTS:
                raise ValidationException(
                    f"Too many files named {name!r} in this folder", field="file_name"
                )
            candidate = paths.sanitize_name(f"{stem}({counter}){ext}", field="file_name")
            key = paths.to_object_key(
                tenant, paths.join(folder, candidate), is_folder=False
            )
            counter += 1
        return key

    async def get_upload_presigned_url(
        self,
        tenant: str,
        file_name: str,
        content_type: str,
        file_size: int,
        dest_path: str = "",
    ) -> PresignedUpload:
        """Validate an upload request and sign a PUT for its target key.

        Args:
            tenant: Tenant prefix.
            file_name: Client file name (sanitized; may be renamed to
                ``name(n).ext`` when dedupe is on and the key is taken).
            content_type: MIME type the client will send.
            file_size: Declared size in bytes.
            dest_path: Destination folder ('' for root).

        Raises:
            ValidationException: Bad name, content type, size or path.
            QuotaExceededException: file_size above max_upload_size.
            UpstreamStoreError: Store failure during the existence probe.
        """
        name = paths.sanitize_name(file_name, field="file_name")
        if not content_type or not content_type.strip():
            raise ValidationException("Content type is required", field="content_type")
        if isinstance(file_size, bool) or not isinstance(file_size, int) or file_size <= 0:
            raise ValidationException(
                "File size must be a positive integer", field="file_size"
            )
        if file_size > self.max_upload_size:
            raise QuotaExceededException(file_size, self.max_upload_size)
        folder = paths.normalize_path(dest_path, field="dest_path")

        if self.dedupe_upload_names:
            key = await self._unique_key(tenant, folder, name)
        else:
            key = paths.to_object_key(tenant, paths.join(folder, name), is_folder=False)

        try:
            url = await self.store.presign_put(
                key, content_type.strip(), self.upload_expiry_seconds
            )
        except ObjectStoreError as e:
            raise upstream_error(e) from e
        logger.info("Upload URL issued for %s (%s bytes)", key, file_size)
        return PresignedUpload(url=url, key=key, expires_in=self.upload_expiry_seconds)

    async def head(self, tenant: str, file_path: str) -> ObjectStat:
        """Existence check for a file.

        Raises:
            NotFoundException: No object at the file key.
        """
        path = paths.normalize_path(file_path)
        key = paths.to_object_key(tenant, path, is_folder=False)
        try:
            return await self.store.head_object(key)
        except ObjectNotFoundError as e:
            raise NotFoundException("file", path) from e
        except ObjectStoreError as e:
            raise upstream_error(e) from e

    async def get_download_url(
        self, tenant: str, file_path: str, stat: ObjectStat | None = None
    ) -> DownloadLink:
        """Sign a GET with attachment disposition; head first unless stat is given."""
        path = paths.normalize_path(file_path)
        if stat is None:
            stat = await self.head(tenant, path)
        try:
            url = await self.store.presign_get(
                stat.key,
                self.download_expiry_seconds,
                download_name=paths.base_name(path),
            )
        except ObjectStoreError as e:
            raise upstream_error(e) from e
        return DownloadLink(
            url=url, key=stat.key, expires_in=self.download_expiry_seconds
        )
