"""S3-compatible object store (AWS S3, MinIO, R2, etc.) with presigned URLs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    HTTPClientError,
)
from botocore.exceptions import ConnectionError as BotoConnectionError

from vdrive.core.constants import DEFAULT_CONTENT_TYPE
from vdrive.infrastructure.exceptions import ObjectNotFoundError, ObjectStoreError
from vdrive.infrastructure.external.storage.protocol import (
    ListPage,
    ObjectStat,
    ObjectSummary,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
_TRANSIENT_CODES = frozenset(
    {
        "InternalError",
        "RequestTimeout",
        "ServiceUnavailable",
        "SlowDown",
        "Throttling",
        "ThrottlingException",
    }
)


def _translate(operation: str, key: str, exc: Exception) -> ObjectStoreError:
    """Map a botocore exception onto ObjectStoreError with retry semantics."""
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = str(error.get("Code", ""))
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in _NOT_FOUND_CODES or status == 404:
            return ObjectNotFoundError(operation, key)
        retryable = code in _TRANSIENT_CODES or (status is not None and status >= 500)
        return ObjectStoreError(
            operation,
            key,
            f"{code}: {error.get('Message', '')}".strip(": "),
            status_code=status,
            retryable=retryable,
        )
    if isinstance(exc, (BotoConnectionError, HTTPClientError)):
        return ObjectStoreError(operation, key, type(exc).__name__, retryable=True)
    return ObjectStoreError(operation, key, type(exc).__name__, retryable=False)


def _content_disposition(file_name: str) -> str:
    ascii_name = file_name.encode("ascii", "replace").decode("ascii").replace('"', "_")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(file_name)}"


class S3ObjectStore:
    """S3-compatible store implementing ObjectStoreProtocol.

    Uses boto3 (sync) via asyncio.to_thread for async API. botocore's own
    retries are disabled; RetryingObjectStore owns the retry policy.
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize S3 client.

        Args:
            bucket: Bucket name.
            region: AWS region.
            endpoint_url: Custom endpoint (MinIO/R2/Spaces).
            access_key: Optional; uses env/IAM if not set.
            secret_key: Optional.
            client: Pre-built boto3 S3 client (tests, DI).
        """
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        if client is None:
            extra = {} if endpoint_url is None else {"endpoint_url": endpoint_url}
            client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                config=Config(
                    signature_version="s3v4",
                    retries={"total_max_attempts": 1},
                ),
                **extra,
            )
        self._client = client

    async def _call(self, operation: str, key: str, fn: Callable[[], T]) -> T:
        def _run() -> T:
            try:
                return fn()
            except (ClientError, BotoCoreError) as e:
                raise _translate(operation, key, e) from e

        return await asyncio.to_thread(_run)

    async def list_objects(
        self,
        prefix: str,
        delimiter: str | None = None,
        continuation_token: str | None = None,
        max_keys: int = 1000,
    ) -> ListPage:
        """One ListObjectsV2 page."""
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Prefix": prefix,
            "MaxKeys": max_keys,
        }
        if delimiter:
            params["Delimiter"] = delimiter
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        resp = await self._call(
            "list_objects", prefix, lambda: self._client.list_objects_v2(**params)
        )
        return ListPage(
            keys=[
                ObjectSummary(
                    key=obj["Key"],
                    size=int(obj.get("Size", 0)),
                    last_modified=obj.get("LastModified"),
                )
                for obj in resp.get("Contents", [])
            ],
            common_prefixes=[
                p["Prefix"] for p in resp.get("CommonPrefixes", []) if p.get("Prefix")
            ],
            is_truncated=bool(resp.get("IsTruncated")),
            next_token=resp.get("NextContinuationToken"),
        )

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        """Presigned PUT URL; the client must send the same Content-Type."""
        return await self._call(
            "presign_put",
            key,
            lambda: self._client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in,
            ),
        )

    async def presign_get(
        self,
        key: str,
        expires_in: int,
        download_name: str | None = None,
    ) -> str:
        """Presigned GET URL, optionally forcing an attachment file name."""
        params: dict[str, Any] = {"Bucket": self.bucket, "Key": key}
        if download_name:
            params["ResponseContentDisposition"] = _content_disposition(download_name)
        return await self._call(
            "presign_get",
            key,
            lambda: self._client.generate_presigned_url(
                "get_object", Params=params, ExpiresIn=expires_in
            ),
        )

    async def head_object(self, key: str) -> ObjectStat:
        """Return size, content type and last-modified."""
        head = await self._call(
            "head_object",
            key,
            lambda: self._client.head_object(Bucket=self.bucket, Key=key),
        )
        return ObjectStat(
            key=key,
            size=int(head.get("ContentLength", 0)),
            content_type=head.get("ContentType") or DEFAULT_CONTENT_TYPE,
            last_modified=head.get("LastModified"),
        )

    async def put_object(
        self,
        key: str,
        body: bytes = b"",
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> None:
        await self._call(
            "put_object",
            key,
            lambda: self._client.put_object(
                Bucket=self.bucket, Key=key, Body=body, ContentType=content_type
            ),
        )
        logger.debug("S3 PUT: %s (%s bytes)", key, len(body))

    async def copy_object(self, source_key: str, dest_key: str) -> None:
        await self._call(
            "copy_object",
            source_key,
            lambda: self._client.copy_object(
                Bucket=self.bucket,
                Key=dest_key,
                CopySource={"Bucket": self.bucket, "Key": source_key},
                MetadataDirective="COPY",
            ),
        )
        logger.debug("S3 COPY: %s -> %s", source_key, dest_key)

    async def delete_object(self, key: str) -> None:
        await self._call(
            "delete_object",
            key,
            lambda: self._client.delete_object(Bucket=self.bucket, Key=key),
        )
        logger.debug("S3 DELETE: %s", key)
