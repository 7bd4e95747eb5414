"""Process-local object store emulating S3 listing semantics.

Used for local development (STORAGE_BACKEND=memory) and tests. Keys are
kept in a dict guarded by a lock; listings are lexicographic, support a
delimiter and paginate with opaque continuation tokens like S3.
"""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import quote, urlencode

from vdrive.core.constants import DEFAULT_CONTENT_TYPE
from vdrive.infrastructure.exceptions import ObjectNotFoundError
from vdrive.infrastructure.external.storage.protocol import (
    ListPage,
    ObjectStat,
    ObjectSummary,
)
from vdrive.shared.utils.datetime import utc_now

# Sorts after any key that starts with a given common prefix.
_PREFIX_CEILING = "\U0010ffff"


@dataclass
class _StoredObject:
    body: bytes
    content_type: str
    last_modified: datetime


class MemoryObjectStore:
    """In-memory ObjectStoreProtocol implementation.

    Presigned URLs carry X-Amz-Expires and a random signature so callers
    see the same URL shape as S3, but nothing serves them.
    """

    def __init__(
        self,
        bucket: str = "vdrive",
        base_url: str = "http://localhost:9000",
    ) -> None:
        self.bucket = bucket
        self.base_url = base_url.rstrip("/")
        self._objects: dict[str, _StoredObject] = {}
        self._lock = threading.Lock()

    def keys(self) -> list[str]:
        """All stored keys, sorted (inspection helper)."""
        with self._lock:
            return sorted(self._objects)

    async def list_objects(
        self,
        prefix: str,
        delimiter: str | None = None,
        continuation_token: str | None = None,
        max_keys: int = 1000,
    ) -> ListPage:
        with self._lock:
            matching = sorted(
                (k, obj) for k, obj in self._objects.items() if k.startswith(prefix)
            )

        # (resume marker, common prefix or None, summary or None)
        entries: list[tuple[str, str | None, ObjectSummary | None]] = []
        seen_prefixes: set[str] = set()
        for key, obj in matching:
            if continuation_token and key <= continuation_token:
                continue
            if delimiter:
                rest = key[len(prefix):]
                idx = rest.find(delimiter)
                if idx >= 0:
                    common = prefix + rest[: idx + len(delimiter)]
                    if common not in seen_prefixes:
                        seen_prefixes.add(common)
                        entries.append((common + _PREFIX_CEILING, common, None))
                    continue
            entries.append(
                (key, None, ObjectSummary(key, len(obj.body), obj.last_modified))
            )

        page = entries[:max_keys]
        truncated = len(entries) > max_keys
        return ListPage(
            keys=[summary for _, _, summary in page if summary is not None],
            common_prefixes=[common for _, common, _ in page if common is not None],
            is_truncated=truncated,
            next_token=page[-1][0] if truncated and page else None,
        )

    def _presign(self, key: str, method: str, expires_in: int, **extra: str) -> str:
        query = {
            "X-Amz-Expires": str(expires_in),
            "X-Amz-Signature": secrets.token_hex(16),
            "x-method": method,
            **extra,
        }
        return f"{self.base_url}/{self.bucket}/{quote(key)}?{urlencode(query)}"

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        return self._presign(key, "PUT", expires_in, **{"content-type": content_type})

    async def presign_get(
        self,
        key: str,
        expires_in: int,
        download_name: str | None = None,
    ) -> str:
        extra = {}
        if download_name:
            extra["response-content-disposition"] = (
                f'attachment; filename="{download_name}"'
            )
        return self._presign(key, "GET", expires_in, **extra)

    async def head_object(self, key: str) -> ObjectStat:
        with self._lock:
            obj = self._objects.get(key)
        if obj is None:
            raise ObjectNotFoundError("head_object", key)
        return ObjectStat(
            key=key,
            size=len(obj.body),
            content_type=obj.content_type,
            last_modified=obj.last_modified,
        )

    async def put_object(
        self,
        key: str,
        body: bytes = b"",
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> None:
        with self._lock:
            self._objects[key] = _StoredObject(bytes(body), content_type, utc_now())

    async def copy_object(self, source_key: str, dest_key: str) -> None:
        with self._lock:
            source = self._objects.get(source_key)
            if source is None:
                raise ObjectNotFoundError("copy_object", source_key)
            self._objects[dest_key] = _StoredObject(
                source.body, source.content_type, utc_now()
            )

    async def delete_object(self, key: str) -> None:
        with self._lock:
            self._objects.pop(key, None)
