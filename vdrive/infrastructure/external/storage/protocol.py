"""Object store protocol (DIP). Implementations: S3ObjectStore, MemoryObjectStore."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from vdrive.core.constants import DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class ObjectSummary:
    """One key returned by a listing."""

    key: str
    size: int
    last_modified: datetime | None = None


@dataclass(frozen=True)
class ListPage:
    """One page of a (possibly delimited) listing."""

    keys: list[ObjectSummary] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    is_truncated: bool = False
    next_token: str | None = None


@dataclass(frozen=True)
class ObjectStat:
    """Head-object metadata."""

    key: str
    size: int
    content_type: str = DEFAULT_CONTENT_TYPE
    last_modified: datetime | None = None


class ObjectStoreProtocol(Protocol):
    """Protocol for flat key/value object storage (S3-compatible).

    Adapters raise ObjectNotFoundError for missing keys and
    ObjectStoreError (with ``retryable``) for every other failure.
    """

    async def list_objects(
        self,
        prefix: str,
        delimiter: str | None = None,
        continuation_token: str | None = None,
        max_keys: int = 1000,
    ) -> ListPage:
        """Return one page of keys (and common prefixes when delimited)."""
        ...

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        """Return a time-bound URL allowing one PUT to key."""
        ...

    async def presign_get(
        self,
        key: str,
        expires_in: int,
        download_name: str | None = None,
    ) -> str:
        """Return a time-bound URL allowing GET of key."""
        ...

    async def head_object(self, key: str) -> ObjectStat:
        """Return metadata; raise ObjectNotFoundError if absent."""
        ...

    async def put_object(
        self,
        key: str,
        body: bytes = b"",
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> None:
        """Write an object (used for zero-byte folder markers)."""
        ...

    async def copy_object(self, source_key: str, dest_key: str) -> None:
        """Server-side copy within the bucket."""
        ...

    async def delete_object(self, key: str) -> None:
        """Delete key; deleting a missing key is not an error."""
        ...
