"""Object storage: S3-compatible and in-memory backends.

Factory creates the backend from vdrive.core.config and wraps it in
RetryingObjectStore. Backends are imported lazily inside
StorageFactory.create_object_store() so the memory backend never loads
boto3.

Implementations implement ObjectStoreProtocol (list_objects, presign_put,
presign_get, head_object, put_object, copy_object, delete_object).
"""

from vdrive.infrastructure.external.storage.factory import StorageFactory
from vdrive.infrastructure.external.storage.protocol import (
    ListPage,
    ObjectStat,
    ObjectStoreProtocol,
    ObjectSummary,
)
from vdrive.infrastructure.external.storage.retrying import RetryingObjectStore

__all__ = [
    "ListPage",
    "ObjectStat",
    "ObjectStoreProtocol",
    "ObjectSummary",
    "RetryingObjectStore",
    "StorageFactory",
]
