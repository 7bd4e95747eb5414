"""Object store factory: creates the memory or S3 backend from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from vdrive.infrastructure.external.storage.protocol import ObjectStoreProtocol
from vdrive.infrastructure.external.storage.retrying import RetryingObjectStore

if TYPE_CHECKING:
    from vdrive.core.config import Settings


class StorageFactory:
    """Factory for object store instances based on configuration."""

    @staticmethod
    def create_object_store(settings: "Settings | None" = None) -> ObjectStoreProtocol:
        """Create the configured backend wrapped in the retry policy.

        Args:
            settings: Application settings; if None, uses get_settings().

        Returns:
            RetryingObjectStore around MemoryObjectStore or S3ObjectStore.

        Raises:
            ValueError: Unknown backend or missing required config.
        """
        from vdrive.core.config import get_settings

        s = settings or get_settings()
        backend = s.storage_backend.lower()

        if backend == "memory":
            from vdrive.infrastructure.external.storage.memory_store import (
                MemoryObjectStore,
            )

            inner: ObjectStoreProtocol = MemoryObjectStore(
                bucket=s.s3_bucket or "vdrive",
                base_url=s.memory_store_base_url,
            )
        elif backend == "s3":
            if not s.s3_bucket:
                raise ValueError("S3_BUCKET required for s3 backend")
            from vdrive.infrastructure.external.storage.s3_store import S3ObjectStore

            inner = S3ObjectStore(
                bucket=s.s3_bucket,
                region=s.s3_region,
                endpoint_url=s.s3_endpoint_url,
                access_key=s.s3_access_key,
                secret_key=(
                    s.s3_secret_key.get_secret_value() if s.s3_secret_key else None
                ),
            )
        else:
            raise ValueError(
                f"Unknown storage backend: {backend}. Supported: 'memory', 's3'"
            )

        return RetryingObjectStore(
            inner,
            max_attempts=s.store_max_attempts,
            min_wait=s.store_retry_min_wait,
            max_wait=s.store_retry_max_wait,
        )
