"""Retry wrapper for object stores: bounded exponential backoff on transient errors.

Only ObjectStoreError with ``retryable=True`` (5xx, throttling, network)
is retried. Client errors (4xx, not found) are raised on the first attempt.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from vdrive.core.constants import DEFAULT_CONTENT_TYPE
from vdrive.infrastructure.exceptions import ObjectStoreError
from vdrive.infrastructure.external.storage.protocol import (
    ListPage,
    ObjectStat,
    ObjectStoreProtocol,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    """True for store errors worth retrying."""
    return isinstance(exc, ObjectStoreError) and exc.retryable


class RetryingObjectStore:
    """ObjectStoreProtocol decorator applying the retry policy to every call."""

    def __init__(
        self,
        inner: ObjectStoreProtocol,
        max_attempts: int = 3,
        min_wait: float = 0.2,
        max_wait: float = 2.0,
    ) -> None:
        self.inner = inner
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait

    async def _retry(self, fn: Callable[[], Awaitable[T]]) -> T:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(min=self.min_wait, max=self.max_wait),
            retry=retry_if_exception(is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await fn()
        raise AssertionError("unreachable")  # pragma: no cover

    async def list_objects(
        self,
        prefix: str,
        delimiter: str | None = None,
        continuation_token: str | None = None,
        max_keys: int = 1000,
    ) -> ListPage:
        return await self._retry(
            lambda: self.inner.list_objects(
                prefix, delimiter, continuation_token, max_keys
            )
        )

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        return await self._retry(
            lambda: self.inner.presign_put(key, content_type, expires_in)
        )

    async def presign_get(
        self,
        key: str,
        expires_in: int,
        download_name: str | None = None,
    ) -> str:
        return await self._retry(
            lambda: self.inner.presign_get(key, expires_in, download_name)
        )

    async def head_object(self, key: str) -> ObjectStat:
        return await self._retry(lambda: self.inner.head_object(key))

    async def put_object(
        self,
        key: str,
        body: bytes = b"",
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> None:
        await self._retry(lambda: self.inner.put_object(key, body, content_type))

    async def copy_object(self, source_key: str, dest_key: str) -> None:
        await self._retry(lambda: self.inner.copy_object(source_key, dest_key))

    async def delete_object(self, key: str) -> None:
        await self._retry(lambda: self.inner.delete_object(key))
