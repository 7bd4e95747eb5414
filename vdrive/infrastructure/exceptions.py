"""Infrastructure exceptions raised by object-store adapters.

Adapters translate SDK errors into these; the application layer maps
them onto the domain taxonomy (NotFoundException, UpstreamStoreError).
"""


class ObjectStoreError(Exception):
    """Object-store call failed.

    ``retryable`` is True for transient conditions (HTTP 5xx, throttling,
    connection and timeout errors) and False for client errors (4xx).
    """

    def __init__(
        self,
        operation: str,
        key: str,
        reason: str,
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        self.operation = operation
        self.key = key
        self.reason = reason
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(f"{operation} failed for {key!r}: {reason}")


class ObjectNotFoundError(ObjectStoreError):
    """Object does not exist (HTTP 404 / NoSuchKey)."""

    def __init__(self, operation: str, key: str) -> None:
        super().__init__(operation, key, "not found", status_code=404)
