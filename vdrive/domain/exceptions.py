"""Domain exceptions for the vdrive storage layer.

Defines the error taxonomy callers branch on: client-fixable input
(validation, quota), missing objects, upstream store failures and
partial multi-key failures. Presentation layer maps them to HTTP
responses in exception handlers.
"""

from typing import Any


class VDriveException(Exception):
    """Base exception for all vdrive errors.

    Attributes:
        message: Human-readable error description (safe for clients).
        error_code: Machine-readable error code.
        details: Additional client-safe context (e.g. field, path).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Client-visible representation (error, message, details)."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(VDriveException):
    """Raised when a name, path, size or query is malformed. Never retried."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or argument that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundException(VDriveException):
    """Raised when a referenced file or folder does not exist."""

    def __init__(self, resource_type: str, path: str) -> None:
        """Initialize with resource type and tenant-relative path.

        Args:
            resource_type: 'file', 'folder' or 'path'.
            path: Tenant-relative path that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {path}",
            "NOT_FOUND",
            {"resource_type": resource_type, "path": path},
        )


class QuotaExceededException(VDriveException):
    """Raised when an upload is larger than the configured maximum."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"File size {size} exceeds the maximum of {limit} bytes",
            "QUOTA_EXCEEDED",
            {"size": size, "limit": limit},
        )


class UpstreamStoreError(VDriveException):
    """Raised when the object store is unreachable or failed server-side.

    ``reason`` holds the internal diagnostic for logs and is never put in
    ``details``. ``truncated`` marks a listing that hit the page cap.
    """

    def __init__(
        self,
        operation: str,
        reason: str = "",
        truncated: bool = False,
        message: str | None = None,
    ) -> None:
        """Initialize with the failed operation.

        Args:
            operation: Store operation that failed (e.g. 'list_objects').
            reason: Internal diagnostic, kept out of client output.
            truncated: True when a listing exceeded the page cap.
            message: Optional client-safe message override.
        """
        self.operation = operation
        self.reason = reason
        self.truncated = truncated
        details: dict[str, Any] = {"operation": operation}
        if truncated:
            details["truncated"] = True
        super().__init__(
            message or f"Object storage request failed: {operation}",
            "UPSTREAM_STORE_ERROR",
            details,
        )


class PartialFailureError(VDriveException):
    """Raised when a multi-key delete/rename succeeded only for some keys.

    There is no cross-object transaction; the caller reconciles using the
    per-key outcomes.
    """

    def __init__(
        self,
        action: str,
        path: str,
        succeeded: list[dict[str, Any]],
        failed: list[dict[str, Any]],
    ) -> None:
        """Initialize with the action and per-key outcome lists.

        Args:
            action: 'delete' or 'rename'.
            path: Tenant-relative path the action targeted.
            succeeded: Outcomes (as dicts) that completed.
            failed: Outcomes (as dicts) that did not.
        """
        self.succeeded = succeeded
        self.failed = failed
        super().__init__(
            f"{action} of {path!r} partially failed: "
            f"{len(succeeded)} succeeded, {len(failed)} failed",
            "PARTIAL_FAILURE",
            {
                "action": action,
                "path": path,
                "succeeded": succeeded,
                "failed": failed,
            },
        )
