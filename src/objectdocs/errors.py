"""objectdocs error types.

Every failure that crosses the document-store boundary is one of these kinds:

- NotFoundError: primary object absent, index entry absent, or index entry
  pointing at a primary that no longer exists (the three are not distinguished).
- ConflictError: a unique value was observed as taken at check time.
- CorruptObjectError: a payload is present but cannot be decoded.
- StoreUnavailableError: the object store could not complete the call.

Errors carry bucket/key/operation context for the caller's logs. Nothing in
this package retries them.
"""

from __future__ import annotations


class DocumentStoreError(Exception):
    """Base exception for document store operations.

    Attributes:
        message: Human-readable error message.
        bucket: Bucket involved in the failed operation (if applicable).
        key: Object key involved in the failed operation (if applicable).
        operation: Store or facade operation name (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        bucket: str | None = None,
        key: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.bucket = bucket
        self.key = key
        self.operation = operation

    def __str__(self) -> str:
        parts = [self.message]
        if self.operation:
            parts.append(f"operation={self.operation}")
        if self.bucket:
            parts.append(f"bucket={self.bucket}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)


class NotFoundError(DocumentStoreError):
    """Raised when an object, an index entry, or an index target is missing."""

    def __init__(
        self,
        message: str = "Object not found",
        *,
        bucket: str | None = None,
        key: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key, operation=operation)


class ConflictError(DocumentStoreError):
    """Raised when a unique value is already owned by another entity.

    Only reflects what was observed at check time. Two concurrent writers can
    both pass the check; see IndexManager.create_index.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        bucket: str | None = None,
        key: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key, operation=operation)
        self.field = field


class CorruptObjectError(DocumentStoreError):
    """Raised when a stored payload exists but cannot be decoded."""

    def __init__(
        self,
        message: str = "Stored object is not decodable",
        *,
        bucket: str | None = None,
        key: str | None = None,
        operation: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key, operation=operation)
        self.cause = cause


class StoreUnavailableError(DocumentStoreError):
    """Raised when the object store itself fails (network, disk, credentials)."""

    def __init__(
        self,
        message: str = "Object store unavailable",
        *,
        bucket: str | None = None,
        key: str | None = None,
        operation: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key, operation=operation)
        self.cause = cause


class InvalidKeyError(DocumentStoreError):
    """Raised when a key contains path traversal or unsafe characters."""

    def __init__(
        self,
        message: str = "Invalid key: path traversal detected",
        *,
        bucket: str | None = None,
        key: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key, operation=operation)


class OperationCancelledError(DocumentStoreError):
    """Raised when an operation's deadline passed or it was cancelled.

    Writes already issued by a multi-step operation are left in place.
    """

    def __init__(
        self,
        message: str = "Operation cancelled",
        *,
        bucket: str | None = None,
        key: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key, operation=operation)
