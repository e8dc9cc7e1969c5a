"""Object store interface definition.

Provides the ObjectStore base class every backend implements. The contract is
deliberately small: put/get/list/delete of byte blobs keyed by bucket+key.
There is no conditional write, no transaction and no server-side count.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import TYPE_CHECKING

from objectdocs.errors import NotFoundError
from objectdocs.storage.models import ObjectInfo, StoredObject

if TYPE_CHECKING:
    from objectdocs.context import OperationContext


class ObjectStore(ABC):
    """Abstract base class for object storage backends.

    Implementations:
    - S3ObjectStore: S3 / MinIO via boto3 (production)
    - FilesystemObjectStore: Local filesystem (dev)
    - InMemoryObjectStore: Process-local dict (tests)

    Every method accepts an optional OperationContext and must check it
    before doing I/O.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability.

        Returns:
            Backend name string (e.g., "s3", "filesystem", "memory").
        """
        ...

    @abstractmethod
    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
        ctx: OperationContext | None = None,
    ) -> ObjectInfo:
        """Store an object, replacing any existing object at the key.

        Args:
            bucket: Bucket name.
            key: Object key.
            data: Object content as bytes.
            content_type: Optional MIME type of the content.
            ctx: Optional deadline/cancellation context.

        Returns:
            ObjectInfo including the opaque etag of this write.

        Raises:
            StoreUnavailableError: If the backend cannot complete the write.
            OperationCancelledError: If ctx is cancelled or expired.
        """
        ...

    @abstractmethod
    def get(
        self,
        bucket: str,
        key: str,
        *,
        ctx: OperationContext | None = None,
    ) -> StoredObject:
        """Retrieve an object.

        Raises:
            NotFoundError: If no object exists at the key.
            StoreUnavailableError: If the backend cannot complete the read.
            OperationCancelledError: If ctx is cancelled or expired.
        """
        ...

    @abstractmethod
    def list(
        self,
        bucket: str,
        prefix: str = "",
        *,
        ctx: OperationContext | None = None,
    ) -> Iterator[str]:
        """Iterate keys starting with prefix in ascending lexicographic order.

        The iterator is lazy and single-pass. Backends may fetch keys in
        pages; resuming a partially consumed iterator is not supported.

        Raises:
            StoreUnavailableError: If the backend cannot complete the listing.
            OperationCancelledError: If ctx is cancelled or expired.
        """
        ...

    @abstractmethod
    def delete(
        self,
        bucket: str,
        key: str,
        *,
        ctx: OperationContext | None = None,
    ) -> None:
        """Delete an object. Deleting a missing key succeeds.

        Raises:
            StoreUnavailableError: If the backend cannot complete the deletion.
            OperationCancelledError: If ctx is cancelled or expired.
        """
        ...

    @abstractmethod
    def ensure_bucket(self, bucket: str) -> bool:
        """Create the bucket if it does not exist.

        Returns:
            True if the bucket was created, False if it already existed.
        """
        ...

    @abstractmethod
    def ping(self) -> bool:
        """Cheap reachability probe for health reporting. Never raises."""
        ...

    def exists(
        self,
        bucket: str,
        key: str,
        *,
        ctx: OperationContext | None = None,
    ) -> bool:
        """Return True if an object exists at the key."""
        try:
            self.get(bucket, key, ctx=ctx)
        except NotFoundError:
            return False
        return True
