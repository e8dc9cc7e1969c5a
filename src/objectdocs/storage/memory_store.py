"""In-memory object store backend.

Process-local storage used by tests and local development. Each individual
call is atomic with respect to other threads; sequences of calls are not,
exactly like a remote object store.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass

from objectdocs.context import OperationContext, check_context
from objectdocs.errors import NotFoundError, StoreUnavailableError
from objectdocs.storage.models import ObjectInfo, StoredObject
from objectdocs.storage.object_store import ObjectStore
from objectdocs.storage.tracing import traced_storage_operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    body: bytes
    content_type: str | None
    etag: str


class InMemoryObjectStore(ObjectStore):
    """Dict-backed object store.

    Buckets are created implicitly on first put unless strict_buckets is set,
    in which case writes to an unknown bucket fail like a real backend would.
    """

    def __init__(self, *, strict_buckets: bool = False) -> None:
        self._buckets: dict[str, dict[str, _Entry]] = {}
        self._lock = threading.Lock()
        self._strict_buckets = strict_buckets

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "memory"

    def _bucket_for_write(self, bucket: str, key: str) -> dict[str, _Entry]:
        objects = self._buckets.get(bucket)
        if objects is None:
            if self._strict_buckets:
                raise StoreUnavailableError(
                    "Bucket does not exist",
                    bucket=bucket,
                    key=key,
                    operation="put",
                )
            objects = self._buckets.setdefault(bucket, {})
        return objects

    @traced_storage_operation("put")
    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
        ctx: OperationContext | None = None,
    ) -> ObjectInfo:
        """Store an object."""
        check_context(ctx, operation="put", bucket=bucket, key=key)
        etag = hashlib.sha256(data).hexdigest()
        with self._lock:
            objects = self._bucket_for_write(bucket, key)
            objects[key] = _Entry(body=bytes(data), content_type=content_type, etag=etag)

        logger.debug("Stored object: bucket=%s key=%s etag=%s", bucket, key, etag)
        return ObjectInfo(
            bucket=bucket,
            key=key,
            etag=etag,
            size_bytes=len(data),
            content_type=content_type,
        )

    @traced_storage_operation("get")
    def get(
        self,
        bucket: str,
        key: str,
        *,
        ctx: OperationContext | None = None,
    ) -> StoredObject:
        """Retrieve an object."""
        check_context(ctx, operation="get", bucket=bucket, key=key)
        with self._lock:
            entry = self._buckets.get(bucket, {}).get(key)

        if entry is None:
            raise NotFoundError(bucket=bucket, key=key, operation="get")

        return StoredObject(
            info=ObjectInfo(
                bucket=bucket,
                key=key,
                etag=entry.etag,
                size_bytes=len(entry.body),
                content_type=entry.content_type,
            ),
            body=entry.body,
        )

    @traced_storage_operation("list")
    def list(
        self,
        bucket: str,
        prefix: str = "",
        *,
        ctx: OperationContext | None = None,
    ) -> Iterator[str]:
        """Iterate keys under prefix from a snapshot taken at call time."""
        check_context(ctx, operation="list", bucket=bucket, key=prefix)
        with self._lock:
            keys = sorted(k for k in self._buckets.get(bucket, {}) if k.startswith(prefix))
        return iter(keys)

    @traced_storage_operation("delete")
    def delete(
        self,
        bucket: str,
        key: str,
        *,
        ctx: OperationContext | None = None,
    ) -> None:
        """Delete an object if present."""
        check_context(ctx, operation="delete", bucket=bucket, key=key)
        with self._lock:
            self._buckets.get(bucket, {}).pop(key, None)
        logger.debug("Deleted object: bucket=%s key=%s", bucket, key)

    def ensure_bucket(self, bucket: str) -> bool:
        with self._lock:
            if bucket in self._buckets:
                return False
            self._buckets[bucket] = {}
        logger.info("Created bucket %s", bucket)
        return True

    def ping(self) -> bool:
        return True
