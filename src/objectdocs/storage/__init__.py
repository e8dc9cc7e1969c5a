"""objectdocs Object Storage Abstraction.

Flat bucket/key storage of byte blobs: put, get, prefix list, delete.

Backends:
- S3ObjectStore: S3 / MinIO via boto3
- FilesystemObjectStore: Local filesystem (dev)
- InMemoryObjectStore: Process-local (tests)

Environment Variables:
    OBJECTDOCS_STORE_BACKEND: "s3", "filesystem" or "memory" (default: "s3")
    OBJECTDOCS_OTEL_ENABLED: Emit OpenTelemetry spans per store call
"""

from objectdocs.storage.factory import get_object_store
from objectdocs.storage.filesystem_store import FilesystemObjectStore
from objectdocs.storage.memory_store import InMemoryObjectStore
from objectdocs.storage.models import ObjectInfo, StoredObject
from objectdocs.storage.object_store import ObjectStore
from objectdocs.storage.s3_store import S3ObjectStore

__all__ = [
    "FilesystemObjectStore",
    "InMemoryObjectStore",
    "ObjectInfo",
    "ObjectStore",
    "S3ObjectStore",
    "StoredObject",
    "get_object_store",
]
