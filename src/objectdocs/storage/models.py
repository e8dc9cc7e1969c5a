"""Object store data models.

Provides typed dataclasses for stored object metadata and content.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ObjectInfo:
    """Metadata returned for a stored object.

    Attributes:
        bucket: Bucket holding the object.
        key: Object key within the bucket.
        etag: Opaque version token for the write that produced this object.
            Returned to callers but never enforced on later writes.
        size_bytes: Size of the object body in bytes.
        content_type: MIME type recorded at put time, if any.
    """

    bucket: str
    key: str
    etag: str
    size_bytes: int
    content_type: str | None = None

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert metadata to dictionary for JSON serialization."""
        return {
            "bucket": self.bucket,
            "key": self.key,
            "etag": self.etag,
            "size_bytes": self.size_bytes,
            "content_type": self.content_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, str | int | None]) -> ObjectInfo:
        """Create metadata from dictionary."""
        size_raw = data.get("size_bytes")
        content_type_raw = data.get("content_type")
        return cls(
            bucket=str(data["bucket"]),
            key=str(data["key"]),
            etag=str(data["etag"]),
            size_bytes=int(size_raw) if size_raw is not None else 0,
            content_type=str(content_type_raw) if content_type_raw else None,
        )


@dataclass(frozen=True)
class StoredObject:
    """A stored object with metadata and body content.

    Attributes:
        info: Object metadata (bucket, key, etag, size, content type).
        body: Object content as bytes.
    """

    info: ObjectInfo
    body: bytes
