"""Filesystem object store backend.

Provides local filesystem storage for development with:
- One directory per bucket
- Path traversal protection
- Atomic writes via temp file + rename
- A JSON sidecar per object holding its etag and content type

Layout:
    {base_dir}/{bucket}/data/{key}        # content
    {base_dir}/{bucket}/meta/{key}.json   # ObjectInfo sidecar

A key may not also be a directory prefix of another key on this backend
("a" and "a/b" cannot coexist); the key layouts used by the repositories never
do that.

Environment Variables:
    OBJECTDOCS_BASE_DIR: Base directory for storage
        (default: tempfile.gettempdir() / objectdocs_objects)
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import tempfile
import uuid
from collections.abc import Iterator
from pathlib import Path

from objectdocs.config import OBJECTDOCS_BASE_DIR_ENV
from objectdocs.context import OperationContext, check_context
from objectdocs.errors import InvalidKeyError, NotFoundError, StoreUnavailableError
from objectdocs.storage.models import ObjectInfo, StoredObject
from objectdocs.storage.object_store import ObjectStore
from objectdocs.storage.tracing import traced_storage_operation

logger = logging.getLogger(__name__)

_BUCKET_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.\-]{1,62}$")

_SAFE_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9_\-./@%+]+$")

_DATA_DIR = "data"
_META_DIR = "meta"
_META_SUFFIX = ".json"
_TMP_MARKER = ".tmp-"


def _is_path_traversal(key: str) -> bool:
    """Check if a key contains path traversal sequences.

    Detects:
    - ".." and "." segments, empty segments
    - Absolute paths (starting with / or ~)
    - Backslashes and null bytes
    - Characters outside the safe key alphabet
    """
    if not key:
        return True

    if "\x00" in key or "\\" in key:
        return True

    if key.startswith("/") or key.startswith("~"):
        return True

    segments = key.split("/")
    if any(segment in ("", ".", "..") for segment in segments):
        return True

    if _TMP_MARKER in key:
        return True

    return not bool(_SAFE_KEY_PATTERN.match(key))


def _validate_key(bucket: str, key: str, operation: str) -> None:
    """Validate object key and raise if invalid."""
    if _is_path_traversal(key):
        raise InvalidKeyError(
            message="Invalid key: path traversal or unsafe characters detected",
            bucket=bucket,
            key=key,
            operation=operation,
        )


class FilesystemObjectStore(ObjectStore):
    """Filesystem-based object storage implementation.

    Etags are SHA256 digests of the content, so writing identical bytes
    twice yields the same etag.
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        """Initialize filesystem storage.

        Args:
            base_dir: Base directory for storage. If None, uses
                OBJECTDOCS_BASE_DIR env var or OS temp directory.
        """
        if base_dir is None:
            base_dir = os.environ.get(OBJECTDOCS_BASE_DIR_ENV)

        if base_dir is None:
            base_dir = Path(tempfile.gettempdir()) / "objectdocs_objects"
        else:
            base_dir = Path(base_dir)

        self._base_dir = base_dir.resolve()
        logger.debug("FilesystemObjectStore initialized with base_dir=%s", self._base_dir)

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "filesystem"

    @property
    def base_dir(self) -> Path:
        """Return the base directory path."""
        return self._base_dir

    def _bucket_dir(self, bucket: str) -> Path:
        if not _BUCKET_PATTERN.match(bucket):
            raise InvalidKeyError(message=f"Invalid bucket name: {bucket}", bucket=bucket)
        return self._base_dir / bucket

    def _paths(self, bucket: str, key: str, operation: str) -> tuple[Path, Path]:
        """Return (data_path, meta_path) for a key, validating inputs."""
        _validate_key(bucket, key, operation)
        bucket_dir = self._bucket_dir(bucket)
        data_path = bucket_dir / _DATA_DIR / key
        meta_path = bucket_dir / _META_DIR / f"{key}{_META_SUFFIX}"

        # Defense in depth: both paths must stay inside the bucket directory.
        for path in (data_path, meta_path):
            try:
                path.resolve().relative_to(bucket_dir.resolve())
            except ValueError as e:
                raise InvalidKeyError(
                    message="Path resolves outside storage base directory",
                    bucket=bucket,
                    key=key,
                    operation=operation,
                ) from e
        return data_path, meta_path

    def _write_atomic(self, path: Path, data: bytes, bucket: str, key: str) -> None:
        """Write bytes to path via a temp file in the same directory."""
        tmp_file = path.parent / f"{path.name}{_TMP_MARKER}{uuid.uuid4().hex}"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_file.write_bytes(data)
            tmp_file.replace(path)
        except OSError as e:
            tmp_file.unlink(missing_ok=True)
            raise StoreUnavailableError(
                message=f"Failed to write object: {e}",
                bucket=bucket,
                key=key,
                operation="put",
                cause=e,
            ) from e

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
        data_path, meta_path = self._paths(bucket, key, "put")

        info = ObjectInfo(
            bucket=bucket,
            key=key,
            etag=hashlib.sha256(data).hexdigest(),
            size_bytes=len(data),
            content_type=content_type,
        )

        self._write_atomic(data_path, data, bucket, key)
        self._write_atomic(meta_path, json.dumps(info.to_dict()).encode("utf-8"), bucket, key)

        logger.debug("Stored object: bucket=%s key=%s etag=%s", bucket, key, info.etag)
        return info

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
        data_path, meta_path = self._paths(bucket, key, "get")

        if not data_path.is_file():
            raise NotFoundError(bucket=bucket, key=key, operation="get")

        try:
            body = data_path.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(bucket=bucket, key=key, operation="get") from e
        except OSError as e:
            raise StoreUnavailableError(
                message=f"Failed to read object: {e}",
                bucket=bucket,
                key=key,
                operation="get",
                cause=e,
            ) from e

        info = self._read_info(meta_path, bucket, key, body)
        return StoredObject(info=info, body=body)

    def _read_info(self, meta_path: Path, bucket: str, key: str, body: bytes) -> ObjectInfo:
        """Read the sidecar, falling back to values derived from the body."""
        try:
            return ObjectInfo.from_dict(json.loads(meta_path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError, KeyError) as e:
            logger.warning("Failed to read metadata for bucket=%s key=%s: %s", bucket, key, e)
            return ObjectInfo(
                bucket=bucket,
                key=key,
                etag=hashlib.sha256(body).hexdigest(),
                size_bytes=len(body),
                content_type=None,
            )

    @traced_storage_operation("list")
    def list(
        self,
        bucket: str,
        prefix: str = "",
        *,
        ctx: OperationContext | None = None,
    ) -> Iterator[str]:
        """Iterate keys under prefix in lexicographic order."""
        check_context(ctx, operation="list", bucket=bucket, key=prefix)
        data_root = self._bucket_dir(bucket) / _DATA_DIR
        if not data_root.is_dir():
            return iter(())

        keys: list[str] = []
        try:
            for dirpath, _dirnames, filenames in os.walk(data_root):
                rel_dir = Path(dirpath).relative_to(data_root)
                for name in filenames:
                    if _TMP_MARKER in name:
                        continue
                    key = (rel_dir / name).as_posix() if rel_dir.parts else name
                    if key.startswith(prefix):
                        keys.append(key)
        except OSError as e:
            raise StoreUnavailableError(
                message=f"Failed to list objects: {e}",
                bucket=bucket,
                key=prefix,
                operation="list",
                cause=e,
            ) from e

        keys.sort()
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
        data_path, meta_path = self._paths(bucket, key, "delete")
        try:
            data_path.unlink(missing_ok=True)
            meta_path.unlink(missing_ok=True)
        except OSError as e:
            raise StoreUnavailableError(
                message=f"Failed to delete object: {e}",
                bucket=bucket,
                key=key,
                operation="delete",
                cause=e,
            ) from e

        bucket_dir = self._bucket_dir(bucket)
        self._prune_empty_dirs(data_path.parent, bucket_dir / _DATA_DIR)
        self._prune_empty_dirs(meta_path.parent, bucket_dir / _META_DIR)
        logger.debug("Deleted object: bucket=%s key=%s", bucket, key)

    def _prune_empty_dirs(self, start: Path, stop: Path) -> None:
        """Remove now-empty parent directories up to (not including) stop."""
        current = start
        while current != stop and stop in current.parents:
            try:
                current.rmdir()
            except OSError:
                return
            current = current.parent

    def ensure_bucket(self, bucket: str) -> bool:
        bucket_dir = self._bucket_dir(bucket)
        if bucket_dir.is_dir():
            return False
        try:
            (bucket_dir / _DATA_DIR).mkdir(parents=True, exist_ok=True)
            (bucket_dir / _META_DIR).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(
                message=f"Failed to create bucket directory: {e}",
                bucket=bucket,
                operation="ensure_bucket",
                cause=e,
            ) from e
        logger.info("Created bucket %s under %s", bucket, self._base_dir)
        return True

    def ping(self) -> bool:
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Filesystem store unreachable at %s: %s", self._base_dir, e)
            return False
        return os.access(self._base_dir, os.W_OK)
