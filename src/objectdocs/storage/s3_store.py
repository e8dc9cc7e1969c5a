"""S3-compatible object store backend (AWS S3, MinIO).

Wraps a boto3 S3 client. Retries are left to botocore's retry configuration;
this module never retries on its own. Errors are mapped onto the package
taxonomy:

- NoSuchKey / 404 / NotFound on an object -> NotFoundError
- every other ClientError and all transport errors -> StoreUnavailableError
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from objectdocs.context import OperationContext, check_context
from objectdocs.errors import NotFoundError, StoreUnavailableError
from objectdocs.storage.models import ObjectInfo, StoredObject
from objectdocs.storage.object_store import ObjectStore
from objectdocs.storage.tracing import traced_storage_operation

if TYPE_CHECKING:
    from objectdocs.config import StoreConfig

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})
_DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def build_s3_client(config: StoreConfig, *, request_timeout_s: float = 10.0) -> Any:
    """Create a boto3 S3 client for the configured endpoint.

    Path-style addressing is forced so MinIO endpoints without wildcard DNS work.
    """
    session = boto3.session.Session(
        aws_access_key_id=config.access_key,
        aws_secret_access_key=config.secret_key,
        region_name=config.region,
    )
    return session.client(
        "s3",
        endpoint_url=config.endpoint_url,
        config=BotoConfig(
            signature_version="s3v4",
            connect_timeout=request_timeout_s,
            read_timeout=request_timeout_s,
            retries={"max_attempts": 3, "mode": "standard"},
            s3={"addressing_style": "path"},
        ),
    )


class S3ObjectStore(ObjectStore):
    """Object store backed by an S3-compatible service.

    Etags are the service's ETag header values with surrounding quotes removed.
    """

    def __init__(self, client: Any, *, region: str = "us-east-1") -> None:
        """Initialize with a boto3 S3 client (or a compatible stand-in).

        Args:
            client: boto3 S3 client.
            region: Region used as LocationConstraint when creating buckets.
        """
        self._client = client
        self._region = region

    @classmethod
    def from_config(cls, config: StoreConfig) -> S3ObjectStore:
        """Build a store from StoreConfig endpoint and credentials."""
        logger.debug("Creating S3 client for endpoint %s", config.endpoint_url)
        return cls(build_s3_client(config), region=config.region)

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "s3"

    def _unavailable(
        self,
        error: Exception,
        *,
        operation: str,
        bucket: str,
        key: str | None = None,
    ) -> StoreUnavailableError:
        return StoreUnavailableError(
            message=f"S3 {operation} failed: {error}",
            bucket=bucket,
            key=key,
            operation=operation,
            cause=error,
        )

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
        try:
            response = self._client.put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentLength=len(data),
                ContentType=content_type or _DEFAULT_CONTENT_TYPE,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._unavailable(e, operation="put", bucket=bucket, key=key) from e

        etag = str(response.get("ETag", "")).strip('"')
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
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
            body_stream = response["Body"]
            try:
                body = body_stream.read()
            finally:
                body_stream.close()
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise NotFoundError(bucket=bucket, key=key, operation="get") from e
            raise self._unavailable(e, operation="get", bucket=bucket, key=key) from e
        except BotoCoreError as e:
            raise self._unavailable(e, operation="get", bucket=bucket, key=key) from e

        return StoredObject(
            info=ObjectInfo(
                bucket=bucket,
                key=key,
                etag=str(response.get("ETag", "")).strip('"'),
                size_bytes=len(body),
                content_type=response.get("ContentType"),
            ),
            body=body,
        )

    @traced_storage_operation("list")
    def list(
        self,
        bucket: str,
        prefix: str = "",
        *,
        ctx: OperationContext | None = None,
    ) -> Iterator[str]:
        """Iterate keys under prefix, fetching one ListObjectsV2 page at a time."""
        check_context(ctx, operation="list", bucket=bucket, key=prefix)
        return self._iter_keys(bucket, prefix, ctx)

    def _iter_keys(
        self,
        bucket: str,
        prefix: str,
        ctx: OperationContext | None,
    ) -> Iterator[str]:
        paginator = self._client.get_paginator("list_objects_v2")
        pages = paginator.paginate(Bucket=bucket, Prefix=prefix)
        try:
            for page in pages:
                for item in page.get("Contents", []):
                    yield item["Key"]
                check_context(ctx, operation="list", bucket=bucket, key=prefix)
        except (ClientError, BotoCoreError) as e:
            raise self._unavailable(e, operation="list", bucket=bucket, key=prefix) from e

    @traced_storage_operation("delete")
    def delete(
        self,
        bucket: str,
        key: str,
        *,
        ctx: OperationContext | None = None,
    ) -> None:
        """Delete an object. S3 reports success for missing keys."""
        check_context(ctx, operation="delete", bucket=bucket, key=key)
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return
            raise self._unavailable(e, operation="delete", bucket=bucket, key=key) from e
        except BotoCoreError as e:
            raise self._unavailable(e, operation="delete", bucket=bucket, key=key) from e
        logger.debug("Deleted object: bucket=%s key=%s", bucket, key)

    def ensure_bucket(self, bucket: str) -> bool:
        try:
            self._client.head_bucket(Bucket=bucket)
            return False
        except ClientError as e:
            if _error_code(e) not in ("404", "NoSuchBucket", "NotFound"):
                raise self._unavailable(e, operation="ensure_bucket", bucket=bucket) from e
        except BotoCoreError as e:
            raise self._unavailable(e, operation="ensure_bucket", bucket=bucket) from e

        kwargs: dict[str, Any] = {"Bucket": bucket}
        if self._region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self._region}
        try:
            self._client.create_bucket(**kwargs)
        except ClientError as e:
            if _error_code(e) in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                return False
            raise self._unavailable(e, operation="ensure_bucket", bucket=bucket) from e
        except BotoCoreError as e:
            raise self._unavailable(e, operation="ensure_bucket", bucket=bucket) from e

        logger.info("Created bucket %s", bucket)
        return True

    def ping(self) -> bool:
        try:
            self._client.list_buckets()
        except (ClientError, BotoCoreError) as e:
            logger.warning("S3 endpoint unreachable: %s", e)
            return False
        return True
