"""objectdocs configuration.

All settings come from environment variables and are loaded once into an
immutable StoreConfig. Invalid values fail closed with ConfigError.

Environment Variables:
    OBJECTDOCS_STORE_BACKEND: "s3", "filesystem" or "memory" (default: "s3")
    OBJECTDOCS_ENDPOINT: S3/MinIO endpoint host:port (default: "localhost:9000")
    OBJECTDOCS_ACCESS_KEY: Access key id (default: "minioadmin")
    OBJECTDOCS_SECRET_KEY: Secret access key (default: "minioadmin123")
    OBJECTDOCS_USE_SSL: Use https for the endpoint (default: false)
    OBJECTDOCS_REGION: Bucket region (default: "us-east-1")
    OBJECTDOCS_USERS_BUCKET: Users bucket name (default: "users")
    OBJECTDOCS_POSTS_BUCKET: Posts bucket name (default: "posts")
    OBJECTDOCS_FILES_BUCKET: Files bucket name (default: "files")
    OBJECTDOCS_BASE_DIR: Base directory for the filesystem backend
        (default: tempfile.gettempdir() / objectdocs_objects)
    OBJECTDOCS_COUNT_MODE: "scan" or "counter" (default: "scan")
    OBJECTDOCS_CASCADE_INDEX_DELETE: Remove owned index entries on delete
        (default: false)
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TypeVar

E = TypeVar("E", bound=StrEnum)

OBJECTDOCS_STORE_BACKEND_ENV = "OBJECTDOCS_STORE_BACKEND"
OBJECTDOCS_ENDPOINT_ENV = "OBJECTDOCS_ENDPOINT"
OBJECTDOCS_ACCESS_KEY_ENV = "OBJECTDOCS_ACCESS_KEY"
OBJECTDOCS_SECRET_KEY_ENV = "OBJECTDOCS_SECRET_KEY"
OBJECTDOCS_USE_SSL_ENV = "OBJECTDOCS_USE_SSL"
OBJECTDOCS_REGION_ENV = "OBJECTDOCS_REGION"
OBJECTDOCS_USERS_BUCKET_ENV = "OBJECTDOCS_USERS_BUCKET"
OBJECTDOCS_POSTS_BUCKET_ENV = "OBJECTDOCS_POSTS_BUCKET"
OBJECTDOCS_FILES_BUCKET_ENV = "OBJECTDOCS_FILES_BUCKET"
OBJECTDOCS_BASE_DIR_ENV = "OBJECTDOCS_BASE_DIR"
OBJECTDOCS_COUNT_MODE_ENV = "OBJECTDOCS_COUNT_MODE"
OBJECTDOCS_CASCADE_INDEX_DELETE_ENV = "OBJECTDOCS_CASCADE_INDEX_DELETE"


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


class StoreBackend(StrEnum):
    """Object store backend selector."""

    S3 = "s3"
    FILESYSTEM = "filesystem"
    MEMORY = "memory"


class CountMode(StrEnum):
    """How listings compute their total."""

    SCAN = "scan"
    COUNTER = "counter"


def _default_base_dir() -> Path:
    return Path(tempfile.gettempdir()) / "objectdocs_objects"


@dataclass(frozen=True)
class StoreConfig:
    """Connection settings and bucket names for a DocumentStore.

    Attributes:
        backend: Which ObjectStore implementation to build.
        endpoint: S3/MinIO endpoint as host:port (scheme derived from use_ssl).
        access_key: Access key id.
        secret_key: Secret access key.
        use_ssl: Whether the endpoint speaks https.
        region: Region used for signing and bucket creation.
        users_bucket: Bucket holding users and their indexes.
        posts_bucket: Bucket holding posts and their indexes.
        files_bucket: Bucket holding file content, metadata and indexes.
        base_dir: Root directory for the filesystem backend.
        count_mode: Listing totals by full scan or by counter object.
        cascade_index_delete: Track and remove owned index entries on delete.
    """

    backend: StoreBackend = StoreBackend.S3
    endpoint: str = "localhost:9000"
    access_key: str = "minioadmin"
    secret_key: str = field(default="minioadmin123", repr=False)
    use_ssl: bool = False
    region: str = "us-east-1"
    users_bucket: str = "users"
    posts_bucket: str = "posts"
    files_bucket: str = "files"
    base_dir: Path = field(default_factory=_default_base_dir)
    count_mode: CountMode = CountMode.SCAN
    cascade_index_delete: bool = False

    @property
    def endpoint_url(self) -> str:
        """Endpoint with scheme, as boto3 expects it."""
        if self.endpoint.startswith(("http://", "https://")):
            return self.endpoint
        scheme = "https" if self.use_ssl else "http"
        return f"{scheme}://{self.endpoint}"

    @property
    def buckets(self) -> tuple[str, str, str]:
        return (self.users_bucket, self.posts_bucket, self.files_bucket)


def _get_env_str(env: Mapping[str, str], key: str, default: str) -> str:
    """Get a non-empty string from the environment, else the default."""
    value = env.get(key, "").strip()
    return value or default


def _get_env_bool(env: Mapping[str, str], key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = env.get(key, "").strip().lower()
    if val == "":
        return default
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no"):
        return False
    raise ConfigError(f"Invalid boolean for {key}: {val!r}")


def _get_env_choice(env: Mapping[str, str], key: str, enum_cls: type[E], default: E) -> E:
    """Get a StrEnum member from the environment, else the default."""
    val = env.get(key, "").strip().lower()
    if not val:
        return default
    try:
        return enum_cls(val)
    except ValueError as e:
        valid = sorted(m.value for m in enum_cls)
        raise ConfigError(f"Invalid value for {key}: {val!r}. Valid options: {valid}") from e


def load_config(env: Mapping[str, str] | None = None) -> StoreConfig:
    """Load StoreConfig from environment variables.

    Args:
        env: Mapping to read from. Defaults to os.environ.

    Returns:
        Populated StoreConfig.

    Raises:
        ConfigError: If a value cannot be parsed or bucket names collide.
    """
    if env is None:
        env = os.environ

    base_dir_raw = env.get(OBJECTDOCS_BASE_DIR_ENV, "").strip()

    config = StoreConfig(
        backend=_get_env_choice(env, OBJECTDOCS_STORE_BACKEND_ENV, StoreBackend, StoreBackend.S3),
        endpoint=_get_env_str(env, OBJECTDOCS_ENDPOINT_ENV, "localhost:9000"),
        access_key=_get_env_str(env, OBJECTDOCS_ACCESS_KEY_ENV, "minioadmin"),
        secret_key=_get_env_str(env, OBJECTDOCS_SECRET_KEY_ENV, "minioadmin123"),
        use_ssl=_get_env_bool(env, OBJECTDOCS_USE_SSL_ENV, False),
        region=_get_env_str(env, OBJECTDOCS_REGION_ENV, "us-east-1"),
        users_bucket=_get_env_str(env, OBJECTDOCS_USERS_BUCKET_ENV, "users"),
        posts_bucket=_get_env_str(env, OBJECTDOCS_POSTS_BUCKET_ENV, "posts"),
        files_bucket=_get_env_str(env, OBJECTDOCS_FILES_BUCKET_ENV, "files"),
        base_dir=Path(base_dir_raw) if base_dir_raw else _default_base_dir(),
        count_mode=_get_env_choice(env, OBJECTDOCS_COUNT_MODE_ENV, CountMode, CountMode.SCAN),
        cascade_index_delete=_get_env_bool(env, OBJECTDOCS_CASCADE_INDEX_DELETE_ENV, False),
    )

    if len(set(config.buckets)) != len(config.buckets):
        raise ConfigError(f"Bucket names must be distinct: {list(config.buckets)}")

    return config
