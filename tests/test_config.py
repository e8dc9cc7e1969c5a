"""Tests for environment-driven configuration and backend selection."""

from __future__ import annotations

from pathlib import Path

import pytest

from objectdocs.config import (
    OBJECTDOCS_CASCADE_INDEX_DELETE_ENV,
    OBJECTDOCS_COUNT_MODE_ENV,
    OBJECTDOCS_ENDPOINT_ENV,
    OBJECTDOCS_STORE_BACKEND_ENV,
    OBJECTDOCS_USE_SSL_ENV,
    OBJECTDOCS_USERS_BUCKET_ENV,
    ConfigError,
    CountMode,
    StoreBackend,
    StoreConfig,
    load_config,
)
from objectdocs.storage import (
    FilesystemObjectStore,
    InMemoryObjectStore,
    S3ObjectStore,
    get_object_store,
)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults(self) -> None:
        config = load_config({})

        assert config.backend == StoreBackend.S3
        assert config.endpoint == "localhost:9000"
        assert config.access_key == "minioadmin"
        assert config.secret_key == "minioadmin123"
        assert config.use_ssl is False
        assert config.buckets == ("users", "posts", "files")
        assert config.count_mode == CountMode.SCAN
        assert config.cascade_index_delete is False

    def test_overrides(self) -> None:
        config = load_config(
            {
                OBJECTDOCS_STORE_BACKEND_ENV: "Memory",
                OBJECTDOCS_ENDPOINT_ENV: "minio:9000",
                OBJECTDOCS_USE_SSL_ENV: "yes",
                OBJECTDOCS_USERS_BUCKET_ENV: "app-users",
                OBJECTDOCS_COUNT_MODE_ENV: "counter",
                OBJECTDOCS_CASCADE_INDEX_DELETE_ENV: "1",
            }
        )

        assert config.backend == StoreBackend.MEMORY
        assert config.endpoint_url == "https://minio:9000"
        assert config.users_bucket == "app-users"
        assert config.count_mode == CountMode.COUNTER
        assert config.cascade_index_delete is True

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(OBJECTDOCS_ENDPOINT_ENV, "env-host:9000")

        assert load_config().endpoint == "env-host:9000"

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            (OBJECTDOCS_STORE_BACKEND_ENV, "dynamo"),
            (OBJECTDOCS_USE_SSL_ENV, "maybe"),
            (OBJECTDOCS_COUNT_MODE_ENV, "guess"),
        ],
    )
    def test_invalid_values(self, key: str, value: str) -> None:
        with pytest.raises(ConfigError):
            load_config({key: value})

    def test_bucket_names_must_differ(self) -> None:
        with pytest.raises(ConfigError, match="distinct"):
            load_config({OBJECTDOCS_USERS_BUCKET_ENV: "posts"})

    def test_secret_not_in_repr(self) -> None:
        assert "minioadmin123" not in repr(StoreConfig())

    def test_endpoint_with_scheme_kept(self) -> None:
        assert StoreConfig(endpoint="http://h:1").endpoint_url == "http://h:1"


class TestGetObjectStore:
    """Tests for backend selection."""

    def test_memory(self) -> None:
        assert isinstance(
            get_object_store(StoreConfig(backend=StoreBackend.MEMORY)), InMemoryObjectStore
        )

    def test_filesystem(self, temp_storage_dir: Path) -> None:
        store = get_object_store(
            StoreConfig(backend=StoreBackend.FILESYSTEM, base_dir=temp_storage_dir)
        )

        assert isinstance(store, FilesystemObjectStore)
        assert store.base_dir == temp_storage_dir.resolve()

    def test_s3(self) -> None:
        assert isinstance(get_object_store(StoreConfig()), S3ObjectStore)
