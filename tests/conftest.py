"""Pytest configuration and fixtures for objectdocs tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from objectdocs.config import StoreBackend, StoreConfig
from objectdocs.context import OperationContext
from objectdocs.document_store import DocumentStore
from objectdocs.storage.filesystem_store import FilesystemObjectStore
from objectdocs.storage.memory_store import InMemoryObjectStore
from objectdocs.storage.tracing import OBJECTDOCS_OTEL_ENABLED_ENV


@pytest.fixture(autouse=True)
def disable_tracing(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep span emission off unless a test turns it on."""
    monkeypatch.delenv(OBJECTDOCS_OTEL_ENABLED_ENV, raising=False)


@pytest.fixture
def memory_config() -> StoreConfig:
    """Config selecting the in-memory backend with default bucket names."""
    return StoreConfig(backend=StoreBackend.MEMORY)


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    """Return a fresh in-memory object store."""
    return InMemoryObjectStore()


class VanishingListStore(InMemoryObjectStore):
    """In-memory store that deletes queued keys right after a listing snapshot.

    Reproduces another caller deleting objects while a page is being loaded.
    """

    def __init__(self) -> None:
        super().__init__()
        self.vanishing: list[tuple[str, str]] = []

    def list(
        self, bucket: str, prefix: str = "", *, ctx: OperationContext | None = None
    ) -> Iterator[str]:
        keys = super().list(bucket, prefix, ctx=ctx)
        while self.vanishing:
            vanished_bucket, vanished_key = self.vanishing.pop()
            self.delete(vanished_bucket, vanished_key)
        return keys


@pytest.fixture
def document_store(memory_config: StoreConfig, object_store: InMemoryObjectStore) -> DocumentStore:
    """DocumentStore over the in-memory object store, buckets created."""
    return DocumentStore.connect(memory_config, store=object_store)


@pytest.fixture
def temp_storage_dir() -> Iterator[Path]:
    """Create a temporary directory for filesystem store tests."""
    with tempfile.TemporaryDirectory(prefix="objectdocs_test_storage_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fs_store(temp_storage_dir: Path) -> Any:
    """Create a FilesystemObjectStore with a temp directory."""
    return FilesystemObjectStore(base_dir=temp_storage_dir)


@pytest.fixture
def vanishing_store() -> VanishingListStore:
    """Return an in-memory store that can drop keys mid-listing."""
    return VanishingListStore()
