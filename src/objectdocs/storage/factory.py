"""Object store backend selection."""

from __future__ import annotations

import logging

from objectdocs.config import ConfigError, StoreBackend, StoreConfig, load_config
from objectdocs.storage.filesystem_store import FilesystemObjectStore
from objectdocs.storage.memory_store import InMemoryObjectStore
from objectdocs.storage.object_store import ObjectStore
from objectdocs.storage.s3_store import S3ObjectStore

logger = logging.getLogger(__name__)


def get_object_store(config: StoreConfig | None = None) -> ObjectStore:
    """Build the ObjectStore selected by config.backend.

    Args:
        config: Store configuration. Loaded from the environment if None.

    Returns:
        A ready-to-use ObjectStore.

    Raises:
        ConfigError: If the backend is not recognised.
    """
    if config is None:
        config = load_config()

    logger.info("Using %s object store backend", config.backend.value)

    if config.backend == StoreBackend.S3:
        return S3ObjectStore.from_config(config)
    if config.backend == StoreBackend.FILESYSTEM:
        return FilesystemObjectStore(base_dir=config.base_dir)
    if config.backend == StoreBackend.MEMORY:
        return InMemoryObjectStore()

    raise ConfigError(f"Unsupported object store backend: {config.backend}")
