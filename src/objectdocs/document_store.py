"""DocumentStore facade.

Bundles one ObjectStore with the users, posts and files repositories,
each bound to its configured bucket.

Example:
    store = DocumentStore.connect(load_config())
    alice = store.users.create(User(username="alice", email="a@x"))
    page = store.users.list(PageRequest.of(1, 10))
"""

from __future__ import annotations

import logging

from objectdocs.config import StoreConfig, load_config
from objectdocs.errors import DocumentStoreError
from objectdocs.repositories.files import FilesRepository
from objectdocs.repositories.posts import PostsRepository
from objectdocs.repositories.users import UsersRepository
from objectdocs.storage.factory import get_object_store
from objectdocs.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


class DocumentStore:
    """Entry point for entity CRUD over an object store.

    Construction does no I/O. Call ensure_buckets() (or use connect()) before
    the first write against a fresh S3/MinIO deployment.
    """

    def __init__(
        self,
        config: StoreConfig | None = None,
        *,
        store: ObjectStore | None = None,
    ) -> None:
        """Initialize the document store.

        Args:
            config: Bucket names and backend settings. Loaded from the
                environment if None.
            store: Object store to use instead of building one from config.
        """
        self._config = config if config is not None else load_config()
        self._store = store if store is not None else get_object_store(self._config)

        options = {
            "count_mode": self._config.count_mode,
            "cascade_index_delete": self._config.cascade_index_delete,
        }
        self._users = UsersRepository(self._store, self._config.users_bucket, **options)
        self._posts = PostsRepository(self._store, self._config.posts_bucket, **options)
        self._files = FilesRepository(self._store, self._config.files_bucket, **options)

    @classmethod
    def connect(
        cls,
        config: StoreConfig | None = None,
        *,
        store: ObjectStore | None = None,
    ) -> DocumentStore:
        """Build a DocumentStore and make sure its buckets exist."""
        document_store = cls(config, store=store)
        document_store.ensure_buckets()
        return document_store

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def users(self) -> UsersRepository:
        return self._users

    @property
    def posts(self) -> PostsRepository:
        return self._posts

    @property
    def files(self) -> FilesRepository:
        return self._files

    @property
    def backend_name(self) -> str:
        return self._store.backend_name

    def ensure_buckets(self) -> list[str]:
        """Create any missing bucket.

        Returns:
            Names of the buckets that were created.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        return [bucket for bucket in self._config.buckets if self._store.ensure_bucket(bucket)]

    def ping(self) -> bool:
        """Reachability probe; never raises for store failures."""
        try:
            return self._store.ping()
        except DocumentStoreError as e:
            logger.warning("Object store ping failed: %s", e)
            return False

    def health(self) -> dict[str, str]:
        """Health summary: status "ok" or "degraded" plus the backend name."""
        return {
            "status": "ok" if self.ping() else "degraded",
            "backend": self.backend_name,
        }
