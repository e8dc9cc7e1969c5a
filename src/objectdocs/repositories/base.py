"""Shared plumbing for the entity repositories.

Each repository is a stateless pipeline over one bucket: nothing is cached
between calls and there is no session or transaction object.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Generic, TypeVar

from objectdocs.codec import JSON_CONTENT_TYPE, EntityCodec
from objectdocs.config import CountMode
from objectdocs.context import OperationContext
from objectdocs.counters import CounterManager
from objectdocs.errors import NotFoundError
from objectdocs.indexes import IndexManager
from objectdocs.models.base import StoredModel
from objectdocs.models.pagination import Page, PageRequest
from objectdocs.pagination import paginate
from objectdocs.storage.models import ObjectInfo
from objectdocs.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=StoredModel)


def new_id() -> str:
    """Fresh UUID4 string; ids are never reused."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(UTC)


class BaseRepository(ABC, Generic[M]):
    """Loading, saving, listing and bookkeeping common to all entities.

    Subclasses set `model` and `counter_name`.
    """

    model: type[M]
    counter_name: str

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        *,
        count_mode: CountMode = CountMode.SCAN,
        cascade_index_delete: bool = False,
    ) -> None:
        """Initialize the repository.

        Args:
            store: Object store holding the bucket.
            bucket: Bucket for primary objects and their index entries.
            count_mode: Listing totals by full scan or by counter object.
            cascade_index_delete: Keep a reverse index per entity and remove
                its entries on delete.
        """
        self._store = store
        self._bucket = bucket
        self._codec = EntityCodec(self.model)
        self._indexes = IndexManager(store)
        self._counters = CounterManager(store)
        self._count_mode = count_mode
        self._cascade_index_delete = cascade_index_delete

    @property
    def bucket(self) -> str:
        return self._bucket

    def _load(self, key: str, *, ctx: OperationContext | None = None) -> M:
        """Get and decode the object at key, filling in its etag.

        Raises:
            NotFoundError: If the object is absent.
            CorruptObjectError: If the object cannot be decoded.
        """
        stored = self._store.get(self._bucket, key, ctx=ctx)
        entity = self._codec.decode(stored.body, bucket=self._bucket, key=key)
        entity.etag = stored.info.etag
        return entity

    def _save(self, key: str, entity: M, *, ctx: OperationContext | None = None) -> ObjectInfo:
        """Encode and overwrite the object at key, recording the new etag."""
        entity.etag = None
        info = self._store.put(
            self._bucket,
            key,
            self._codec.encode(entity),
            content_type=JSON_CONTENT_TYPE,
            ctx=ctx,
        )
        entity.etag = info.etag
        return info

    def _list(
        self,
        prefix: str,
        request: PageRequest,
        *,
        key_filter: Callable[[str], bool] | None = None,
        ctx: OperationContext | None = None,
    ) -> Page[M]:
        """Paginate primary objects under prefix.

        An object deleted between the listing and its load still counts toward
        the total but is left out of the page.
        """
        return paginate(
            self._store,
            self._bucket,
            prefix,
            request,
            lambda key: self._load_listed(key, ctx=ctx),
            key_filter=key_filter,
            ctx=ctx,
            total=self._counted_total(ctx=ctx),
        )

    def _list_index(
        self,
        prefix: str,
        request: PageRequest,
        *,
        ctx: OperationContext | None = None,
    ) -> Page[M]:
        """Paginate entities reachable through a non-unique index prefix.

        Entries whose entity is gone still count toward the total but are
        left out of the page, so a window can come back short.
        """
        return paginate(
            self._store,
            self._bucket,
            prefix,
            request,
            lambda key: self._load_indexed(key, ctx=ctx),
            ctx=ctx,
        )

    def _load_listed(self, key: str, *, ctx: OperationContext | None = None) -> M | None:
        try:
            return self._load(key, ctx=ctx)
        except NotFoundError:
            logger.warning("Listed object vanished: bucket=%s key=%s", self._bucket, key)
            return None

    def _load_indexed(self, entry_key: str, *, ctx: OperationContext | None = None) -> M | None:
        try:
            entry = self._indexes.resolve_entry(self._bucket, entry_key, ctx=ctx)
            return self._load(self._target_key(entry.primary_id, entry.owner_id), ctx=ctx)
        except NotFoundError:
            logger.warning(
                "Dangling index entry skipped: bucket=%s key=%s",
                self._bucket,
                entry_key,
            )
            return None

    @abstractmethod
    def _target_key(self, primary_id: str, owner_id: str | None) -> str:
        """Primary object key an index entry refers to."""
        ...

    def _counted_total(self, *, ctx: OperationContext | None = None) -> int | None:
        if self._count_mode != CountMode.COUNTER:
            return None
        return self._counters.read(self._bucket, self.counter_name, ctx=ctx)

    def _after_create(
        self,
        primary_id: str,
        index_keys: Iterable[str],
        *,
        ctx: OperationContext | None = None,
    ) -> None:
        if self._cascade_index_delete:
            self._indexes.record_owned(self._bucket, primary_id, index_keys, ctx=ctx)
        if self._count_mode == CountMode.COUNTER:
            self._counters.adjust(self._bucket, self.counter_name, 1, ctx=ctx)

    def _after_update(
        self,
        primary_id: str,
        index_keys: Iterable[str],
        *,
        ctx: OperationContext | None = None,
    ) -> None:
        if self._cascade_index_delete:
            self._indexes.record_owned(self._bucket, primary_id, index_keys, ctx=ctx)

    def _after_delete(self, primary_id: str, *, ctx: OperationContext | None = None) -> None:
        if self._cascade_index_delete:
            removed = self._indexes.cascade_delete(self._bucket, primary_id, ctx=ctx)
            logger.debug("Removed %d index entries for %s", removed, primary_id)
        if self._count_mode == CountMode.COUNTER:
            self._counters.adjust(self._bucket, self.counter_name, -1, ctx=ctx)
