"""Denormalized object counters.

Used only when StoreConfig.count_mode is "counter". A counter is a JSON
object {"count": n} at counters/{name}.json, adjusted with a read-modify-write
on create and delete. Without a conditional write two concurrent adjustments
can lose one update, so the count may drift from the real number of objects;
the scan mode stays exact.
"""

from __future__ import annotations

import logging

from objectdocs.codec import JSON_CONTENT_TYPE, decode, encode
from objectdocs.context import OperationContext
from objectdocs.errors import NotFoundError
from objectdocs.models.index import Counter
from objectdocs.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

COUNTER_ROOT = "counters/"


def counter_key(name: str) -> str:
    return f"{COUNTER_ROOT}{name}.json"


class CounterManager:
    """Reads and adjusts counter objects."""

    def __init__(self, store: ObjectStore) -> None:
        self._store = store

    def read(self, bucket: str, name: str, *, ctx: OperationContext | None = None) -> int:
        """Current count; a missing counter reads as 0."""
        key = counter_key(name)
        try:
            stored = self._store.get(bucket, key, ctx=ctx)
        except NotFoundError:
            return 0
        return decode(stored.body, Counter, bucket=bucket, key=key).count

    def adjust(
        self,
        bucket: str,
        name: str,
        delta: int,
        *,
        ctx: OperationContext | None = None,
    ) -> int:
        """Add delta to the counter (never below zero) and return the new value."""
        value = max(0, self.read(bucket, name, ctx=ctx) + delta)
        self._store.put(
            bucket,
            counter_key(name),
            encode(Counter(count=value)),
            content_type=JSON_CONTENT_TYPE,
            ctx=ctx,
        )
        logger.debug("Counter %s/%s adjusted by %d to %d", bucket, name, delta, value)
        return value
