"""Secondary indexes emulated with pointer objects.

An index entry is a tiny JSON object {"primaryId": "..."} stored at a key
derived from an attribute value:

    unique dimension      indexes/{dimension}-{value}.json
    non-unique dimension  indexes/{dimension}-{value}/{primaryId}.json

Values are percent-encoded so every value is exactly one key segment.

The store offers no conditional write, so uniqueness is check-then-act:
create_index reads the key and writes it if absent. Two writers that both
read "absent" both write, and the later write wins. Callers that lose the race
are not told. Likewise a rename (replace_index) deletes the old entry before
writing the new one, and nothing restores the old entry if the second step
never happens.

Entity deletion does not touch index entries unless the optional reverse index
(OwnedIndexes) is kept; see record_owned / cascade_delete.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from urllib.parse import quote

from objectdocs.codec import JSON_CONTENT_TYPE, decode, encode
from objectdocs.context import OperationContext
from objectdocs.errors import (
    ConflictError,
    CorruptObjectError,
    NotFoundError,
    StoreUnavailableError,
)
from objectdocs.models.index import IndexEntry, OwnedIndexes
from objectdocs.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

INDEX_ROOT = "indexes/"
OWNED_ROOT = f"{INDEX_ROOT}_owned/"

_SAFE_VALUE_CHARS = "@._-+"


def encode_index_value(value: str) -> str:
    """Percent-encode a value so it forms a single, safe key segment."""
    return quote(value, safe=_SAFE_VALUE_CHARS)


def index_key(dimension: str, value: str, primary_id: str | None = None) -> str:
    """Key of an index entry.

    Args:
        dimension: Index dimension, e.g. "username" or "tag".
        value: Attribute value being indexed.
        primary_id: None for a unique dimension; the entity id for a
            non-unique dimension (one entry per value/id pair).
    """
    base = f"{INDEX_ROOT}{dimension}-{encode_index_value(value)}"
    if primary_id is None:
        return f"{base}.json"
    return f"{base}/{primary_id}.json"


def index_prefix(dimension: str, value: str) -> str:
    """Listing prefix covering every entry of a non-unique dimension value."""
    return f"{INDEX_ROOT}{dimension}-{encode_index_value(value)}/"


def owned_key(primary_id: str) -> str:
    return f"{OWNED_ROOT}{primary_id}.json"


def _is_unique_key(key: str) -> bool:
    return "/" not in key[len(INDEX_ROOT) :]


class IndexManager:
    """Creates, resolves and deletes index entries in any bucket."""

    def __init__(self, store: ObjectStore) -> None:
        self._store = store

    def create_index(
        self,
        bucket: str,
        key: str,
        primary_id: str,
        *,
        field: str | None = None,
        owner_id: str | None = None,
        ctx: OperationContext | None = None,
    ) -> None:
        """Point key at primary_id.

        Succeeds without writing if the entry already points at primary_id.

        Args:
            bucket: Bucket holding the indexed entity.
            key: Entry key from index_key().
            primary_id: Id of the entity the entry points at.
            field: Dimension name used in the conflict message.
            owner_id: Owner id recorded alongside primary_id (files only).
            ctx: Optional deadline/cancellation context.

        Raises:
            ConflictError: If the entry exists and points at a different id.
            CorruptObjectError: If the existing entry is unreadable.
        """
        try:
            existing = self.resolve_index(bucket, key, ctx=ctx)
        except NotFoundError:
            existing = None

        if existing is not None:
            if existing == primary_id:
                logger.debug("Index already present: bucket=%s key=%s", bucket, key)
                return
            label = field or "value"
            raise ConflictError(
                f"{label} already exists",
                field=field,
                bucket=bucket,
                key=key,
                operation="create_index",
            )

        entry = IndexEntry(primary_id=primary_id, owner_id=owner_id)
        self._store.put(bucket, key, encode(entry), content_type=JSON_CONTENT_TYPE, ctx=ctx)
        logger.debug("Created index: bucket=%s key=%s id=%s", bucket, key, primary_id)

    def resolve_entry(
        self,
        bucket: str,
        key: str,
        *,
        ctx: OperationContext | None = None,
    ) -> IndexEntry:
        """Read and decode the entry at key.

        Raises:
            NotFoundError: If there is no entry at key.
            CorruptObjectError: If the entry is unreadable or empty.
        """
        stored = self._store.get(bucket, key, ctx=ctx)
        entry = decode(stored.body, IndexEntry, bucket=bucket, key=key)
        if not entry.primary_id:
            raise CorruptObjectError(
                "Index entry has no primaryId",
                bucket=bucket,
                key=key,
                operation="resolve_index",
            )
        return entry

    def resolve_index(
        self,
        bucket: str,
        key: str,
        *,
        ctx: OperationContext | None = None,
    ) -> str:
        """Return the primary id an entry points at.

        Raises:
            NotFoundError: If there is no entry at key.
            CorruptObjectError: If the entry is unreadable or empty.
        """
        return self.resolve_entry(bucket, key, ctx=ctx).primary_id

    def delete_index(
        self,
        bucket: str,
        key: str,
        *,
        ctx: OperationContext | None = None,
    ) -> None:
        """Remove an entry. Removing a missing entry succeeds."""
        self._store.delete(bucket, key, ctx=ctx)
        logger.debug("Deleted index: bucket=%s key=%s", bucket, key)

    def replace_index(
        self,
        bucket: str,
        old_key: str,
        new_key: str,
        primary_id: str,
        *,
        field: str | None = None,
        owner_id: str | None = None,
        ctx: OperationContext | None = None,
    ) -> None:
        """Move an entry: delete old_key, then create new_key.

        If the second step fails the entity is reachable by neither value.
        """
        self.delete_index(bucket, old_key, ctx=ctx)
        self.create_index(bucket, new_key, primary_id, field=field, owner_id=owner_id, ctx=ctx)

    def record_owned(
        self,
        bucket: str,
        primary_id: str,
        keys: Iterable[str],
        *,
        ctx: OperationContext | None = None,
    ) -> None:
        """Overwrite the reverse index listing the entries owned by primary_id."""
        owned = OwnedIndexes(keys=sorted(set(keys)))
        self._store.put(
            bucket,
            owned_key(primary_id),
            encode(owned),
            content_type=JSON_CONTENT_TYPE,
            ctx=ctx,
        )

    def owned_keys(
        self,
        bucket: str,
        primary_id: str,
        *,
        ctx: OperationContext | None = None,
    ) -> list[str]:
        """Entries recorded for primary_id, or [] when no reverse index exists."""
        key = owned_key(primary_id)
        try:
            stored = self._store.get(bucket, key, ctx=ctx)
        except NotFoundError:
            return []
        return decode(stored.body, OwnedIndexes, bucket=bucket, key=key).keys

    def cascade_delete(
        self,
        bucket: str,
        primary_id: str,
        *,
        ctx: OperationContext | None = None,
    ) -> int:
        """Best-effort removal of every entry recorded for primary_id.

        Unique entries are only removed while they still point at primary_id,
        so an entry taken over by another entity survives. Individual store
        failures are logged and skipped.

        Returns:
            Number of entries removed.
        """
        removed = 0
        for key in self.owned_keys(bucket, primary_id, ctx=ctx):
            try:
                if _is_unique_key(key):
                    try:
                        if self.resolve_index(bucket, key, ctx=ctx) != primary_id:
                            continue
                    except NotFoundError:
                        continue
                self.delete_index(bucket, key, ctx=ctx)
                removed += 1
            except (StoreUnavailableError, CorruptObjectError) as e:
                logger.warning(
                    "Failed to remove index entry: bucket=%s key=%s id=%s: %s",
                    bucket,
                    key,
                    primary_id,
                    e,
                )

        self._store.delete(bucket, owned_key(primary_id), ctx=ctx)
        return removed
