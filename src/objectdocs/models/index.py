"""Bookkeeping objects stored next to entities: index pointers, reverse
indexes and counters."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

from objectdocs.models.base import StoredModel


class IndexEntry(StoredModel):
    """Pointer from a derived key to the id of the entity that owns it.

    owner_id is only written for files, whose primary key embeds the owner's
    id; every other entry is just {"primaryId": ...}.
    """

    primary_id: str = ""
    owner_id: str | None = None


class OwnedIndexes(StoredModel):
    """Reverse index: every index key written on behalf of one entity."""

    keys: Annotated[list[str], Field(default_factory=list)]


class Counter(StoredModel):
    """Denormalized object count for a listing prefix."""

    count: int = 0
