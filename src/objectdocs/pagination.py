"""Pagination over prefix listings.

A page is produced from one pass over store.list(bucket, prefix):

- every listed key (that passes key_filter) increments the running total;
- only keys at positions [offset, offset + page_size) are loaded.

So total always reflects a full scan of the prefix at call time, whatever the
page size, and the cost of a listing is O(number of keys). Results come back
in key order; for UUID keys that order carries no meaning.

If the operation context is cancelled mid-scan the pass stops and the partial
page and partial total gathered so far are returned.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from objectdocs.context import OperationContext
from objectdocs.errors import OperationCancelledError
from objectdocs.models.pagination import Page, PageRequest, Pagination
from objectdocs.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def paginate(
    store: ObjectStore,
    bucket: str,
    prefix: str,
    request: PageRequest,
    load: Callable[[str], T | None],
    *,
    key_filter: Callable[[str], bool] | None = None,
    ctx: OperationContext | None = None,
    total: int | None = None,
) -> Page[T]:
    """Build one page from a prefix listing.

    Args:
        store: Object store to list from.
        bucket: Bucket to list.
        prefix: Key prefix selecting the collection.
        request: Normalized page selection.
        load: Materializes the object at a key. Returning None leaves the key
            counted but out of the page (used for dangling index entries).
        key_filter: Optional predicate; keys failing it are neither counted
            nor loaded.
        ctx: Optional deadline/cancellation context.
        total: Precomputed total (counter mode). When given, the scan stops as
            soon as the window is filled and this value is reported.

    Returns:
        Page with data in key order and the pagination block.
    """
    offset = request.offset
    window_end = offset + request.page_size
    data: list[T] = []
    scanned = 0

    try:
        for key in store.list(bucket, prefix, ctx=ctx):
            if ctx is not None and ctx.cancelled:
                logger.debug("Listing cancelled: bucket=%s prefix=%s", bucket, prefix)
                break
            if key_filter is not None and not key_filter(key):
                continue

            position = scanned
            scanned += 1
            if offset <= position < window_end:
                item = load(key)
                if item is not None:
                    data.append(item)

            if total is not None and scanned >= window_end:
                break
    except OperationCancelledError:
        logger.debug("Listing cancelled: bucket=%s prefix=%s", bucket, prefix)

    return Page(
        data=data,
        pagination=Pagination(
            page=request.page,
            page_size=request.page_size,
            total=total if total is not None else scanned,
            offset=offset,
        ),
    )
