"""Tests for page normalization and single-pass prefix pagination."""

from __future__ import annotations

import pytest

from objectdocs.context import OperationContext
from objectdocs.models.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PageRequest
from objectdocs.pagination import paginate
from objectdocs.storage.memory_store import InMemoryObjectStore

BUCKET = "posts"


@pytest.fixture
def seeded_store(object_store: InMemoryObjectStore) -> InMemoryObjectStore:
    """25 objects under "item-" plus unrelated keys."""
    for i in range(25):
        object_store.put(BUCKET, f"item-{i:03d}", str(i).encode())
    object_store.put(BUCKET, "indexes/tag-x/1.json", b"{}")
    object_store.put(BUCKET, "other-1", b"x")
    return object_store


def _load(store: InMemoryObjectStore):
    return lambda key: store.get(BUCKET, key).body.decode()


class TestPageRequest:
    """Tests for page/pageSize normalization."""

    def test_defaults(self) -> None:
        request = PageRequest.of()

        assert request.page == 1
        assert request.page_size == DEFAULT_PAGE_SIZE
        assert request.offset == 0

    @pytest.mark.parametrize(
        ("page", "page_size", "expected"),
        [
            (0, 10, (1, 10)),
            (-3, 10, (1, 10)),
            (2, 0, (2, 1)),
            (2, -5, (2, 1)),
            (1, 1000, (1, MAX_PAGE_SIZE)),
            (3, 7, (3, 7)),
        ],
    )
    def test_clamping(self, page: int, page_size: int, expected: tuple[int, int]) -> None:
        request = PageRequest.of(page, page_size)

        assert (request.page, request.page_size) == expected

    def test_offset(self) -> None:
        assert PageRequest.of(3, 7).offset == 14

    @pytest.mark.parametrize(
        ("page", "page_size", "expected"),
        [
            (0, 10, (1, 10)),
            (1, 500, (1, MAX_PAGE_SIZE)),
            (2, 0, (2, 1)),
        ],
    )
    def test_constructor_normalizes(
        self, page: int, page_size: int, expected: tuple[int, int]
    ) -> None:
        """Building the dataclass directly clamps the same way as of()."""
        request = PageRequest(page=page, page_size=page_size)

        assert (request.page, request.page_size) == expected
        assert request.offset >= 0

    def test_oversized_direct_request_is_capped(self, object_store: InMemoryObjectStore) -> None:
        for i in range(150):
            object_store.put(BUCKET, f"k{i:03d}", b"x")

        page = paginate(
            object_store,
            BUCKET,
            "",
            PageRequest(page=1, page_size=500),
            _load(object_store),
        )

        assert page.pagination.page_size == MAX_PAGE_SIZE
        assert page.pagination.total == 150
        assert len(page.data) == MAX_PAGE_SIZE


class TestPaginate:
    """Tests for the window and total invariants."""

    @pytest.mark.parametrize("page_size", [1, 4, 10, 25, 100])
    def test_total_is_full_scan(self, seeded_store: InMemoryObjectStore, page_size: int) -> None:
        """Total counts every key under the prefix whatever the page size."""
        page = paginate(
            seeded_store, BUCKET, "item-", PageRequest.of(1, page_size), _load(seeded_store)
        )

        assert page.pagination.total == 25

    def test_window(self, seeded_store: InMemoryObjectStore) -> None:
        """Page 3 of size 10 holds keys 20..24."""
        page = paginate(seeded_store, BUCKET, "item-", PageRequest.of(3, 10), _load(seeded_store))

        assert page.data == [str(i) for i in range(20, 25)]
        assert page.pagination.offset == 20
        assert page.pagination.page == 3
        assert page.pagination.page_size == 10

    def test_window_size_bound(self, seeded_store: InMemoryObjectStore) -> None:
        for page_number in range(1, 6):
            request = PageRequest.of(page_number, 7)
            page = paginate(seeded_store, BUCKET, "item-", request, _load(seeded_store))

            assert len(page.data) == min(7, max(0, 25 - request.offset))

    def test_page_past_end_is_empty(self, seeded_store: InMemoryObjectStore) -> None:
        page = paginate(seeded_store, BUCKET, "item-", PageRequest.of(9, 10), _load(seeded_store))

        assert page.data == []
        assert page.pagination.total == 25

    def test_only_window_is_loaded(self, seeded_store: InMemoryObjectStore) -> None:
        loaded: list[str] = []

        def load(key: str) -> str:
            loaded.append(key)
            return key

        paginate(seeded_store, BUCKET, "item-", PageRequest.of(2, 5), load)

        assert loaded == [f"item-{i:03d}" for i in range(5, 10)]

    def test_key_filter_excluded_from_total(self, seeded_store: InMemoryObjectStore) -> None:
        page = paginate(
            seeded_store,
            BUCKET,
            "",
            PageRequest.of(1, 100),
            lambda key: key,
            key_filter=lambda key: key.startswith("item-"),
        )

        assert page.pagination.total == 25

    def test_skipped_items_still_counted(self, seeded_store: InMemoryObjectStore) -> None:
        page = paginate(
            seeded_store,
            BUCKET,
            "item-",
            PageRequest.of(1, 10),
            lambda key: None if key.endswith("1") else key,
        )

        assert page.pagination.total == 25
        assert len(page.data) == 9

    def test_explicit_total_stops_after_window(self, seeded_store: InMemoryObjectStore) -> None:
        page = paginate(
            seeded_store, BUCKET, "item-", PageRequest.of(1, 5), _load(seeded_store), total=99
        )

        assert page.pagination.total == 99
        assert len(page.data) == 5

    def test_envelope(self, seeded_store: InMemoryObjectStore) -> None:
        page = paginate(seeded_store, BUCKET, "item-", PageRequest.of(1, 2), _load(seeded_store))

        assert page.to_envelope() == {
            "data": ["0", "1"],
            "pagination": {"page": 1, "pageSize": 2, "total": 25, "offset": 0},
        }


class TestCancellation:
    """Listing stops silently when the context is cancelled."""

    def test_cancel_mid_scan_returns_partial_page(
        self, seeded_store: InMemoryObjectStore
    ) -> None:
        ctx = OperationContext()

        def load(key: str) -> str:
            if key == "item-002":
                ctx.cancel()
            return key

        page = paginate(seeded_store, BUCKET, "item-", PageRequest.of(1, 10), load, ctx=ctx)

        assert page.data == ["item-000", "item-001", "item-002"]
        assert page.pagination.total == 3

    def test_cancelled_before_start(self, seeded_store: InMemoryObjectStore) -> None:
        ctx = OperationContext()
        ctx.cancel()

        page = paginate(
            seeded_store, BUCKET, "item-", PageRequest.of(1, 10), _load(seeded_store), ctx=ctx
        )

        assert page.data == []
        assert page.pagination.total == 0

    def test_expired_deadline(self, seeded_store: InMemoryObjectStore) -> None:
        ctx = OperationContext.with_timeout(0)

        page = paginate(
            seeded_store, BUCKET, "item-", PageRequest.of(1, 10), _load(seeded_store), ctx=ctx
        )

        assert page.data == []
