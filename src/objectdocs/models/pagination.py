"""Pagination request and page envelope."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from objectdocs.models.base import StoredModel

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageRequest:
    """Normalized page selection.

    page is at least 1 and page_size is clamped to [1, MAX_PAGE_SIZE],
    however the request is built.
    """

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        object.__setattr__(self, "page", max(1, self.page))
        object.__setattr__(self, "page_size", min(max(1, self.page_size), MAX_PAGE_SIZE))

    @classmethod
    def of(cls, page: int | None = None, page_size: int | None = None) -> PageRequest:
        return cls(
            page=1 if page is None else page,
            page_size=DEFAULT_PAGE_SIZE if page_size is None else page_size,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Pagination(StoredModel):
    """Pagination block of a list response."""

    page: int
    page_size: int
    total: int
    offset: int


class Page(BaseModel, Generic[T]):
    """One page of materialized entities plus the pagination block."""

    data: list[T]
    pagination: Pagination

    def to_envelope(self) -> dict[str, Any]:
        """Render {data: [...], pagination: {page, pageSize, total, offset}}."""
        return {
            "data": [
                item.model_dump(mode="json", by_alias=True, exclude_none=True)
                if isinstance(item, BaseModel)
                else item
                for item in self.data
            ],
            "pagination": self.pagination.model_dump(mode="json", by_alias=True),
        }
