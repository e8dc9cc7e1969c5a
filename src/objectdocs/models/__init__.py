"""objectdocs entity models.

Pydantic models for every JSON object the document store persists.
"""

from objectdocs.models.base import StoredModel
from objectdocs.models.file import File, FileContent
from objectdocs.models.index import Counter, IndexEntry, OwnedIndexes
from objectdocs.models.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    Page,
    PageRequest,
    Pagination,
)
from objectdocs.models.post import Post, PostStatus
from objectdocs.models.user import User

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "Counter",
    "File",
    "FileContent",
    "IndexEntry",
    "OwnedIndexes",
    "Page",
    "PageRequest",
    "Pagination",
    "Post",
    "PostStatus",
    "StoredModel",
    "User",
]
