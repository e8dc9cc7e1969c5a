"""Post model.

Primary object key: post-{id} in the posts bucket.
Non-unique dimensions: owner (userId), status, and one entry per tag.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import Field

from objectdocs.models.base import StoredModel


class PostStatus(str, Enum):
    """Publication state of a post."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Post(StoredModel):
    """A user-authored post.

    Attributes:
        id: UUID string assigned by the store on create.
        user_id: Owning user's id.
        title: Post title.
        content: Post body.
        summary: Short summary.
        status: draft, published or archived.
        tags: Free-form tags; duplicates collapse to one index entry.
        created_at: Set once on create.
        updated_at: Refreshed on every update.
        etag: Version token of the last write; informational only.
    """

    id: str = ""
    user_id: str = ""
    title: str = ""
    content: str = ""
    summary: str = ""
    status: PostStatus = PostStatus.DRAFT
    tags: Annotated[list[str], Field(default_factory=list)]
    created_at: datetime | None = None
    updated_at: datetime | None = None
    etag: str | None = None
