"""Posts repository.

Layout in the posts bucket:
    post-{id}                                primary object
    indexes/owner-{userId}/{id}.json         non-unique pointers
    indexes/status-{status}/{id}.json
    indexes/tag-{tag}/{id}.json              one per distinct tag
"""

from __future__ import annotations

import logging

from objectdocs.context import OperationContext
from objectdocs.indexes import index_key, index_prefix
from objectdocs.models.pagination import Page, PageRequest
from objectdocs.models.post import Post, PostStatus
from objectdocs.repositories.base import BaseRepository, new_id, utc_now

logger = logging.getLogger(__name__)

POST_PREFIX = "post-"


def post_key(post_id: str) -> str:
    return f"{POST_PREFIX}{post_id}"


def post_index_keys(post: Post) -> list[str]:
    """Every index entry key a post should have, in write order."""
    keys = []
    if post.user_id:
        keys.append(index_key("owner", post.user_id, post.id))
    keys.append(index_key("status", PostStatus(post.status).value, post.id))
    for tag in dict.fromkeys(post.tags):
        if tag:
            keys.append(index_key("tag", tag, post.id))
    return keys


class PostsRepository(BaseRepository[Post]):
    """CRUD for posts with owner, status and tag listings."""

    model = Post
    counter_name = "posts"

    def create(self, post: Post, *, ctx: OperationContext | None = None) -> Post:
        """Create a post with a fresh id and timestamps, then index it.

        Index entries are written after the primary object; a failure part
        way leaves the post stored but missing from some listings.
        """
        now = utc_now()
        created = post.model_copy(
            update={"id": new_id(), "created_at": now, "updated_at": now, "etag": None}
        )
        self._save(post_key(created.id), created, ctx=ctx)

        keys = post_index_keys(created)
        for key in keys:
            self._indexes.create_index(self._bucket, key, created.id, ctx=ctx)

        self._after_create(created.id, keys, ctx=ctx)
        logger.info("Created post %s", created.id)
        return created

    def get(self, post_id: str, *, ctx: OperationContext | None = None) -> Post:
        """Load a post by id.

        Raises:
            NotFoundError: If no such post exists.
        """
        return self._load(post_key(post_id), ctx=ctx)

    def update(self, post: Post, *, ctx: OperationContext | None = None) -> Post:
        """Overwrite a post and bring its index entries in line.

        Entries for values the post no longer has are deleted before entries
        for new values are created; the primary object is written last.

        Raises:
            NotFoundError: If the post does not exist.
        """
        stored = self.get(post.id, ctx=ctx)
        updated = post.model_copy(
            update={"created_at": stored.created_at, "updated_at": utc_now(), "etag": None}
        )

        old_keys = post_index_keys(stored)
        new_keys = post_index_keys(updated)
        for key in old_keys:
            if key not in new_keys:
                self._indexes.delete_index(self._bucket, key, ctx=ctx)
        for key in new_keys:
            if key not in old_keys:
                self._indexes.create_index(self._bucket, key, updated.id, ctx=ctx)

        self._save(post_key(updated.id), updated, ctx=ctx)

        if old_keys != new_keys:
            self._after_update(updated.id, new_keys, ctx=ctx)
        return updated

    def list(
        self,
        request: PageRequest | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> Page[Post]:
        """One page of posts in key order with the full-scan total."""
        return self._list(POST_PREFIX, request or PageRequest.of(), ctx=ctx)

    def list_by_owner(
        self,
        user_id: str,
        request: PageRequest | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> Page[Post]:
        return self._list_index(index_prefix("owner", user_id), request or PageRequest.of(), ctx=ctx)

    def list_by_status(
        self,
        status: PostStatus | str,
        request: PageRequest | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> Page[Post]:
        """Posts in a given status.

        Raises:
            ValueError: If status is not a known PostStatus value.
        """
        value = PostStatus(status).value
        return self._list_index(index_prefix("status", value), request or PageRequest.of(), ctx=ctx)

    def list_by_tag(
        self,
        tag: str,
        request: PageRequest | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> Page[Post]:
        return self._list_index(index_prefix("tag", tag), request or PageRequest.of(), ctx=ctx)

    def delete(self, post_id: str, *, ctx: OperationContext | None = None) -> None:
        """Delete the primary object; index entries stay unless cascade is on.

        Raises:
            NotFoundError: If no such post exists.
        """
        self.get(post_id, ctx=ctx)
        self._store.delete(self._bucket, post_key(post_id), ctx=ctx)
        self._after_delete(post_id, ctx=ctx)
        logger.info("Deleted post %s", post_id)

    def _target_key(self, primary_id: str, owner_id: str | None) -> str:
        return post_key(primary_id)
