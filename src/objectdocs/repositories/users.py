"""Users repository.

Layout in the users bucket:
    user-{id}                       primary object
    indexes/username-{value}.json   unique pointer to id
    indexes/email-{value}.json      unique pointer to id

Empty usernames and emails are neither checked nor indexed.
"""

from __future__ import annotations

import logging

from objectdocs.context import OperationContext
from objectdocs.errors import ConflictError, NotFoundError
from objectdocs.indexes import index_key
from objectdocs.models.pagination import Page, PageRequest
from objectdocs.models.user import User
from objectdocs.repositories.base import BaseRepository, new_id, utc_now

logger = logging.getLogger(__name__)

USER_PREFIX = "user-"

# Unique dimensions in the order they are checked and written.
UNIQUE_FIELDS = ("username", "email")


def user_key(user_id: str) -> str:
    return f"{USER_PREFIX}{user_id}"


class UsersRepository(BaseRepository[User]):
    """CRUD for users with username/email uniqueness through index objects.

    Uniqueness is check-then-act. Two concurrent creates with the same
    username can both pass the check; the later index write wins and the
    earlier user is left unreachable by username.
    """

    model = User
    counter_name = "users"

    def create(self, user: User, *, ctx: OperationContext | None = None) -> User:
        """Create a user with a fresh id and timestamps.

        Any id or timestamps on the input are replaced. The input is not
        mutated; the stored user is returned.

        Raises:
            ConflictError: If the username or email is already indexed.
        """
        now = utc_now()
        created = user.model_copy(
            update={"id": new_id(), "created_at": now, "updated_at": now, "etag": None}
        )

        for field in UNIQUE_FIELDS:
            value = getattr(created, field)
            if value:
                self._check_available(field, value, created.id, ctx=ctx)

        self._save(user_key(created.id), created, ctx=ctx)

        keys = []
        for field in UNIQUE_FIELDS:
            value = getattr(created, field)
            if value:
                key = index_key(field, value)
                self._indexes.create_index(self._bucket, key, created.id, field=field, ctx=ctx)
                keys.append(key)

        self._after_create(created.id, keys, ctx=ctx)
        logger.info("Created user %s", created.id)
        return created

    def get(self, user_id: str, *, ctx: OperationContext | None = None) -> User:
        """Load a user by id.

        Raises:
            NotFoundError: If no such user exists.
        """
        return self._load(user_key(user_id), ctx=ctx)

    def get_by_username(self, username: str, *, ctx: OperationContext | None = None) -> User:
        """Load a user through the username index.

        Raises:
            NotFoundError: If the index entry or the user it points at is absent.
        """
        return self._get_by_unique("username", username, ctx=ctx)

    def get_by_email(self, email: str, *, ctx: OperationContext | None = None) -> User:
        """Load a user through the email index.

        Raises:
            NotFoundError: If the index entry or the user it points at is absent.
        """
        return self._get_by_unique("email", email, ctx=ctx)

    def update(self, user: User, *, ctx: OperationContext | None = None) -> User:
        """Overwrite a user, moving username/email index entries that changed.

        Order: conflict pre-checks for every changed value, then per field
        delete-old/create-new index, then the primary object. created_at is
        kept from the stored user and updated_at is refreshed.

        Raises:
            NotFoundError: If the user does not exist.
            ConflictError: If a new username/email belongs to another user.
        """
        stored = self.get(user.id, ctx=ctx)

        changed = [
            field
            for field in UNIQUE_FIELDS
            if getattr(user, field) != getattr(stored, field)
        ]
        for field in changed:
            value = getattr(user, field)
            if value:
                self._check_available(field, value, user.id, ctx=ctx)

        for field in changed:
            old_value = getattr(stored, field)
            new_value = getattr(user, field)
            if old_value and new_value:
                self._indexes.replace_index(
                    self._bucket,
                    index_key(field, old_value),
                    index_key(field, new_value),
                    user.id,
                    field=field,
                    ctx=ctx,
                )
            elif old_value:
                self._indexes.delete_index(self._bucket, index_key(field, old_value), ctx=ctx)
            else:
                self._indexes.create_index(
                    self._bucket,
                    index_key(field, new_value),
                    user.id,
                    field=field,
                    ctx=ctx,
                )

        updated = user.model_copy(
            update={"created_at": stored.created_at, "updated_at": utc_now(), "etag": None}
        )
        self._save(user_key(updated.id), updated, ctx=ctx)

        if changed:
            self._after_update(updated.id, self._index_keys(updated), ctx=ctx)
        return updated

    def list(
        self,
        request: PageRequest | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> Page[User]:
        """One page of users in key order with the full-scan total."""
        return self._list(USER_PREFIX, request or PageRequest.of(), ctx=ctx)

    def delete(self, user_id: str, *, ctx: OperationContext | None = None) -> None:
        """Delete the primary object.

        Index entries stay behind unless cascade cleanup is enabled; lookups
        through them then raise NotFoundError.

        Raises:
            NotFoundError: If no such user exists.
        """
        key = user_key(user_id)
        if not self._store.exists(self._bucket, key, ctx=ctx):
            raise NotFoundError("User not found", bucket=self._bucket, key=key, operation="delete")
        self._store.delete(self._bucket, key, ctx=ctx)
        self._after_delete(user_id, ctx=ctx)
        logger.info("Deleted user %s", user_id)

    def _target_key(self, primary_id: str, owner_id: str | None) -> str:
        return user_key(primary_id)

    def _index_keys(self, user: User) -> list[str]:
        return [
            index_key(field, getattr(user, field))
            for field in UNIQUE_FIELDS
            if getattr(user, field)
        ]

    def _get_by_unique(self, field: str, value: str, *, ctx: OperationContext | None) -> User:
        key = index_key(field, value)
        primary_id = self._indexes.resolve_index(self._bucket, key, ctx=ctx)
        try:
            return self.get(primary_id, ctx=ctx)
        except NotFoundError as e:
            raise NotFoundError(
                f"User not found for {field}",
                bucket=self._bucket,
                key=key,
                operation=f"get_by_{field}",
            ) from e

    def _check_available(
        self,
        field: str,
        value: str,
        user_id: str,
        *,
        ctx: OperationContext | None,
    ) -> None:
        key = index_key(field, value)
        try:
            owner = self._indexes.resolve_index(self._bucket, key, ctx=ctx)
        except NotFoundError:
            return
        if owner != user_id:
            logger.info("Rejected duplicate %s for user %s", field, user_id)
            raise ConflictError(
                f"{field} already exists",
                field=field,
                bucket=self._bucket,
                key=key,
                operation="check_unique",
            )
