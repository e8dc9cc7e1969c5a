"""User model.

Primary object key: user-{id} in the users bucket.
username and email are unique dimensions, each backed by one pointer object.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AliasChoices, Field

from objectdocs.models.base import StoredModel


class User(StoredModel):
    """An account.

    Attributes:
        id: UUID string assigned by the store on create.
        username: Unique login name.
        email: Unique email address.
        password_hash: Opaque hash produced by the caller; never computed here.
            Older objects stored it under "password", which is still accepted.
        first_name: Given name.
        last_name: Family name.
        role: Authorization role, "user" unless set.
        avatar: Avatar URL or object path.
        created_at: Set once on create.
        updated_at: Refreshed on every update.
        etag: Version token of the last write; informational only.
    """

    id: str = ""
    username: str = ""
    email: str = ""
    password_hash: Annotated[
        str,
        Field(
            default="",
            alias="passwordHash",
            validation_alias=AliasChoices("passwordHash", "password", "password_hash"),
        ),
    ]
    first_name: str = ""
    last_name: str = ""
    role: str = "user"
    avatar: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    etag: str | None = None
