"""File model.

A file is two objects in the files bucket:
    {userId}/{id}.{ext}              content, stored with the caller's content type
    {userId}/metadata/{id}.json      this model, JSON encoded

Non-unique dimensions: owner, content type, creation date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated

from pydantic import Field

from objectdocs.models.base import StoredModel


class File(StoredModel):
    """Metadata for an uploaded file.

    Attributes:
        id: UUID string assigned on upload.
        user_id: Owning user's id.
        file_name: Stored name, "{id}.{ext}".
        original_name: Name supplied by the uploader.
        content_type: MIME type supplied by the uploader.
        size: Content length in bytes.
        path: Key of the content object.
        metadata: Free-form string map.
        created_at: Set once on upload.
        updated_at: Refreshed on every metadata update.
        etag: Version token of the last metadata write; informational only.
    """

    id: str = ""
    user_id: str = ""
    file_name: str = ""
    original_name: str = ""
    content_type: str = ""
    size: int = 0
    path: str = ""
    metadata: Annotated[dict[str, str], Field(default_factory=dict)]
    created_at: datetime | None = None
    updated_at: datetime | None = None
    etag: str | None = None


@dataclass(frozen=True)
class FileContent:
    """Binary payload of a file as read back from the store."""

    body: bytes
    content_type: str | None
    etag: str
