"""Files repository.

Layout in the files bucket:
    {userId}/{id}.{ext}                       content (or {userId}/{id} without ext)
    {userId}/metadata/{id}.json               File metadata
    indexes/owner-{userId}/{id}.json          non-unique pointers carrying ownerId
    indexes/content_type-{type}/{id}.json
    indexes/date-{YYYY-MM-DD}/{id}.json
"""

from __future__ import annotations

import logging
import os

from objectdocs.context import OperationContext
from objectdocs.errors import NotFoundError
from objectdocs.indexes import index_key, index_prefix
from objectdocs.models.file import File, FileContent
from objectdocs.models.pagination import Page, PageRequest
from objectdocs.repositories.base import BaseRepository, new_id, utc_now

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
METADATA_SEGMENT = "metadata"


def file_extension(original_name: str) -> str:
    """Extension of original_name without the dot, or "" if it has none.

    Only ASCII alphanumeric extensions are kept so the content key stays safe.
    """
    ext = os.path.splitext(original_name)[1][1:]
    if ext and ext.isascii() and ext.isalnum():
        return ext
    return ""


def content_key(user_id: str, file_id: str, ext: str = "") -> str:
    if ext:
        return f"{user_id}/{file_id}.{ext}"
    return f"{user_id}/{file_id}"


def metadata_key(user_id: str, file_id: str) -> str:
    return f"{user_id}/{METADATA_SEGMENT}/{file_id}.json"


def is_metadata_key(key: str) -> bool:
    """True for {userId}/metadata/{id}.json keys only."""
    parts = key.split("/")
    return len(parts) == 3 and parts[1] == METADATA_SEGMENT and parts[2].endswith(".json")


def file_index_keys(file: File) -> list[str]:
    keys = [index_key("owner", file.user_id, file.id)]
    if file.content_type:
        keys.append(index_key("content_type", file.content_type, file.id))
    if file.created_at is not None:
        keys.append(index_key("date", file.created_at.strftime("%Y-%m-%d"), file.id))
    return keys


class FilesRepository(BaseRepository[File]):
    """Binary content plus JSON metadata, indexed by owner, type and date."""

    model = File
    counter_name = "files"

    def upload(
        self,
        file: File,
        content: bytes,
        *,
        content_type: str | None = None,
        ctx: OperationContext | None = None,
    ) -> File:
        """Store content and metadata for a new file.

        Writes the content object, then the metadata object, then the index
        entries. Nothing already written is removed if a later step fails.

        Args:
            file: Metadata supplied by the caller; user_id and original_name
                are used, id, file_name, size, path and timestamps are assigned.
            content: Raw file bytes.
            content_type: MIME type of the content. Falls back to
                file.content_type, then application/octet-stream.
            ctx: Optional deadline/cancellation context.

        Raises:
            ValueError: If file.user_id is empty.
        """
        if not file.user_id:
            raise ValueError("user_id is required")

        file_id = new_id()
        ext = file_extension(file.original_name)
        effective_type = content_type or file.content_type or DEFAULT_CONTENT_TYPE
        path = content_key(file.user_id, file_id, ext)
        now = utc_now()

        created = file.model_copy(
            update={
                "id": file_id,
                "file_name": f"{file_id}.{ext}" if ext else file_id,
                "content_type": effective_type,
                "size": len(content),
                "path": path,
                "created_at": now,
                "updated_at": now,
                "etag": None,
            }
        )

        self._store.put(self._bucket, path, content, content_type=effective_type, ctx=ctx)
        self._save(metadata_key(created.user_id, file_id), created, ctx=ctx)

        keys = file_index_keys(created)
        for key in keys:
            self._indexes.create_index(
                self._bucket, key, file_id, owner_id=created.user_id, ctx=ctx
            )

        self._after_create(file_id, keys, ctx=ctx)
        logger.info("Uploaded file %s (%d bytes)", file_id, created.size)
        return created

    def get(
        self,
        file_id: str,
        *,
        user_id: str | None = None,
        ctx: OperationContext | None = None,
    ) -> File:
        """Load file metadata.

        With user_id the metadata key is read directly; without it every key
        in the bucket is scanned for {owner}/metadata/{file_id}.json.

        Raises:
            NotFoundError: If no metadata object exists for file_id.
        """
        if user_id:
            return self._load(metadata_key(user_id, file_id), ctx=ctx)
        return self._load(self._find_metadata_key(file_id, ctx=ctx), ctx=ctx)

    def get_content(
        self,
        file_id: str,
        *,
        user_id: str | None = None,
        ctx: OperationContext | None = None,
    ) -> FileContent:
        """Read the content object of a file.

        Raises:
            NotFoundError: If the metadata or the content object is absent.
        """
        file = self.get(file_id, user_id=user_id, ctx=ctx)
        stored = self._store.get(self._bucket, file.path, ctx=ctx)
        return FileContent(
            body=stored.body,
            content_type=stored.info.content_type or file.content_type or None,
            etag=stored.info.etag,
        )

    def update(self, file: File, *, ctx: OperationContext | None = None) -> File:
        """Overwrite file metadata; the content object is not touched.

        Owner, path, size, file_name and created_at are kept from the stored
        metadata. A changed content_type moves its index entry.

        Raises:
            NotFoundError: If the file does not exist.
        """
        stored = self.get(file.id, user_id=file.user_id or None, ctx=ctx)
        updated = file.model_copy(
            update={
                "user_id": stored.user_id,
                "file_name": stored.file_name,
                "path": stored.path,
                "size": stored.size,
                "content_type": file.content_type or stored.content_type,
                "created_at": stored.created_at,
                "updated_at": utc_now(),
                "etag": None,
            }
        )

        if updated.content_type != stored.content_type:
            if stored.content_type:
                self._indexes.delete_index(
                    self._bucket,
                    index_key("content_type", stored.content_type, stored.id),
                    ctx=ctx,
                )
            self._indexes.create_index(
                self._bucket,
                index_key("content_type", updated.content_type, updated.id),
                updated.id,
                owner_id=updated.user_id,
                ctx=ctx,
            )

        self._save(metadata_key(updated.user_id, updated.id), updated, ctx=ctx)

        if updated.content_type != stored.content_type:
            self._after_update(updated.id, file_index_keys(updated), ctx=ctx)
        return updated

    def list(
        self,
        request: PageRequest | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> Page[File]:
        """One page over every metadata object in the bucket."""
        return self._list(
            "",
            request or PageRequest.of(),
            key_filter=is_metadata_key,
            ctx=ctx,
        )

    def list_by_owner(
        self,
        user_id: str,
        request: PageRequest | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> Page[File]:
        return self._list_index(index_prefix("owner", user_id), request or PageRequest.of(), ctx=ctx)

    def list_by_content_type(
        self,
        content_type: str,
        request: PageRequest | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> Page[File]:
        return self._list_index(
            index_prefix("content_type", content_type), request or PageRequest.of(), ctx=ctx
        )

    def list_by_date(
        self,
        day: str,
        request: PageRequest | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> Page[File]:
        """Files created on a UTC day given as YYYY-MM-DD."""
        return self._list_index(index_prefix("date", day), request or PageRequest.of(), ctx=ctx)

    def delete(
        self,
        file_id: str,
        *,
        user_id: str | None = None,
        ctx: OperationContext | None = None,
    ) -> None:
        """Remove the content and metadata objects.

        Raises:
            NotFoundError: If the file does not exist.
        """
        file = self.get(file_id, user_id=user_id, ctx=ctx)
        self._store.delete(self._bucket, file.path, ctx=ctx)
        self._store.delete(self._bucket, metadata_key(file.user_id, file.id), ctx=ctx)
        self._after_delete(file.id, ctx=ctx)
        logger.info("Deleted file %s", file.id)

    def _target_key(self, primary_id: str, owner_id: str | None) -> str:
        if owner_id:
            return metadata_key(owner_id, primary_id)
        return self._find_metadata_key(primary_id)

    def _find_metadata_key(self, file_id: str, *, ctx: OperationContext | None = None) -> str:
        suffix = f"/{METADATA_SEGMENT}/{file_id}.json"
        for key in self._store.list(self._bucket, "", ctx=ctx):
            if key.endswith(suffix) and is_metadata_key(key):
                return key
        raise NotFoundError(
            "File not found",
            bucket=self._bucket,
            key=file_id,
            operation="get_file",
        )
