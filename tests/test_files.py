"""Tests for the files repository: content plus metadata objects."""

from __future__ import annotations

import pytest

from objectdocs.document_store import DocumentStore
from objectdocs.errors import NotFoundError
from objectdocs.models import File, PageRequest
from objectdocs.repositories.files import content_key, file_extension, metadata_key
from objectdocs.storage.memory_store import InMemoryObjectStore

PDF_BYTES = b"%PDF-1.4\n" + bytes(range(256)) * 4


def _upload(document_store: DocumentStore, user_id: str = "u1", name: str = "sample.pdf") -> File:
    return document_store.files.upload(
        File(user_id=user_id, original_name=name),
        PDF_BYTES,
        content_type="application/pdf",
    )


class TestKeys:
    """Tests for content/metadata key layout."""

    def test_content_key(self) -> None:
        assert content_key("u1", "f1", "pdf") == "u1/f1.pdf"
        assert content_key("u1", "f1") == "u1/f1"

    def test_metadata_key(self) -> None:
        assert metadata_key("u1", "f1") == "u1/metadata/f1.json"

    @pytest.mark.parametrize(
        ("name", "ext"),
        [
            ("sample.pdf", "pdf"),
            ("archive.tar.gz", "gz"),
            ("README", ""),
            ("weird.p d f", ""),
            (".bashrc", ""),
        ],
    )
    def test_file_extension(self, name: str, ext: str) -> None:
        assert file_extension(name) == ext


class TestUpload:
    """Tests for upload and content retrieval."""

    def test_upload_assigns_fields(self, document_store: DocumentStore) -> None:
        file = _upload(document_store)

        assert file.id
        assert file.file_name == f"{file.id}.pdf"
        assert file.path == f"u1/{file.id}.pdf"
        assert file.size == len(PDF_BYTES)
        assert file.content_type == "application/pdf"
        assert file.original_name == "sample.pdf"
        assert file.created_at is not None

    def test_upload_writes_objects(
        self, document_store: DocumentStore, object_store: InMemoryObjectStore
    ) -> None:
        file = _upload(document_store)
        day = file.created_at.strftime("%Y-%m-%d")

        assert set(object_store.list("files")) == {
            f"u1/{file.id}.pdf",
            f"u1/metadata/{file.id}.json",
            f"indexes/owner-u1/{file.id}.json",
            f"indexes/content_type-application%2Fpdf/{file.id}.json",
            f"indexes/date-{day}/{file.id}.json",
        }

    def test_content_roundtrip(self, document_store: DocumentStore) -> None:
        """Downloaded bytes are identical and keep the uploaded content type."""
        file = _upload(document_store)

        content = document_store.files.get_content(file.id, user_id="u1")

        assert content.body == PDF_BYTES
        assert content.content_type == "application/pdf"
        assert content.etag

    def test_default_content_type(self, document_store: DocumentStore) -> None:
        file = document_store.files.upload(File(user_id="u1", original_name="blob"), b"\x00\x01")

        assert file.content_type == "application/octet-stream"
        assert file.path == f"u1/{file.id}"
        content = document_store.files.get_content(file.id)
        assert content.content_type == "application/octet-stream"

    def test_upload_requires_owner(self, document_store: DocumentStore) -> None:
        with pytest.raises(ValueError):
            document_store.files.upload(File(original_name="a.txt"), b"x")


class TestGet:
    """Tests for metadata lookup with and without the owner id."""

    def test_get_with_owner(self, document_store: DocumentStore) -> None:
        file = _upload(document_store)

        assert document_store.files.get(file.id, user_id="u1") == file

    def test_get_without_owner_scans(self, document_store: DocumentStore) -> None:
        _upload(document_store, user_id="u2")
        file = _upload(document_store, user_id="u1")

        assert document_store.files.get(file.id).user_id == "u1"

    def test_get_missing(self, document_store: DocumentStore) -> None:
        with pytest.raises(NotFoundError):
            document_store.files.get("missing")
        with pytest.raises(NotFoundError):
            document_store.files.get("missing", user_id="u1")


class TestUpdate:
    """Tests for metadata updates."""

    def test_update_keeps_content_fields(self, document_store: DocumentStore) -> None:
        file = _upload(document_store)

        updated = document_store.files.update(
            file.model_copy(update={"metadata": {"label": "q1"}, "size": 1, "path": "x"})
        )

        assert updated.metadata == {"label": "q1"}
        assert updated.size == file.size
        assert updated.path == file.path
        assert document_store.files.get_content(file.id).body == PDF_BYTES

    def test_content_type_change_moves_entry(
        self, document_store: DocumentStore, object_store: InMemoryObjectStore
    ) -> None:
        file = _upload(document_store)

        document_store.files.update(file.model_copy(update={"content_type": "application/x-pdf"}))

        assert document_store.files.list_by_content_type("application/pdf").pagination.total == 0
        moved = document_store.files.list_by_content_type("application/x-pdf")
        assert [f.id for f in moved.data] == [file.id]


class TestListings:
    """Tests for listing files."""

    def test_list_counts_metadata_only(self, document_store: DocumentStore) -> None:
        for user_id in ("u1", "u1", "u2"):
            _upload(document_store, user_id=user_id)

        page = document_store.files.list(PageRequest.of(1, 10))

        assert page.pagination.total == 3
        assert len(page.data) == 3

    def test_list_by_owner(self, document_store: DocumentStore) -> None:
        mine = _upload(document_store, user_id="u1")
        _upload(document_store, user_id="u2")

        page = document_store.files.list_by_owner("u1")

        assert [f.id for f in page.data] == [mine.id]

    def test_list_by_date(self, document_store: DocumentStore) -> None:
        file = _upload(document_store)
        day = file.created_at.strftime("%Y-%m-%d")

        page = document_store.files.list_by_date(day)

        assert [f.id for f in page.data] == [file.id]
        assert document_store.files.list_by_date("1999-01-01").pagination.total == 0


class TestDelete:
    """Tests for delete."""

    def test_delete_removes_content_and_metadata(
        self, document_store: DocumentStore, object_store: InMemoryObjectStore
    ) -> None:
        file = _upload(document_store)

        document_store.files.delete(file.id)

        assert not object_store.exists("files", file.path)
        assert not object_store.exists("files", metadata_key("u1", file.id))
        with pytest.raises(NotFoundError):
            document_store.files.get_content(file.id)

    def test_delete_leaves_index_entries(
        self, document_store: DocumentStore, object_store: InMemoryObjectStore
    ) -> None:
        file = _upload(document_store)

        document_store.files.delete(file.id, user_id="u1")

        assert object_store.exists("files", f"indexes/owner-u1/{file.id}.json")
        page = document_store.files.list_by_owner("u1")
        assert page.data == []
        assert page.pagination.total == 1
