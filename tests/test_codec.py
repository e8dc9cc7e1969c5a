"""Tests for the entity codec.

- Canonical encoding: camelCase names, sorted keys, unset optionals omitted
- Round-trip of every entity model
- Unknown fields ignored; legacy "password" field accepted
- Undecodable payloads raise CorruptObjectError, never a default entity
"""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from objectdocs.codec import decode, encode
from objectdocs.errors import CorruptObjectError
from objectdocs.models import File, IndexEntry, Post, PostStatus, User


class TestEncode:
    """Tests for canonical JSON output."""

    def test_uses_camel_case_names(self) -> None:
        """Field names are written in camelCase."""
        user = User(id="u1", username="alice", first_name="Alice", password_hash="h")

        payload = json.loads(encode(user))

        assert payload["firstName"] == "Alice"
        assert payload["passwordHash"] == "h"
        assert "first_name" not in payload

    def test_omits_unset_optionals(self) -> None:
        """etag and timestamps are left out while unset."""
        payload = json.loads(encode(User(id="u1")))

        assert "etag" not in payload
        assert "createdAt" not in payload

    def test_is_deterministic(self) -> None:
        """Equal entities encode to identical bytes."""
        a = Post(id="p1", title="t", tags=["x", "y"])
        b = Post(id="p1", title="t", tags=["x", "y"])

        assert encode(a) == encode(b)

    def test_index_entry_shape(self) -> None:
        """A plain index entry is just {"primaryId": ...}."""
        assert encode(IndexEntry(primary_id="abc")) == b'{"primaryId":"abc"}'


class TestRoundtrip:
    """decode(encode(x)) == x for each entity."""

    def test_user(self) -> None:
        now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        user = User(
            id="u1",
            username="alice",
            email="a@x",
            password_hash="hash",
            role="admin",
            created_at=now,
            updated_at=now,
        )

        assert decode(encode(user), User) == user

    def test_post(self) -> None:
        post = Post(id="p1", user_id="u1", status=PostStatus.PUBLISHED, tags=["go", "s3"])

        decoded = decode(encode(post), Post)

        assert decoded == post
        assert decoded.status is PostStatus.PUBLISHED

    def test_file(self) -> None:
        file = File(id="f1", user_id="u1", content_type="application/pdf", metadata={"k": "v"})

        assert decode(encode(file), File) == file


class TestDecodeTolerance:
    """Tests for payloads written by other versions."""

    def test_unknown_fields_ignored(self) -> None:
        data = b'{"id":"u1","username":"alice","favoriteColor":"blue"}'

        user = decode(data, User)

        assert user.username == "alice"

    def test_legacy_password_field(self) -> None:
        """Objects that stored the hash under "password" still load."""
        user = decode(b'{"id":"u1","password":"legacy-hash"}', User)

        assert user.password_hash == "legacy-hash"
        assert json.loads(encode(user))["passwordHash"] == "legacy-hash"


class TestCorruptPayloads:
    """Undecodable payloads surface as CorruptObjectError."""

    @pytest.mark.parametrize(
        "data",
        [
            b"not json",
            b"\xff\xfe\x00",
            b"[1, 2, 3]",
            b'"just a string"',
            b'{"id": "u1", "createdAt": "yesterday-ish"}',
        ],
    )
    def test_raises_corrupt_object(self, data: bytes) -> None:
        with pytest.raises(CorruptObjectError) as exc_info:
            decode(data, User, bucket="users", key="user-u1")

        assert exc_info.value.bucket == "users"
        assert exc_info.value.key == "user-u1"
        assert "key=user-u1" in str(exc_info.value)
