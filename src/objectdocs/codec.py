"""Entity codec: pydantic models <-> canonical JSON bytes.

Encoding is deterministic (sorted keys, compact separators, camelCase names,
unset optional fields omitted) so identical entities always produce identical
bytes. Decoding ignores unknown fields and raises CorruptObjectError for any
payload that is not a JSON object of the right shape; it never substitutes a
default for a payload it could not read.
"""

from __future__ import annotations

import json
from typing import Generic, TypeVar

from pydantic import ValidationError

from objectdocs.errors import CorruptObjectError
from objectdocs.models.base import StoredModel

M = TypeVar("M", bound=StoredModel)

JSON_CONTENT_TYPE = "application/json"


def encode(entity: StoredModel) -> bytes:
    """Serialize an entity to canonical UTF-8 JSON bytes."""
    payload = entity.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def decode(
    data: bytes,
    model: type[M],
    *,
    bucket: str | None = None,
    key: str | None = None,
) -> M:
    """Deserialize bytes into an instance of model.

    Args:
        data: Stored payload.
        model: Target model class.
        bucket: Bucket the payload came from, for error context.
        key: Key the payload came from, for error context.

    Raises:
        CorruptObjectError: If the payload is not valid UTF-8 JSON, not an
            object, or has a field of the wrong type.
    """
    try:
        raw = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptObjectError(
            f"Undecodable {model.__name__} payload: {e}",
            bucket=bucket,
            key=key,
            operation="decode",
            cause=e,
        ) from e

    if not isinstance(raw, dict):
        raise CorruptObjectError(
            f"Undecodable {model.__name__} payload: expected a JSON object, "
            f"got {type(raw).__name__}",
            bucket=bucket,
            key=key,
            operation="decode",
        )

    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise CorruptObjectError(
            f"Undecodable {model.__name__} payload: {e.error_count()} invalid field(s)",
            bucket=bucket,
            key=key,
            operation="decode",
            cause=e,
        ) from e


class EntityCodec(Generic[M]):
    """encode/decode bound to one model class."""

    def __init__(self, model: type[M]) -> None:
        self.model = model

    def encode(self, entity: M) -> bytes:
        return encode(entity)

    def decode(self, data: bytes, *, bucket: str | None = None, key: str | None = None) -> M:
        return decode(data, self.model, bucket=bucket, key=key)
