"""Shared pydantic configuration for stored entities.

Stored JSON uses camelCase field names. Unknown fields are ignored on read so
older or newer writers can share a bucket, and every field has a default so a
partial payload still decodes; checking for required values is left to callers.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StoredModel(BaseModel):
    """Base class for everything persisted as a JSON object."""

    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=False,
    )
