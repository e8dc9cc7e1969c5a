"""OpenTelemetry tracing for object store operations.

Provides a decorator that wraps ObjectStore methods in spans when
OBJECTDOCS_OTEL_ENABLED is set.

Span attributes never include raw object keys: keys embed usernames and email
addresses, so only their SHA256 is exported.
"""

from __future__ import annotations

import functools
import hashlib
import os
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, TypeVar, cast

from objectdocs.storage.models import ObjectInfo, StoredObject

if TYPE_CHECKING:
    from opentelemetry.trace import Tracer

OBJECTDOCS_OTEL_ENABLED_ENV = "OBJECTDOCS_OTEL_ENABLED"
TRACER_NAME = "objectdocs.object_store"

F = TypeVar("F", bound=Callable[..., Any])


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no", ""):
        return default
    return default


def _is_otel_enabled() -> bool:
    """Check if OpenTelemetry tracing is enabled."""
    return _get_env_bool(OBJECTDOCS_OTEL_ENABLED_ENV, False)


def _get_tracer() -> Tracer:
    from opentelemetry import trace

    return trace.get_tracer(TRACER_NAME)


def key_digest(key: str) -> str:
    """Return the SHA256 hex digest used in place of a raw key."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def traced_storage_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace storage operations with OpenTelemetry.

    The wrapped method must take (self, bucket, key_or_prefix, ...). For
    "list" the span stays open until the returned key iterator is exhausted
    or closed, so errors raised while iterating are recorded too.

    Args:
        operation: Operation name (e.g., "put", "get", "list", "delete").

    Returns:
        Decorated function that emits spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, bucket: str, *args: Any, **kwargs: Any) -> Any:
            if not _is_otel_enabled():
                return func(self, bucket, *args, **kwargs)

            if args:
                key = args[0]
            else:
                key = kwargs.get("key", kwargs.get("prefix", ""))

            tracer = _get_tracer()
            span_name = f"objectdocs.object_store.{operation}"

            if operation == "list":
                span = tracer.start_span(span_name)
                _add_request_attributes(span, self, bucket, key)
                try:
                    keys = func(self, bucket, *args, **kwargs)
                except Exception as e:
                    _record_error(span, e)
                    span.end()
                    raise
                return _iter_in_span(span, keys)

            with tracer.start_as_current_span(span_name) as span:
                _add_request_attributes(span, self, bucket, key)
                try:
                    result = func(self, bucket, *args, **kwargs)
                except Exception as e:
                    _record_error(span, e)
                    raise

                _add_result_attributes(span, result)
                return result

        return cast(F, wrapper)

    return decorator


def _add_request_attributes(span: Any, store: Any, bucket: str, key: Any) -> None:
    span.set_attribute("objectdocs.bucket", bucket)
    span.set_attribute("objectdocs.object_key_sha256", key_digest(str(key)))
    span.set_attribute("storage.backend", getattr(store, "backend_name", "unknown"))


def _record_error(span: Any, error: Exception) -> None:
    span.set_attribute("error", True)
    span.set_attribute("error.type", type(error).__name__)


def _iter_in_span(span: Any, keys: Iterator[str]) -> Iterator[str]:
    """Yield keys; the span ends once iteration stops for any reason."""
    listed = 0
    try:
        for key in keys:
            listed += 1
            yield key
    except Exception as e:
        _record_error(span, e)
        raise
    finally:
        span.set_attribute("objectdocs.listed_keys", listed)
        span.end()


def _add_result_attributes(span: Any, result: Any) -> None:
    """Add etag/size attributes for put and get results."""
    info: ObjectInfo | None = None
    if isinstance(result, ObjectInfo):
        info = result
    elif isinstance(result, StoredObject):
        info = result.info

    if info is not None:
        span.set_attribute("objectdocs.object_etag", info.etag)
        span.set_attribute("objectdocs.object_size_bytes", info.size_bytes)
        if info.content_type:
            span.set_attribute("objectdocs.object_content_type", info.content_type)
