"""Per-call deadline and cancellation signal.

An OperationContext is passed down from a facade call to every object store
call it makes. Stores check it before doing I/O; nothing is undone when it
fires halfway through a multi-step operation.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

from objectdocs.errors import OperationCancelledError


@dataclass
class OperationContext:
    """Deadline and cancellation flag shared by one logical operation.

    Attributes:
        deadline: Absolute time.monotonic() value after which calls fail,
            or None for no deadline.
        cancel_event: Event that cancels the operation when set.
    """

    deadline: float | None = None
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @classmethod
    def with_timeout(cls, seconds: float) -> OperationContext:
        """Create a context whose deadline is `seconds` from now."""
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        """True once cancel() was called or the deadline has passed."""
        if self.cancel_event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(
        self,
        *,
        operation: str | None = None,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        """Raise OperationCancelledError if the context is done."""
        if self.cancelled:
            reason = "cancelled" if self.cancel_event.is_set() else "deadline exceeded"
            raise OperationCancelledError(
                f"Operation {reason}",
                operation=operation,
                bucket=bucket,
                key=key,
            )


def check_context(
    ctx: OperationContext | None,
    *,
    operation: str | None = None,
    bucket: str | None = None,
    key: str | None = None,
) -> None:
    """Check an optional context; a None context never cancels."""
    if ctx is not None:
        ctx.check(operation=operation, bucket=bucket, key=key)
