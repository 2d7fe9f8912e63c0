"""Cooperative cancellation for file store operations."""

from __future__ import annotations

import threading

from s3filestore.storage.errors import OperationCancelledError


class CancellationToken:
    """Signal that callers set to abandon an in-progress operation.

    The file store checks the token before every round trip to the object
    storage service. A request that is already on the wire completes; the
    next check raises OperationCancelledError.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str, *, path: str | None = None) -> None:
        """Raise OperationCancelledError if cancel() has been called."""
        if self._event.is_set():
            raise OperationCancelledError(
                message=f"Operation '{operation}' cancelled",
                path=path,
                operation=operation,
            )
