"""File store error types.

Provides typed exceptions for file store operations. Lookups never raise for
missing entries (they return None); creation and copy operations raise when
a precondition is violated; delete operations report failure as False.
"""

from __future__ import annotations


class FileStoreError(Exception):
    """Base exception for file store operations.

    Attributes:
        message: Human-readable error message.
        path: Logical path associated with the operation (if applicable).
        key: Full object key associated with the operation (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.key = key

    def __str__(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"path={self.path}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)


class InvalidOperationError(FileStoreError):
    """Raised when an operation's precondition does not hold.

    Covers deleting the root directory, copying a path onto itself, copying
    a missing source or onto an existing destination, creating a file that
    already exists, and creating a directory where a file exists.
    """


class FileStoreTransportError(FileStoreError):
    """Raised when the object storage service cannot complete a call.

    Wraps the underlying client failure; this layer does not retry.
    """

    def __init__(
        self,
        message: str = "Object storage request failed",
        *,
        path: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, path=path, key=key)
        self.cause = cause


class OperationCancelledError(FileStoreError):
    """Raised when a cancellation token is observed before a round trip.

    Round trips that already completed are not rolled back.
    """

    def __init__(
        self,
        message: str = "Operation cancelled",
        *,
        path: str | None = None,
        key: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, path=path, key=key)
        self.operation = operation
