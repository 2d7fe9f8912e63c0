"""File store interface definition.

Provides the FileStore base class that hierarchical file stores implement on
top of flat object storage.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, BinaryIO

from s3filestore.storage.paths import join

if TYPE_CHECKING:
    from s3filestore.storage.cancellation import CancellationToken
    from s3filestore.storage.models import DirectoryEntry, FileEntry, StoreEntry


class FileStore(ABC):
    """Abstract base class for hierarchical file stores.

    Paths are "/"-separated and relative to the store root ("" is the root).
    Implementations hold no locks: "create if absent" and "copy if the
    destination is absent" checks are advisory, and concurrent callers can
    still race past them.

    Implementations:
    - S3FileStore: S3-compatible object storage
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability."""
        ...

    def combine(self, *paths: str | None) -> str:
        """Join logical path segments with single separators."""
        return join(*paths)

    @abstractmethod
    def get_file_info(
        self, path: str, *, cancel: CancellationToken | None = None
    ) -> FileEntry | None:
        """Return the file at path, or None if it cannot be found.

        Any lookup failure, including transient service errors, yields None.
        """
        ...

    @abstractmethod
    def get_directory_info(
        self, path: str, *, cancel: CancellationToken | None = None
    ) -> DirectoryEntry | None:
        """Return the directory at path, or None if it cannot be found.

        The root ("") always exists. Any other directory exists while at
        least one object lives under its prefix.
        """
        ...

    @abstractmethod
    def get_directory_content(
        self,
        path: str | None = None,
        include_sub_directories: bool = False,
        *,
        cancel: CancellationToken | None = None,
    ) -> list[StoreEntry]:
        """List the direct children of a directory.

        Args:
            path: Directory to list; None or "" lists the root.
            include_sub_directories: Also return directory marker objects.
            cancel: Optional cancellation token.

        Returns:
            Directories first, then files, each in listing order. Empty if
            nothing lives under the path.
        """
        ...

    @abstractmethod
    def try_create_directory(
        self, path: str, *, cancel: CancellationToken | None = None
    ) -> bool:
        """Create a directory so it shows up even while empty.

        Raises:
            InvalidOperationError: If a file already exists at path.
        """
        ...

    @abstractmethod
    def try_delete_file(self, path: str, *, cancel: CancellationToken | None = None) -> bool:
        """Delete a file. Returns False (and logs) if the delete failed."""
        ...

    @abstractmethod
    def try_delete_directory(
        self, path: str, *, cancel: CancellationToken | None = None
    ) -> bool:
        """Delete a directory and everything under it.

        Raises:
            InvalidOperationError: If path is the root.
        """
        ...

    @abstractmethod
    def move_file(
        self, old_path: str, new_path: str, *, cancel: CancellationToken | None = None
    ) -> None:
        """Move a file by copying it and deleting the source.

        Not atomic: if the source delete fails the file exists at both paths.
        """
        ...

    @abstractmethod
    def copy_file(
        self, src_path: str, dst_path: str, *, cancel: CancellationToken | None = None
    ) -> None:
        """Copy a file without ever overwriting the destination.

        Raises:
            InvalidOperationError: If the paths are equal, the source does
                not exist, or the destination already exists.
            FileStoreTransportError: If the service rejects the copy.
        """
        ...

    @abstractmethod
    def get_file_stream(
        self, path: str | StoreEntry, *, cancel: CancellationToken | None = None
    ) -> BinaryIO:
        """Open a file for reading. The caller must close the stream.

        Raises:
            FileStoreTransportError: If the file cannot be opened.
        """
        ...

    @abstractmethod
    def create_file_from_stream(
        self,
        path: str,
        input_stream: BinaryIO,
        overwrite: bool = False,
        *,
        cancel: CancellationToken | None = None,
    ) -> str:
        """Create a file from a readable stream and return its path.

        Raises:
            InvalidOperationError: If a file already exists at path.
        """
        ...
