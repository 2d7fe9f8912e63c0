"""File store entry models.

Provides the file and directory entries returned by lookups and listings,
and the tagged result used by existence probes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from s3filestore.storage.paths import SEPARATOR, file_name

if TYPE_CHECKING:
    from s3filestore.storage.collaborators import Clock

ZERO_TIMESTAMP = datetime(1, 1, 1, tzinfo=UTC)


class TimestampKind(str, Enum):
    """Where an entry's last-modified value comes from."""

    STORED = "stored"
    SYNTHETIC = "synthetic"


@runtime_checkable
class StoreEntry(Protocol):
    """Capabilities shared by file and directory entries."""

    @property
    def path(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def directory_path(self) -> str: ...

    @property
    def length(self) -> int: ...

    @property
    def last_modified_utc(self) -> datetime: ...

    @property
    def is_directory(self) -> bool: ...

    @property
    def timestamp_kind(self) -> TimestampKind: ...


def _directory_path_of(path: str, name: str) -> str:
    if len(path) <= len(name):
        return ""
    return path[: len(path) - len(name) - 1].strip(SEPARATOR)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True, init=False)
class FileEntry:
    """A file stored as a single object.

    Size and timestamp are best-effort: some listing calls omit them, in
    which case they default to 0 and ZERO_TIMESTAMP.

    Attributes:
        path: Logical path relative to the store root.
        length: Object size in bytes.
        last_modified_utc: Timestamp stored with the object.
    """

    path: str
    length: int = 0
    last_modified_utc: datetime = ZERO_TIMESTAMP

    def __init__(
        self,
        path: str,
        length: int | None = None,
        last_modified: datetime | None = None,
    ) -> None:
        object.__setattr__(self, "path", path)
        object.__setattr__(self, "length", int(length) if length is not None else 0)
        object.__setattr__(
            self,
            "last_modified_utc",
            _as_utc(last_modified) if last_modified is not None else ZERO_TIMESTAMP,
        )

    @property
    def name(self) -> str:
        return file_name(self.path)

    @property
    def directory_path(self) -> str:
        return _directory_path_of(self.path, self.name)

    @property
    def is_directory(self) -> bool:
        return False

    @property
    def timestamp_kind(self) -> TimestampKind:
        return TimestampKind.STORED


@dataclass(frozen=True)
class DirectoryEntry:
    """A directory emulated from a key prefix.

    Directories have no stored timestamp. last_modified_utc is the time the
    directory was observed, tagged as TimestampKind.SYNTHETIC.
    """

    path: str
    last_modified_utc: datetime
    length: int = field(default=0, init=False)

    @classmethod
    def observed(cls, path: str, clock: Clock) -> DirectoryEntry:
        """Create a directory entry stamped with the clock's current time."""
        return cls(path=path, last_modified_utc=_as_utc(clock.now()))

    @property
    def name(self) -> str:
        return file_name(self.path)

    @property
    def directory_path(self) -> str:
        return _directory_path_of(self.path, self.name)

    @property
    def is_directory(self) -> bool:
        return True

    @property
    def timestamp_kind(self) -> TimestampKind:
        return TimestampKind.SYNTHETIC


class LookupStatus(str, Enum):
    """Outcome of an existence probe."""

    FOUND = "found"
    ABSENT = "absent"
    TRANSIENT_ERROR = "transient_error"


@dataclass(frozen=True)
class LookupResult:
    """Tagged result of probing for a file or directory.

    Attributes:
        status: Whether the entry was found, is absent, or could not be
            determined because the service call failed.
        entry: The entry when status is FOUND.
        error: The underlying failure when status is TRANSIENT_ERROR.
    """

    status: LookupStatus
    entry: FileEntry | DirectoryEntry | None = None
    error: Exception | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @classmethod
    def of(cls, entry: FileEntry | DirectoryEntry) -> LookupResult:
        return cls(status=LookupStatus.FOUND, entry=entry)

    @classmethod
    def absent(cls) -> LookupResult:
        return cls(status=LookupStatus.ABSENT)

    @classmethod
    def transient(cls, error: Exception) -> LookupResult:
        return cls(status=LookupStatus.TRANSIENT_ERROR, error=error)
