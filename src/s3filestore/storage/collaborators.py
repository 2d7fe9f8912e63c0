"""Clock and content-type collaborators used by the file store."""

from __future__ import annotations

import mimetypes
import posixpath
from datetime import UTC, datetime
from typing import Protocol

from s3filestore.storage.paths import file_name

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class Clock(Protocol):
    """Source of the current UTC time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class ContentTypeResolver(Protocol):
    """Maps a path to a MIME type, or None when unknown."""

    def resolve(self, path: str) -> str | None: ...


class MimetypesContentTypeResolver:
    """Resolves content types from file extensions via the mimetypes registry."""

    def __init__(self, extra_types: dict[str, str] | None = None) -> None:
        self._extra_types = {
            ext.lower() if ext.startswith(".") else f".{ext.lower()}": content_type
            for ext, content_type in (extra_types or {}).items()
        }

    def resolve(self, path: str) -> str | None:
        extension = posixpath.splitext(file_name(path))[1].lower()
        if extension:
            extra = self._extra_types.get(extension)
            if extra:
                return extra
        content_type, _ = mimetypes.guess_type(path, strict=False)
        return content_type
