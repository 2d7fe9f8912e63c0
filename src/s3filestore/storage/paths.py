"""Path normalization and key mapping.

Logical paths are "/"-separated and relative to the store root. Object keys
are the logical path prefixed by the configured base prefix.
"""

from __future__ import annotations

import re

SEPARATOR = "/"

_SEPARATOR_RUN = re.compile(r"/{2,}")


def normalize_path(path: str | None) -> str:
    """Canonicalize a logical path.

    Backslashes become "/", runs of separators collapse, and leading and
    trailing separators are stripped. None and "/" both become "".
    """
    if not path:
        return ""
    path = path.replace("\\", SEPARATOR)
    path = _SEPARATOR_RUN.sub(SEPARATOR, path)
    return path.strip(SEPARATOR)


def join(*parts: str | None) -> str:
    """Join path segments with exactly one separator between them.

    Empty segments are dropped, so join("", "a") == "a" and
    join("media/", "/a//b") == "media/a/b".
    """
    normalized = (normalize_path(part) for part in parts)
    return SEPARATOR.join(part for part in normalized if part)


def normalize_prefix(prefix: str | None) -> str:
    """Return a listing prefix with exactly one trailing separator.

    The root of the bucket has no prefix, so "" and "/" both return "".
    """
    prefix = (prefix or "").strip(SEPARATOR) + SEPARATOR
    return "" if prefix == SEPARATOR else prefix


def file_name(path: str) -> str:
    """Return the last segment of a "/"-separated path."""
    return path.rsplit(SEPARATOR, 1)[-1]


class KeyMapper:
    """Maps logical paths to object keys under a fixed base prefix."""

    def __init__(self, base_path: str | None = None) -> None:
        self._base_prefix = normalize_prefix(normalize_path(base_path))

    @property
    def base_prefix(self) -> str:
        """Return the base prefix ("" or ending with one separator)."""
        return self._base_prefix

    def complete_key(self, path: str | None) -> str:
        """Return the object key for a logical path."""
        return join(self._base_prefix, path)

    def directory_prefix(self, path: str | None) -> str:
        """Return the listing prefix for a logical directory path."""
        return normalize_prefix(self.complete_key(path))

    def strip_base_prefix(self, key: str) -> str:
        """Turn a listed key or common prefix back into a logical path."""
        if self._base_prefix and key.startswith(self._base_prefix):
            key = key[len(self._base_prefix) :]
        return key.strip(SEPARATOR)
