"""S3 file store.

Emulates a directory tree on an S3-compatible bucket:
- Directories are key prefixes up to "/"
- Explicitly created directories hold a small marker object so they stay
  visible while empty
- Move is copy followed by delete and is not atomic

The store keeps no state beyond its settings and holds no locks; every
operation is one or a short, bounded sequence of requests to the service.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any, BinaryIO
from urllib.parse import unquote_plus

from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from s3filestore.storage.cancellation import CancellationToken
from s3filestore.storage.client import create_s3_client
from s3filestore.storage.collaborators import (
    DEFAULT_CONTENT_TYPE,
    Clock,
    ContentTypeResolver,
    MimetypesContentTypeResolver,
    SystemClock,
)
from s3filestore.storage.errors import FileStoreTransportError, InvalidOperationError
from s3filestore.storage.file_store import FileStore
from s3filestore.storage.models import (
    DirectoryEntry,
    FileEntry,
    LookupResult,
    StoreEntry,
)
from s3filestore.storage.paths import SEPARATOR, KeyMapper, file_name, join, normalize_path
from s3filestore.storage.settings import S3Settings
from s3filestore.storage.tracing import traced_file_store_operation

logger = logging.getLogger(__name__)

DIRECTORY_MARKER_FILE_NAME = "OrchardCore.Media.txt"
DIRECTORY_MARKER_CONTENT = (
    "This is a directory marker file created by Orchard Core. It is safe to delete it."
)

# DeleteObjects accepts at most 1000 keys per request.
DELETE_BATCH_SIZE = 1000

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})

_SERVICE_ERRORS = (ClientError, BotoCoreError)


def _is_not_found(error: ClientError) -> bool:
    code = str(error.response.get("Error", {}).get("Code", ""))
    return code in _NOT_FOUND_CODES


def _describe(error: Exception) -> str:
    """Return a short description of a client failure for messages and logs."""
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        code = details.get("Code", "Unknown")
        message = details.get("Message", "")
        return f"{code} {message}".strip()
    return str(error) or type(error).__name__


def _check_cancelled(cancel: CancellationToken | None, operation: str, path: str) -> None:
    if cancel is not None:
        cancel.raise_if_cancelled(operation, path=path)


class S3FileStore(FileStore):
    """File store backed by an S3-compatible bucket.

    Keys are built as base_prefix + logical path. The client is any object
    exposing the boto3 S3 client methods used here; it is shared across
    threads, as boto3 clients allow.
    """

    def __init__(
        self,
        settings: S3Settings,
        client: Any | None = None,
        *,
        clock: Clock | None = None,
        content_type_resolver: ContentTypeResolver | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            settings: Bucket, base path and connection settings.
            client: boto3 S3 client. If None, one is created from settings.
            clock: Clock used to stamp directory entries.
            content_type_resolver: Maps paths to content types on upload.
        """
        self._settings = settings
        self._client = client if client is not None else create_s3_client(settings)
        self._clock: Clock = clock or SystemClock()
        self._content_types: ContentTypeResolver = (
            content_type_resolver or MimetypesContentTypeResolver()
        )
        self._keys = KeyMapper(settings.base_path)
        logger.debug(
            "S3FileStore initialized: bucket=%s base_prefix=%s",
            settings.bucket_name,
            self._keys.base_prefix,
        )

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "s3"

    @property
    def bucket_name(self) -> str:
        return self._settings.bucket_name

    @property
    def base_prefix(self) -> str:
        return self._keys.base_prefix

    def _probe_key(
        self,
        path: str,
        key: str,
        operation: str,
        cancel: CancellationToken | None,
    ) -> LookupResult:
        """Fetch object metadata for key and classify the outcome."""
        _check_cancelled(cancel, operation, path)
        try:
            metadata = self._client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                return LookupResult.absent()
            logger.warning("Object lookup failed: key=%s error=%s", key, _describe(e))
            return LookupResult.transient(e)
        except BotoCoreError as e:
            logger.warning("Object lookup failed: key=%s error=%s", key, _describe(e))
            return LookupResult.transient(e)

        return LookupResult.of(
            FileEntry(path, metadata.get("ContentLength"), metadata.get("LastModified"))
        )

    def _probe_directory(self, path: str, cancel: CancellationToken | None) -> LookupResult:
        if not path:
            return LookupResult.of(DirectoryEntry.observed(path, self._clock))

        _check_cancelled(cancel, "get_directory_info", path)
        prefix = self._keys.directory_prefix(path)
        try:
            response = self._client.list_objects_v2(
                Bucket=self.bucket_name, Prefix=prefix, MaxKeys=1
            )
        except _SERVICE_ERRORS as e:
            logger.warning("Directory lookup failed: prefix=%s error=%s", prefix, _describe(e))
            return LookupResult.transient(e)

        if response.get("Contents"):
            return LookupResult.of(DirectoryEntry.observed(path, self._clock))
        return LookupResult.absent()

    def _list_pages(
        self,
        prefix: str,
        *,
        operation: str,
        path: str,
        cancel: CancellationToken | None,
        delimiter: str | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Yield every list_objects_v2 page under prefix.

        Raises:
            FileStoreTransportError: If a page cannot be fetched.
        """
        kwargs: dict[str, Any] = {"Bucket": self.bucket_name, "Prefix": prefix}
        if delimiter:
            kwargs["Delimiter"] = delimiter

        paginator = self._client.get_paginator("list_objects_v2")
        pages = iter(paginator.paginate(**kwargs))
        while True:
            _check_cancelled(cancel, operation, path)
            try:
                page = next(pages)
            except StopIteration:
                return
            except _SERVICE_ERRORS as e:
                raise FileStoreTransportError(
                    message=f"Cannot list '{path}': {_describe(e)}",
                    path=path,
                    key=prefix,
                    cause=e,
                ) from e
            yield page

    @traced_file_store_operation("probe_file")
    def probe_file(self, path: str, *, cancel: CancellationToken | None = None) -> LookupResult:
        """Look up a file, distinguishing absence from service failures."""
        logical_path = normalize_path(path)
        return self._probe_key(
            logical_path, self._keys.complete_key(logical_path), "probe_file", cancel
        )

    @traced_file_store_operation("get_file_info")
    def get_file_info(
        self, path: str, *, cancel: CancellationToken | None = None
    ) -> FileEntry | None:
        """Return the file at path, or None if it cannot be found."""
        logical_path = normalize_path(path)
        result = self._probe_key(
            logical_path, self._keys.complete_key(logical_path), "get_file_info", cancel
        )
        if isinstance(result.entry, FileEntry):
            return result.entry
        return None

    @traced_file_store_operation("probe_directory")
    def probe_directory(
        self, path: str, *, cancel: CancellationToken | None = None
    ) -> LookupResult:
        """Look up a directory, distinguishing absence from service failures."""
        return self._probe_directory(normalize_path(path), cancel)

    @traced_file_store_operation("get_directory_info")
    def get_directory_info(
        self, path: str, *, cancel: CancellationToken | None = None
    ) -> DirectoryEntry | None:
        """Return the directory at path, or None if it cannot be found."""
        result = self._probe_directory(normalize_path(path), cancel)
        if isinstance(result.entry, DirectoryEntry):
            return result.entry
        return None

    @traced_file_store_operation("get_directory_content")
    def get_directory_content(
        self,
        path: str | None = None,
        include_sub_directories: bool = False,
        *,
        cancel: CancellationToken | None = None,
    ) -> list[StoreEntry]:
        """List the direct children of a directory, directories first."""
        logical_path = normalize_path(path)
        prefix = self._keys.directory_prefix(logical_path)

        results: list[StoreEntry] = []
        for page in self._list_pages(
            prefix,
            operation="get_directory_content",
            path=logical_path,
            cancel=cancel,
            delimiter=SEPARATOR,
        ):
            for common_prefix in page.get("CommonPrefixes", []):
                folder_path = self._keys.strip_base_prefix(common_prefix["Prefix"])
                results.append(DirectoryEntry.observed(folder_path, self._clock))

            for s3_object in page.get("Contents", []):
                item_name = file_name(unquote_plus(s3_object["Key"]))
                # Zero-byte "folder" objects created by other tools list as the prefix itself.
                if not item_name:
                    continue
                if not include_sub_directories and item_name == DIRECTORY_MARKER_FILE_NAME:
                    continue
                results.append(
                    FileEntry(
                        join(logical_path, item_name),
                        s3_object.get("Size"),
                        s3_object.get("LastModified"),
                    )
                )

        return sorted(results, key=lambda entry: not entry.is_directory)

    @traced_file_store_operation("try_create_directory")
    def try_create_directory(
        self, path: str, *, cancel: CancellationToken | None = None
    ) -> bool:
        """Create a directory by uploading its marker object.

        The collision check and the upload are separate requests, so a file
        created concurrently at the same path is not detected.
        """
        logical_path = normalize_path(path)
        if not logical_path:
            return True

        key = self._keys.complete_key(logical_path)
        existing = self._probe_key(logical_path, key, "try_create_directory", cancel)
        if existing.found:
            raise InvalidOperationError(
                message=(
                    f"Cannot create directory because the path '{logical_path}' "
                    "already exists and is a file."
                ),
                path=logical_path,
                key=key,
            )

        marker_key = join(key, DIRECTORY_MARKER_FILE_NAME)
        _check_cancelled(cancel, "try_create_directory", logical_path)
        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=marker_key,
                Body=DIRECTORY_MARKER_CONTENT.encode("utf-8"),
                ContentType="text/plain",
            )
        except _SERVICE_ERRORS as e:
            raise FileStoreTransportError(
                message=f"Cannot create directory '{logical_path}': {_describe(e)}",
                path=logical_path,
                key=marker_key,
                cause=e,
            ) from e

        logger.debug("Created directory marker: bucket=%s key=%s", self.bucket_name, marker_key)
        return True

    @traced_file_store_operation("try_delete_file")
    def try_delete_file(self, path: str, *, cancel: CancellationToken | None = None) -> bool:
        """Delete a file. Returns False (and logs) if the service call fails."""
        logical_path = normalize_path(path)
        key = self._keys.complete_key(logical_path)
        _check_cancelled(cancel, "try_delete_file", logical_path)
        try:
            self._client.delete_object(Bucket=self.bucket_name, Key=key)
        except _SERVICE_ERRORS as e:
            logger.warning("Failed to delete file: key=%s error=%s", key, _describe(e))
            return False

        logger.debug("Deleted file: bucket=%s key=%s", self.bucket_name, key)
        return True

    @traced_file_store_operation("try_delete_directory")
    def try_delete_directory(
        self, path: str, *, cancel: CancellationToken | None = None
    ) -> bool:
        """Delete every object under a directory, its marker included.

        Deleting a directory that does not exist succeeds. A cancelled call
        may already have removed some keys.
        """
        logical_path = normalize_path(path)
        if not logical_path:
            raise InvalidOperationError(message="Cannot delete the root directory.")

        prefix = self._keys.directory_prefix(logical_path)
        try:
            keys = [
                s3_object["Key"]
                for page in self._list_pages(
                    prefix,
                    operation="try_delete_directory",
                    path=logical_path,
                    cancel=cancel,
                )
                for s3_object in page.get("Contents", [])
            ]
        except FileStoreTransportError as e:
            logger.warning("Failed to list directory for deletion: %s", e)
            return False

        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start : start + DELETE_BATCH_SIZE]
            _check_cancelled(cancel, "try_delete_directory", logical_path)
            try:
                response = self._client.delete_objects(
                    Bucket=self.bucket_name,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except _SERVICE_ERRORS as e:
                logger.warning(
                    "Failed to delete directory: prefix=%s error=%s", prefix, _describe(e)
                )
                return False

            for error in response.get("Errors", []):
                logger.warning(
                    "Failed to delete key=%s code=%s message=%s",
                    error.get("Key"),
                    error.get("Code"),
                    error.get("Message"),
                )

        logger.debug(
            "Deleted directory: bucket=%s prefix=%s objects=%d",
            self.bucket_name,
            prefix,
            len(keys),
        )
        return True

    @traced_file_store_operation("move_file")
    def move_file(
        self, old_path: str, new_path: str, *, cancel: CancellationToken | None = None
    ) -> None:
        """Copy the file to new_path, then delete old_path.

        If the delete fails the file exists at both paths; callers reconcile
        by retrying the delete.
        """
        self.copy_file(old_path, new_path, cancel=cancel)
        if not self.try_delete_file(old_path, cancel=cancel):
            logger.warning(
                "Move copied file but could not delete the source: src=%s dst=%s",
                normalize_path(old_path),
                normalize_path(new_path),
            )

    @traced_file_store_operation("copy_file")
    def copy_file(
        self, src_path: str, dst_path: str, *, cancel: CancellationToken | None = None
    ) -> None:
        """Copy a file server-side without overwriting the destination.

        The existence checks and the copy are separate requests; a
        destination created concurrently can still be overwritten.
        """
        src = normalize_path(src_path)
        dst = normalize_path(dst_path)
        if src == dst:
            raise InvalidOperationError(
                message="The values for src_path and dst_path must not be the same.",
                path=src,
            )

        src_key = self._keys.complete_key(src)
        dst_key = self._keys.complete_key(dst)

        source = self._probe_key(src, src_key, "copy_file", cancel)
        if not source.found:
            reason = f": {_describe(source.error)}" if source.error else ""
            raise InvalidOperationError(
                message=f"Cannot copy file from '{src}' because it does not exist{reason}.",
                path=src,
                key=src_key,
            )

        destination = self._probe_key(dst, dst_key, "copy_file", cancel)
        if destination.found:
            raise InvalidOperationError(
                message=f"Cannot copy file to '{dst}' because it already exists.",
                path=dst,
                key=dst_key,
            )

        _check_cancelled(cancel, "copy_file", src)
        try:
            response = self._client.copy_object(
                Bucket=self.bucket_name,
                Key=dst_key,
                CopySource={"Bucket": self.bucket_name, "Key": src_key},
            )
        except _SERVICE_ERRORS as e:
            raise FileStoreTransportError(
                message=(
                    f"Error while copying file '{src}'; copy operation failed with "
                    f"exception {_describe(e)}."
                ),
                path=src,
                key=src_key,
                cause=e,
            ) from e

        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode", 200)
        if "CopyObjectResult" not in response or not 200 <= status < 300:
            raise FileStoreTransportError(
                message=(
                    f"Error while copying file '{src}'; copy operation failed with "
                    f"status {status}."
                ),
                path=src,
                key=src_key,
            )

        logger.debug("Copied file: bucket=%s src=%s dst=%s", self.bucket_name, src_key, dst_key)

    @traced_file_store_operation("get_file_stream")
    def get_file_stream(
        self, path: str | StoreEntry, *, cancel: CancellationToken | None = None
    ) -> BinaryIO:
        """Open a file for reading.

        Returns the botocore StreamingBody; the caller must close it (it
        supports the context manager protocol).
        """
        logical_path = normalize_path(path if isinstance(path, str) else path.path)
        key = self._keys.complete_key(logical_path)
        _check_cancelled(cancel, "get_file_stream", logical_path)
        try:
            response = self._client.get_object(Bucket=self.bucket_name, Key=key)
        except _SERVICE_ERRORS as e:
            if isinstance(e, ClientError) and _is_not_found(e):
                message = (
                    f"Cannot get file stream because the file '{logical_path}' does not exist."
                )
            else:
                message = f"Cannot get file stream for '{logical_path}': {_describe(e)}"
            raise FileStoreTransportError(
                message=message, path=logical_path, key=key, cause=e
            ) from e

        body: BinaryIO = response["Body"]
        return body

    @traced_file_store_operation("create_file_from_stream")
    def create_file_from_stream(
        self,
        path: str,
        input_stream: BinaryIO,
        overwrite: bool = False,
        *,
        cancel: CancellationToken | None = None,
    ) -> str:
        """Upload a stream as a new file and return its logical path.

        Fails when the file exists, whatever overwrite says. The existence
        check and the upload are separate requests.
        """
        logical_path = normalize_path(path)
        key = self._keys.complete_key(logical_path)

        existing = self._probe_key(logical_path, key, "create_file_from_stream", cancel)
        # TODO: honor overwrite=True once it is decided whether uploads may replace existing media.
        if existing.found:
            raise InvalidOperationError(
                message=f"Cannot create file '{logical_path}' because it already exists.",
                path=logical_path,
                key=key,
            )

        content_type = self._content_types.resolve(logical_path) or DEFAULT_CONTENT_TYPE
        _check_cancelled(cancel, "create_file_from_stream", logical_path)
        try:
            self._client.upload_fileobj(
                input_stream,
                self.bucket_name,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (*_SERVICE_ERRORS, Boto3Error) as e:
            raise FileStoreTransportError(
                message=f"Cannot create file '{logical_path}': {_describe(e)}",
                path=logical_path,
                key=key,
                cause=e,
            ) from e

        logger.debug(
            "Created file: bucket=%s key=%s content_type=%s",
            self.bucket_name,
            key,
            content_type,
        )
        return logical_path
