"""Hierarchical file store on S3-compatible object storage.

Emulates directories over flat object keys: prefixes up to "/" act as
directories, marker objects keep empty directories visible, and move is
copy followed by delete.

Backends:
- S3FileStore: S3-compatible object storage via boto3

Environment Variables:
    S3FILESTORE_S3_*: Connection settings read by S3Settings.from_env()
    S3FILESTORE_OTEL_ENABLED: Set to "1" to emit a span per operation
"""

from s3filestore.storage.cancellation import CancellationToken
from s3filestore.storage.errors import (
    FileStoreError,
    FileStoreTransportError,
    InvalidOperationError,
    OperationCancelledError,
)
from s3filestore.storage.file_store import FileStore
from s3filestore.storage.models import (
    DirectoryEntry,
    FileEntry,
    LookupResult,
    LookupStatus,
    StoreEntry,
    TimestampKind,
)
from s3filestore.storage.s3_file_store import DIRECTORY_MARKER_FILE_NAME, S3FileStore
from s3filestore.storage.settings import S3Settings

__all__ = [
    "CancellationToken",
    "DIRECTORY_MARKER_FILE_NAME",
    "DirectoryEntry",
    "FileEntry",
    "FileStore",
    "FileStoreError",
    "FileStoreTransportError",
    "InvalidOperationError",
    "LookupResult",
    "LookupStatus",
    "OperationCancelledError",
    "S3FileStore",
    "S3Settings",
    "StoreEntry",
    "TimestampKind",
]
