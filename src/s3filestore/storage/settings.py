"""S3 file store configuration.

Settings are read once and passed to the store at construction; they are
immutable afterwards.

Environment Variables:
    S3FILESTORE_S3_ACCESS_KEY: Access key ID (default: "", use the boto3
        credential chain)
    S3FILESTORE_S3_SECRET_KEY: Secret access key (default: "")
    S3FILESTORE_S3_HOST_ENDPOINT: Service endpoint URL for S3-compatible
        services (default: "", use the AWS endpoint for the region)
    S3FILESTORE_S3_BUCKET_NAME: Bucket holding the files
        (default: "orchardcoremedia")
    S3FILESTORE_S3_BASE_PATH: Key prefix all paths live under (default: "")
    S3FILESTORE_S3_REGION: Region name (default: "eu-central-1")
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

S3_ACCESS_KEY_ENV = "S3FILESTORE_S3_ACCESS_KEY"
S3_SECRET_KEY_ENV = "S3FILESTORE_S3_SECRET_KEY"
S3_HOST_ENDPOINT_ENV = "S3FILESTORE_S3_HOST_ENDPOINT"
S3_BUCKET_NAME_ENV = "S3FILESTORE_S3_BUCKET_NAME"
S3_BASE_PATH_ENV = "S3FILESTORE_S3_BASE_PATH"
S3_REGION_ENV = "S3FILESTORE_S3_REGION"

DEFAULT_BUCKET_NAME = "orchardcoremedia"
DEFAULT_REGION = "eu-central-1"


def _strip_line_breaks(value: str) -> str:
    return value.replace("\r", "").replace("\n", "")


def _get_env_str(key: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default).strip()


@dataclass(frozen=True)
class S3Settings:
    """Connection and layout settings for an S3-backed file store.

    Attributes:
        bucket_name: Bucket holding the files. Lower-cased, line breaks removed.
        base_path: Optional key prefix all logical paths live under.
        region: Region name passed to the client.
        host_endpoint: Endpoint URL for S3-compatible services; empty for AWS.
        access_key: Access key ID; empty to use the boto3 credential chain.
        secret_key: Secret access key.
    """

    bucket_name: str = DEFAULT_BUCKET_NAME
    base_path: str = ""
    region: str = DEFAULT_REGION
    host_endpoint: str = ""
    access_key: str = ""
    secret_key: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bucket_name", _strip_line_breaks(self.bucket_name).lower())
        object.__setattr__(self, "base_path", _strip_line_breaks(self.base_path or ""))

    @classmethod
    def from_env(cls) -> S3Settings:
        """Build settings from S3FILESTORE_S3_* environment variables."""
        return cls(
            bucket_name=(
                _get_env_str(S3_BUCKET_NAME_ENV, DEFAULT_BUCKET_NAME) or DEFAULT_BUCKET_NAME
            ),
            base_path=_get_env_str(S3_BASE_PATH_ENV),
            region=_get_env_str(S3_REGION_ENV, DEFAULT_REGION) or DEFAULT_REGION,
            host_endpoint=_get_env_str(S3_HOST_ENDPOINT_ENV),
            access_key=_get_env_str(S3_ACCESS_KEY_ENV),
            secret_key=_get_env_str(S3_SECRET_KEY_ENV),
        )
