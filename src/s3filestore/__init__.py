"""s3filestore: a directory tree over S3-compatible object storage."""

__version__ = "0.1.0"
