"""Test helpers for s3filestore."""

from s3filestore.testing.memory_s3 import InMemoryS3Client, StoredS3Object

__all__ = ["InMemoryS3Client", "StoredS3Object"]
