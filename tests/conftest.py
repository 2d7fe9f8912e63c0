"""Pytest configuration and fixtures for s3filestore tests.

Environment variables read by the library are cleared for every test so
results do not depend on the developer's shell.
"""

from __future__ import annotations

import os

import pytest

_ENV_PREFIX = "S3FILESTORE_"


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove S3FILESTORE_* variables before each test."""
    for key in list(os.environ):
        if key.startswith(_ENV_PREFIX):
            monkeypatch.delenv(key)
