"""boto3 client construction for the S3 file store."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config

from s3filestore.storage.settings import S3Settings

logger = logging.getLogger(__name__)


def _endpoint_url(host_endpoint: str) -> str | None:
    """Return the endpoint URL, defaulting scheme-less hosts to plain HTTP."""
    if not host_endpoint:
        return None
    if "://" not in host_endpoint:
        return f"http://{host_endpoint}"
    return host_endpoint


def create_s3_client(settings: S3Settings) -> Any:
    """Create a boto3 S3 client for the given settings.

    Uses path-style addressing so S3-compatible services (MinIO, Ceph) work
    without per-bucket DNS. Empty credentials fall back to the boto3
    credential chain.
    """
    kwargs: dict[str, Any] = {
        "region_name": settings.region or None,
        "config": Config(s3={"addressing_style": "path"}),
    }

    endpoint_url = _endpoint_url(settings.host_endpoint)
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url

    if settings.access_key and settings.secret_key:
        kwargs["aws_access_key_id"] = settings.access_key
        kwargs["aws_secret_access_key"] = settings.secret_key

    logger.debug(
        "Creating S3 client: region=%s endpoint=%s bucket=%s",
        settings.region,
        endpoint_url or "default",
        settings.bucket_name,
    )
    return boto3.client("s3", **kwargs)
