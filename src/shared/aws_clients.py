"""AWS client construction.

Centralizes boto3 client configuration so every transfer shares the same
retry and timeout policy.
"""

from typing import Any

import boto3
from botocore.config import Config

from .config import Settings

# AWS service configuration with retry
AWS_CONFIG = Config(
    retries={
        "max_attempts": 3,
        "mode": "adaptive",
    },
    connect_timeout=5,
    read_timeout=60,
)


def create_s3_client(settings: Settings) -> Any:
    """Build an S3 client for the configured region.

    Static credentials are used only when both key id and secret are set;
    otherwise boto3's default credential chain applies.

    Args:
        settings: Application settings

    Returns:
        boto3 S3 client
    """
    kwargs: dict[str, Any] = {
        "region_name": settings.aws_region,
        "config": AWS_CONFIG,
    }
    if settings.has_static_credentials:
        kwargs["aws_access_key_id"] = settings.aws_access_key_id
        kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
    if settings.s3_endpoint_url:
        kwargs["endpoint_url"] = settings.s3_endpoint_url

    return boto3.client("s3", **kwargs)
