"""S3 storage gateway.

Downloads sources and uploads HLS output. Every transfer error is
re-raised as StorageError so the pipeline handles a single type.
"""

import os
from typing import Any
from urllib.parse import unquote

from aws_lambda_powertools import Logger
from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import create_s3_client
from .cancellation import CancellationScope
from .config import Settings
from .exceptions import JobSetupError, StorageError

logger = Logger(service="storage")

CONTENT_TYPES: dict[str, str] = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/MP2T",
    ".mp4": "video/mp4",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"

TRANSFER_ERRORS = (BotoCoreError, ClientError, Boto3Error, OSError)


def get_content_type(path: str) -> str:
    """Map a file extension to the Content-Type stored with the object."""
    ext = os.path.splitext(path)[1].lower()
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


class StorageGateway:
    """Object download/upload against a single bucket."""

    def __init__(self, client: Any, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageGateway":
        """Build a gateway from settings.

        Raises:
            JobSetupError: If no bucket is configured or the client cannot be built
        """
        if not settings.aws_bucket:
            raise JobSetupError("AWS_BUCKET is not configured")
        try:
            client = create_s3_client(settings)
        except (BotoCoreError, ValueError) as e:
            raise JobSetupError(f"failed to create S3 client: {e}") from e
        return cls(client, settings.aws_bucket)

    def download(self, key: str, local_path: str, scope: CancellationScope) -> None:
        """Download an object to a local file.

        Keys that arrive URL-encoded are unquoted first; the SDK expects
        the raw key.

        Raises:
            ConversionCancelledError: If the job was cancelled before the transfer
            StorageError: If the transfer fails
        """
        scope.raise_if_cancelled()
        decoded_key = unquote(key)

        logger.info(
            "Downloading object",
            extra={"bucket": self.bucket, "s3_key": decoded_key, "local_path": local_path},
        )
        try:
            os.makedirs(os.path.dirname(local_path), exist_ok=True)
            self.client.download_file(self.bucket, decoded_key, local_path)
        except TRANSFER_ERRORS as e:
            raise StorageError(
                f"failed to download s3://{self.bucket}/{decoded_key}: {e}",
                details={"s3_key": decoded_key},
            ) from e

        logger.info(
            "Download complete",
            extra={"s3_key": decoded_key, "size_bytes": os.path.getsize(local_path)},
        )

    def upload(self, local_path: str, key: str, scope: CancellationScope) -> None:
        """Upload a local file, setting its Content-Type.

        Raises:
            ConversionCancelledError: If the job was cancelled before the transfer
            StorageError: If the transfer fails
        """
        scope.raise_if_cancelled()
        content_type = get_content_type(local_path)

        logger.debug(
            "Uploading object",
            extra={"local_path": local_path, "s3_key": key, "content_type": content_type},
        )
        try:
            self.client.upload_file(
                local_path,
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except TRANSFER_ERRORS as e:
            raise StorageError(
                f"failed to upload {local_path} to s3://{self.bucket}/{key}: {e}",
                details={"s3_key": key},
            ) from e

    def upload_directory(self, local_dir: str, prefix: str, scope: CancellationScope) -> list[str]:
        """Upload every file below ``local_dir`` under ``prefix``.

        Files are sent one at a time in sorted order; cancellation is
        checked before each file.

        Returns:
            Uploaded object keys
        """
        uploaded: list[str] = []
        for root, dirs, files in os.walk(local_dir):
            dirs.sort()
            for filename in sorted(files):
                path = os.path.join(root, filename)
                rel_path = os.path.relpath(path, local_dir)
                key = f"{prefix}/{rel_path.replace(os.sep, '/')}"
                self.upload(path, key, scope)
                uploaded.append(key)

        logger.info(
            "Directory uploaded",
            extra={"local_dir": local_dir, "prefix": prefix, "file_count": len(uploaded)},
        )
        return uploaded
