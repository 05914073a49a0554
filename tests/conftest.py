"""Pytest configuration and shared fixtures.

This module provides:
- AWS credential mocking for moto
- A mocked S3 bucket
- Settings pointing at a per-test workspace root
- Sample conversion requests and a fake encoder
"""

import os
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# Set dummy AWS credentials BEFORE importing any application code
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"

# Set application environment variables
os.environ["ENVIRONMENT"] = "dev"
os.environ["AWS_BUCKET"] = "test-hls-bucket"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["POWERTOOLS_METRICS_NAMESPACE"] = "HlsConversion"

from src.shared.config import Settings, clear_settings_cache  # noqa: E402
from src.shared.job import ConversionJob  # noqa: E402
from src.shared.models import ConversionRequest  # noqa: E402

TEST_BUCKET = "test-hls-bucket"
SOURCE_KEY = "uploads/42/source.mp4"
WATERMARK_KEY = "watermarks/logo.png"


# =============================================================================
# AWS Fixtures
# =============================================================================


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def s3_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Mocked S3 client."""
    with mock_aws():
        yield boto3.client("s3", region_name="us-east-1")


@pytest.fixture
def s3_bucket(s3_client: Any) -> str:
    """Create the test bucket with a source object in it."""
    s3_client.create_bucket(Bucket=TEST_BUCKET)
    s3_client.put_object(Bucket=TEST_BUCKET, Key=SOURCE_KEY, Body=b"fake-mp4-bytes")
    return TEST_BUCKET


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Make every test start from fresh environment-derived settings."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings(tmp_path: Any) -> Settings:
    """Settings with a per-test workspace root."""
    return Settings(
        temp_dir=str(tmp_path / "conversions"),
        aws_bucket=TEST_BUCKET,
        ffmpeg_path="ffmpeg",
        callback_timeout_seconds=5.0,
    )


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def sample_request_dict() -> dict:
    """Valid conversion request body."""
    return {
        "media_file_id": 42,
        "title": "Launch keynote",
        "s3_path": SOURCE_KEY,
        "width": 1920,
        "height": 1080,
        "duration": 3600,
        "qualities": ["720p", "240p"],
        "callback_url": "http://cms.internal/api/hls/callback",
    }


@pytest.fixture
def make_job(sample_request_dict: dict):
    """Factory for jobs with request overrides."""

    def _make(**overrides: Any) -> ConversionJob:
        data = {**sample_request_dict, **overrides}
        return ConversionJob(request=ConversionRequest(**data))

    return _make


def write_fake_variant(args: list[str]) -> None:
    """Produce the files ffmpeg would write for a variant."""
    playlist_path = args[-1]
    output_dir = os.path.dirname(playlist_path)
    os.makedirs(output_dir, exist_ok=True)
    with open(playlist_path, "w", encoding="utf-8") as f:
        f.write("#EXTM3U\n#EXT-X-VERSION:3\n#EXTINF:6.0,\nsegment_000.ts\n#EXT-X-ENDLIST\n")
    with open(os.path.join(output_dir, "segment_000.ts"), "wb") as f:
        f.write(b"\x47" * 188)


@pytest.fixture
def write_variant():
    """Expose the variant writer to tests that build their own fake encoder."""
    return write_fake_variant


@pytest.fixture
def fake_encoder():
    """Stand-in for run_encoder that writes a playlist and one segment."""

    def _run(executable: str, args: list[str], scope: Any) -> float:
        write_fake_variant(args)
        return 0.01

    return _run
