"""Unit tests for models, settings and the job entity."""

import json
import threading

import pytest
from pydantic import ValidationError

from src.shared.config import Settings, get_settings
from src.shared.job import ConversionJob
from src.shared.models import CallbackPayload, CallbackStatus, ConversionRequest, WatermarkConfig


class TestConversionRequest:
    """Tests for request validation."""

    def test_valid_request(self, sample_request_dict: dict):
        request = ConversionRequest(**sample_request_dict)
        assert request.media_file_id == 42
        assert request.qualities == ["720p", "240p"]
        assert request.gop_size == 0
        assert request.watermark is None
        assert not request.watermark_requested

    @pytest.mark.parametrize("field", ["media_file_id", "s3_path", "qualities", "callback_url"])
    def test_required_fields(self, sample_request_dict: dict, field: str):
        del sample_request_dict[field]
        with pytest.raises(ValidationError):
            ConversionRequest(**sample_request_dict)

    def test_empty_qualities_rejected(self, sample_request_dict: dict):
        sample_request_dict["qualities"] = []
        with pytest.raises(ValidationError):
            ConversionRequest(**sample_request_dict)

    def test_zero_media_id_rejected(self, sample_request_dict: dict):
        sample_request_dict["media_file_id"] = 0
        with pytest.raises(ValidationError):
            ConversionRequest(**sample_request_dict)

    def test_unknown_quality_labels_accepted(self, sample_request_dict: dict):
        """Test catalog membership is checked per quality later, not here."""
        sample_request_dict["qualities"] = ["999p"]
        assert ConversionRequest(**sample_request_dict).qualities == ["999p"]

    def test_watermark_requested(self, sample_request_dict: dict):
        sample_request_dict["watermark"] = {"enabled": True, "s3_path": "logo.png", "position": "nowhere"}
        request = ConversionRequest(**sample_request_dict)
        assert request.watermark_requested
        assert request.watermark.position == "nowhere"

    @pytest.mark.parametrize(
        "watermark",
        [
            {"enabled": False, "s3_path": "logo.png"},
            {"enabled": True, "s3_path": ""},
        ],
    )
    def test_watermark_not_requested(self, sample_request_dict: dict, watermark: dict):
        sample_request_dict["watermark"] = watermark
        assert not ConversionRequest(**sample_request_dict).watermark_requested

    def test_opacity_out_of_range_accepted(self):
        """Test opacity is clamped when the filter is built, not rejected."""
        assert WatermarkConfig(enabled=True, opacity=300).opacity == 300


class TestCallbackPayload:
    def test_completed_omits_error(self):
        payload = CallbackPayload(
            media_id=42,
            quality="720p",
            status=CallbackStatus.COMPLETED,
            s3_path="hls/42/720p/playlist.m3u8",
        )
        assert json.loads(payload.to_json()) == {
            "media_id": 42,
            "quality": "720p",
            "status": "completed",
            "s3_path": "hls/42/720p/playlist.m3u8",
        }

    def test_failed_omits_path(self):
        payload = CallbackPayload(
            media_id=42,
            quality="720p",
            status=CallbackStatus.FAILED,
            error_message="unknown quality: 720x",
        )
        body = json.loads(payload.to_json())
        assert body["status"] == "failed"
        assert body["error_message"] == "unknown quality: 720x"
        assert "s3_path" not in body


class TestSettings:
    def test_defaults_from_environment(self):
        settings = get_settings()
        assert settings.aws_bucket == "test-hls-bucket"
        assert settings.ffmpeg_path == "ffmpeg"
        assert settings.queue_capacity == 100
        assert settings.callback_timeout_seconds == 30.0

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FFMPEG_PATH", "/opt/ffmpeg/bin/ffmpeg")
        monkeypatch.setenv("TEMP_DIR", "/var/tmp/hls")
        monkeypatch.setenv("QUEUE_CAPACITY", "5")

        settings = Settings()

        assert settings.ffmpeg_path == "/opt/ffmpeg/bin/ffmpeg"
        assert settings.temp_dir == "/var/tmp/hls"
        assert settings.queue_capacity == 5

    def test_invalid_callback_url(self):
        with pytest.raises(ValidationError):
            Settings(callback_url="ftp://example.com/hook")

    def test_environment_values(self):
        assert Settings(environment="prod").environment == "prod"
        with pytest.raises(ValidationError):
            Settings(environment="production")

    def test_static_credentials(self):
        assert Settings(aws_access_key_id="a", aws_secret_access_key="b").has_static_credentials
        assert not Settings(aws_access_key_id="a", aws_secret_access_key="").has_static_credentials


class TestConversionJob:
    def test_unique_ids(self, make_job):
        assert make_job().id != make_job().id

    def test_cancel(self, make_job):
        job = make_job()
        assert not job.cancelled
        job.cancel()
        assert job.cancelled
        assert job.scope.cancelled

    def test_mark_completed_returns_snapshot(self, make_job):
        job = make_job()
        snapshot = job.mark_completed("720p")
        job.mark_completed("240p")

        assert snapshot == ["720p"]
        assert job.completed_snapshot() == ["720p", "240p"]

    def test_concurrent_readers_see_consistent_lists(self, make_job):
        job = make_job()
        labels = [f"{i}p" for i in range(200)]
        seen: list[list[str]] = []

        def reader():
            for _ in range(200):
                seen.append(job.completed_snapshot())

        thread = threading.Thread(target=reader)
        thread.start()
        for label in labels:
            job.mark_completed(label)
        thread.join()

        assert job.completed_snapshot() == labels
        for snapshot in seen:
            assert snapshot == labels[: len(snapshot)]
