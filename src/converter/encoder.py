"""ffmpeg invocation for a single HLS variant.

Builds the argument list for one quality and runs the encoder under the
job's cancellation scope. Encoding parameters other than the per-quality
rate-control values are fixed policy, identical for every variant.
"""

import os
import subprocess
import tempfile
import time

from aws_lambda_powertools import Logger

from ..shared.cancellation import CancellationScope
from ..shared.exceptions import ConversionCancelledError, EncodeError
from ..shared.models import QualityProfile, WatermarkConfig
from .watermark import OUTPUT_LABEL, build_watermark_filter

logger = Logger(service="encoder")

# 2 seconds at 30fps
DEFAULT_GOP_SIZE = 60

HLS_SEGMENT_SECONDS = 6
VARIANT_PLAYLIST_NAME = "playlist.m3u8"
SEGMENT_PATTERN = "segment_%03d.ts"

# How often a running encode checks for cancellation
POLL_INTERVAL_SECONDS = 0.2

# Bytes of stderr kept for error reports
STDERR_TAIL_BYTES = 4000


def resolve_gop_size(override: int | None) -> int:
    """Use the request override when positive, the default otherwise."""
    if override and override > 0:
        return override
    return DEFAULT_GOP_SIZE


def build_encode_args(
    profile: QualityProfile,
    source_path: str,
    output_dir: str,
    gop_size: int,
    watermark_path: str = "",
    watermark: WatermarkConfig | None = None,
) -> list[str]:
    """Build ffmpeg arguments for one quality variant.

    The watermark is applied only when both an asset path and an enabled
    configuration are present. With a watermark the video goes through a
    labelled complex filter graph and its output is mapped explicitly;
    otherwise a plain scale filter is used.

    Args:
        profile: Quality profile of the variant
        source_path: Local path of the downloaded source
        output_dir: Directory receiving segments and the variant playlist
        gop_size: Keyframe interval in frames
        watermark_path: Local path of the downloaded watermark, or ''
        watermark: Watermark configuration from the request

    Returns:
        Argument list, without the executable
    """
    use_watermark = bool(watermark_path) and watermark is not None and watermark.enabled

    args = ["-hide_banner", "-y", "-nostdin", "-i", source_path]

    if use_watermark:
        args += ["-loop", "1", "-i", watermark_path]
        args += [
            "-filter_complex", build_watermark_filter(profile.scale, watermark),
            "-map", OUTPUT_LABEL,
            "-map", "0:a?",
        ]
    else:
        args += ["-vf", f"scale={profile.scale}"]

    # Video
    args += [
        "-c:v", "libx264",
        "-preset", "medium",
        "-crf", "22",
        "-maxrate", profile.max_rate,
        "-bufsize", profile.buf_size,
        "-profile:v", "high",
        "-level", profile.level,
        "-pix_fmt", "yuv420p",
        "-g", str(gop_size),
        "-keyint_min", str(gop_size),
        "-sc_threshold", "0",
    ]

    # Audio
    args += [
        "-c:a", "aac",
        "-b:a", "128k",
        "-ac", "2",
    ]

    # HLS
    args += [
        "-f", "hls",
        "-hls_time", str(HLS_SEGMENT_SECONDS),
        "-hls_list_size", "0",
        "-hls_playlist_type", "vod",
        "-hls_flags", "independent_segments",
        "-hls_segment_filename", os.path.join(output_dir, SEGMENT_PATTERN),
        os.path.join(output_dir, VARIANT_PLAYLIST_NAME),
    ]

    return args


def run_encoder(executable: str, args: list[str], scope: CancellationScope) -> float:
    """Run the encoder until it exits or the job is cancelled.

    stderr goes to a temporary file so a chatty encoder never blocks on a
    full pipe; its tail is attached to the error on failure.

    Args:
        executable: Encoder executable
        args: Arguments from build_encode_args
        scope: Job cancellation scope

    Returns:
        Elapsed wall time in seconds

    Raises:
        ConversionCancelledError: If the scope was cancelled and the process was stopped
        EncodeError: If the process cannot start or exits non-zero
    """
    scope.raise_if_cancelled()

    logger.info("Running encoder", extra={"command": [executable, *args]})
    start = time.monotonic()

    with tempfile.TemporaryFile() as stderr_file:
        try:
            process = subprocess.Popen(
                [executable, *args],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=stderr_file,
            )
        except OSError as e:
            raise EncodeError(f"failed to start encoder {executable}: {e}") from e

        while process.poll() is None:
            if scope.wait(POLL_INTERVAL_SECONDS):
                logger.warning("Cancellation requested, killing encoder", extra={"pid": process.pid})
                process.kill()
                process.wait()
                break

        returncode = process.returncode
        if returncode != 0:
            if scope.cancelled:
                raise ConversionCancelledError()

            stderr_file.seek(0, os.SEEK_END)
            size = stderr_file.tell()
            stderr_file.seek(max(0, size - STDERR_TAIL_BYTES))
            stderr = stderr_file.read().decode("utf-8", errors="replace")
            raise EncodeError(
                f"ffmpeg failed with exit status {returncode}: {stderr}",
                returncode=returncode,
                stderr=stderr,
            )

    elapsed = time.monotonic() - start
    logger.info("Encoder finished", extra={"elapsed_seconds": round(elapsed, 3)})
    return elapsed
