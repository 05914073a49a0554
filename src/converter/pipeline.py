"""Conversion pipeline for one job.

Flow:
1. Create the job workspace (always removed at the end)
2. Build the storage gateway and download the source once
3. Download the watermark if configured (optional, non-fatal)
4. For each requested quality, in request order:
   encode -> upload variant -> update master playlist -> callback -> cleanup
5. Stop before the next quality once the job is cancelled

Setup failures (workspace, storage client, source download) fail every
requested quality. A failure inside one quality is reported for that
quality only and never stops the others.
"""

import os
import shutil

from aws_lambda_powertools import Logger, Metrics
from aws_lambda_powertools.metrics import MetricUnit

from ..notifier.callback import send_callback
from ..shared.cancellation import CancellationScope
from ..shared.config import Settings, get_settings
from ..shared.exceptions import (
    ConversionCancelledError,
    ConversionPipelineError,
    JobSetupError,
)
from ..shared.job import ConversionJob
from ..shared.models import CallbackPayload, CallbackStatus
from ..shared.storage import StorageGateway
from .encoder import VARIANT_PLAYLIST_NAME, build_encode_args, resolve_gop_size, run_encoder
from .playlist import publish_master_playlist
from .quality_catalog import get_quality_profile

logger = Logger(service="converter")
metrics = Metrics(service="converter", namespace="HlsConversion")


def process_job(job: ConversionJob, settings: Settings | None = None) -> None:
    """Run a conversion job to completion, failure or cancellation.

    Never raises for pipeline errors; every outcome is reported through
    callbacks. The workspace is removed on every exit path.

    Args:
        job: Job to process
        settings: Application settings (defaults to cached settings)
    """
    settings = settings or get_settings()
    workspace = os.path.join(settings.temp_dir, job.id)

    logger.info(
        "Processing job",
        extra={
            "job_id": job.id,
            "media_file_id": job.request.media_file_id,
            "qualities": job.request.qualities,
        },
    )

    try:
        _run_job(job, settings, workspace)
    finally:
        logger.info("Removing workspace", extra={"job_id": job.id, "workspace": workspace})
        shutil.rmtree(workspace, ignore_errors=True)
        metrics.flush_metrics()


def _run_job(job: ConversionJob, settings: Settings, workspace: str) -> None:
    request = job.request
    callback_url = resolve_callback_url(job, settings)

    try:
        storage, source_path = _prepare(job, settings, workspace)
    except ConversionCancelledError:
        logger.info("Job cancelled before processing started", extra={"job_id": job.id})
        metrics.add_metric(name="JobsCancelled", unit=MetricUnit.Count, value=1)
        return
    except ConversionPipelineError as e:
        logger.error(
            "Job setup failed",
            extra={"job_id": job.id, **e.to_dict()},
        )
        metrics.add_metric(name="JobSetupFailures", unit=MetricUnit.Count, value=1)
        for quality in request.qualities:
            _notify(settings, callback_url, CallbackPayload(
                media_id=request.media_file_id,
                quality=quality,
                status=CallbackStatus.FAILED,
                error_message=e.message,
            ))
        return

    watermark_path = _download_watermark(job, storage, workspace)

    for quality in request.qualities:
        if job.cancelled:
            logger.info(
                "Job cancelled, skipping remaining qualities",
                extra={"job_id": job.id, "next_quality": quality},
            )
            metrics.add_metric(name="JobsCancelled", unit=MetricUnit.Count, value=1)
            return

        logger.info("Starting quality", extra={"job_id": job.id, "quality": quality})
        try:
            variant_key = convert_quality(
                job, storage, source_path, watermark_path, workspace, quality, settings
            )
        except (ConversionPipelineError, OSError) as e:
            message = e.message if isinstance(e, ConversionPipelineError) else str(e)
            logger.error(
                "Quality failed",
                extra={"job_id": job.id, "quality": quality, "error": message},
            )
            metrics.add_metric(name="QualitiesFailed", unit=MetricUnit.Count, value=1)
            _notify(settings, callback_url, CallbackPayload(
                media_id=request.media_file_id,
                quality=quality,
                status=CallbackStatus.FAILED,
                error_message=message,
            ))
            continue

        completed = job.mark_completed(quality)
        metrics.add_metric(name="QualitiesCompleted", unit=MetricUnit.Count, value=1)

        # Uploaded variants stay listed even when the job is cancelled
        try:
            publish_master_playlist(
                storage, workspace, request.media_file_id, completed, CancellationScope()
            )
        except (ConversionPipelineError, OSError) as e:
            logger.error(
                "Master playlist update failed",
                extra={"job_id": job.id, "quality": quality, "error": str(e)},
            )

        logger.info(
            "Quality completed",
            extra={"job_id": job.id, "quality": quality, "s3_key": variant_key},
        )
        _notify(settings, callback_url, CallbackPayload(
            media_id=request.media_file_id,
            quality=quality,
            status=CallbackStatus.COMPLETED,
            s3_path=variant_key,
        ))

        shutil.rmtree(os.path.join(workspace, quality), ignore_errors=True)

    logger.info("All qualities processed", extra={"job_id": job.id})


def _prepare(job: ConversionJob, settings: Settings, workspace: str) -> tuple[StorageGateway, str]:
    """Create the workspace and download the source.

    Raises:
        JobSetupError: Workspace or storage client could not be created
        StorageError: Source download failed
        ConversionCancelledError: Job was cancelled before the download
    """
    try:
        os.makedirs(workspace, exist_ok=True)
    except OSError as e:
        raise JobSetupError(f"failed to create workspace {workspace}: {e}") from e

    storage = StorageGateway.from_settings(settings)

    source_ext = os.path.splitext(job.request.s3_path)[1]
    source_path = os.path.join(workspace, f"original{source_ext}")
    storage.download(job.request.s3_path, source_path, job.scope)

    return storage, source_path


def _download_watermark(job: ConversionJob, storage: StorageGateway, workspace: str) -> str:
    """Fetch the watermark image; returns '' when absent or unavailable."""
    if not job.request.watermark_requested:
        return ""

    key = job.request.watermark.s3_path
    path = os.path.join(workspace, f"watermark{os.path.splitext(key)[1]}")
    try:
        storage.download(key, path, job.scope)
    except ConversionPipelineError as e:
        logger.warning(
            "Watermark download failed, continuing without watermark",
            extra={"job_id": job.id, "s3_key": key, "error": e.message},
        )
        return ""
    return path


def convert_quality(
    job: ConversionJob,
    storage: StorageGateway,
    source_path: str,
    watermark_path: str,
    workspace: str,
    quality: str,
    settings: Settings,
) -> str:
    """Encode and upload one quality variant.

    Args:
        job: Job being processed
        storage: Storage gateway for the upload
        source_path: Local path of the downloaded source
        watermark_path: Local watermark path, or '' for none
        workspace: Job workspace directory
        quality: Quality label
        settings: Application settings

    Returns:
        Object key of the variant playlist

    Raises:
        UnknownQualityError: Label not in the catalog (nothing is encoded)
        EncodeError: Encoder failed
        ConversionCancelledError: Job cancelled during encode or upload
        StorageError: Upload failed
    """
    profile = get_quality_profile(quality)
    request = job.request

    quality_dir = os.path.join(workspace, quality)
    os.makedirs(quality_dir, exist_ok=True)

    args = build_encode_args(
        profile=profile,
        source_path=source_path,
        output_dir=quality_dir,
        gop_size=resolve_gop_size(request.gop_size),
        watermark_path=watermark_path,
        watermark=request.watermark,
    )
    elapsed = run_encoder(settings.ffmpeg_path, args, job.scope)
    logger.info(
        "Encode finished",
        extra={"job_id": job.id, "quality": quality, "elapsed_seconds": round(elapsed, 3)},
    )

    prefix = variant_prefix(request.media_file_id, quality)
    storage.upload_directory(quality_dir, prefix, job.scope)
    return f"{prefix}/{VARIANT_PLAYLIST_NAME}"


def variant_prefix(media_file_id: int, quality: str) -> str:
    return f"hls/{media_file_id}/{quality}"


def resolve_callback_url(job: ConversionJob, settings: Settings) -> str:
    """A configured CALLBACK_URL overrides the URL sent with the request."""
    return settings.callback_url or job.request.callback_url


def _notify(settings: Settings, callback_url: str, payload: CallbackPayload) -> None:
    send_callback(
        callback_url,
        payload,
        timeout=settings.callback_timeout_seconds,
        secret=settings.webhook_secret,
    )
