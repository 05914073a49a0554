"""Shared utilities for the HLS conversion service."""

from .cancellation import CancellationScope
from .config import Settings, get_settings
from .exceptions import (
    ConversionPipelineError,
    JobSetupError,
    StorageError,
    UnknownQualityError,
    EncodeError,
    ConversionCancelledError,
    QueueClosedError,
)
from .models import (
    WatermarkPosition,
    CallbackStatus,
    WatermarkConfig,
    ConversionRequest,
    QualityProfile,
    CallbackPayload,
)
from .job import ConversionJob
from .storage import StorageGateway

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Cancellation
    "CancellationScope",
    # Exceptions
    "ConversionPipelineError",
    "JobSetupError",
    "StorageError",
    "UnknownQualityError",
    "EncodeError",
    "ConversionCancelledError",
    "QueueClosedError",
    # Models
    "WatermarkPosition",
    "CallbackStatus",
    "WatermarkConfig",
    "ConversionRequest",
    "QualityProfile",
    "CallbackPayload",
    # Job
    "ConversionJob",
    # Storage
    "StorageGateway",
]
