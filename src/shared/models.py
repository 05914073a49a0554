"""Pydantic models for data validation and serialization.

This module defines the core data structures used throughout the service:
- Conversion request and watermark configuration
- Quality profiles for the HLS ladder
- Callback payloads and API responses

All models use Pydantic v2 for validation and serialization.
"""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class WatermarkPosition(str, Enum):
    """Recognised watermark placements."""

    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    CENTER = "center"
    BOTTOM_RIGHT = "bottom-right"


class CallbackStatus(str, Enum):
    """Per-quality outcome reported to the caller."""

    COMPLETED = "completed"
    FAILED = "failed"


class WatermarkConfig(BaseModel):
    """Optional image overlay applied to every variant.

    Position is kept as a free string: unrecognised values fall back to
    bottom-right instead of failing validation.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(
        default=False,
        description="Whether the watermark is applied",
    )
    s3_path: str = Field(
        default="",
        description="Object key of the watermark image",
    )
    position: str = Field(
        default=WatermarkPosition.BOTTOM_RIGHT.value,
        description="Placement (top-left, top-right, bottom-left, center, bottom-right)",
    )
    size: Annotated[int, Field(ge=1, le=100)] = Field(
        default=10,
        description="Watermark width as a percentage of the video width",
    )
    opacity: float = Field(
        default=100.0,
        description="Opacity percentage; clamped to 0-100 when the filter is built",
    )


class ConversionRequest(BaseModel):
    """Request to convert one source file into an HLS package.

    Quality labels are not checked against the catalog here. An unknown
    label fails only its own variant, later in the pipeline.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    media_file_id: Annotated[int, Field(gt=0)] = Field(
        description="Identifier of the media asset",
    )
    s3_path: str = Field(
        min_length=1,
        description="Object key of the source file",
    )
    qualities: list[str] = Field(
        min_length=1,
        description="Quality labels to produce, in processing order",
    )
    callback_url: str = Field(
        min_length=1,
        description="URL notified once per quality",
    )
    gop_size: int = Field(
        default=0,
        description="Keyframe interval override; <= 0 uses the default",
    )
    watermark: WatermarkConfig | None = Field(
        default=None,
        description="Optional watermark overlay",
    )

    # Informational fields forwarded by the caller
    title: str | None = Field(default=None)
    width: int | None = Field(default=None)
    height: int | None = Field(default=None)
    duration: int | None = Field(default=None)
    cloudfront_url: str | None = Field(default=None)

    @property
    def watermark_requested(self) -> bool:
        """Check if a watermark asset should be fetched."""
        wm = self.watermark
        return wm is not None and wm.enabled and bool(wm.s3_path)


class QualityProfile(BaseModel):
    """Encoding and manifest parameters for one quality label."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(
        pattern=r"^\d+p$",
        description="Quality label (e.g., '720p')",
    )
    scale: str = Field(
        description="ffmpeg scale expression (e.g., '-2:720')",
    )
    bitrate: str = Field(
        description="Nominal video bitrate (e.g., '2800k'); informational, not passed to the encoder",
    )
    max_rate: str = Field(
        description="Rate-control ceiling passed as -maxrate",
    )
    buf_size: str = Field(
        description="VBV buffer size passed as -bufsize",
    )
    bandwidth: Annotated[int, Field(gt=0)] = Field(
        description="Bits per second advertised in the master manifest",
    )
    resolution: str = Field(
        pattern=r"^\d+x\d+$",
        description="Resolution advertised in the master manifest",
    )
    level: str = Field(
        pattern=r"^\d+\.\d+$",
        description="H.264 level",
    )

    @property
    def height(self) -> int:
        """Extract height from resolution string."""
        return int(self.resolution.split("x")[1])


class CallbackPayload(BaseModel):
    """Status report for one (media, quality) outcome."""

    media_id: int
    quality: str
    status: CallbackStatus
    s3_path: str | None = None
    error_message: str | None = None

    def to_json(self) -> str:
        """Serialize with unset optional fields omitted."""
        return self.model_dump_json(exclude_none=True)


class ConvertResponse(BaseModel):
    conversion_id: str
    message: str


class CancelResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str


class JobStatusResponse(BaseModel):
    """Progress of an active job."""

    conversion_id: str
    media_file_id: int
    qualities: list[str]
    completed_qualities: list[str]
    cancelled: bool
