"""HLS conversion module.

This module turns one source file into an HLS ladder:
- Quality catalog
- Watermark filter graph
- ffmpeg argument builder and runner
- Master playlist builder
- Job pipeline
"""

from .quality_catalog import QUALITY_CATALOG, get_quality_profile
from .watermark import build_watermark_filter, clamp_opacity, overlay_position
from .encoder import build_encode_args, run_encoder
from .playlist import build_master_playlist
from .pipeline import convert_quality, process_job

__all__ = [
    "QUALITY_CATALOG",
    "get_quality_profile",
    "build_watermark_filter",
    "clamp_opacity",
    "overlay_position",
    "build_encode_args",
    "run_encoder",
    "build_master_playlist",
    "convert_quality",
    "process_job",
]
