"""Watermark overlay filter construction.

Builds the ffmpeg ``-filter_complex`` graph that scales the video, sizes
the watermark relative to the scaled video width, applies opacity and
overlays it at the requested position.

Graph layout (labels):
    [0:v] -> scale -> [base]
    [1:v] -> rgba + alpha -> [wmraw]
    [wmraw][base] -> scale2ref -> [wm][main]
    [main][wm] -> overlay -> [outv]

Inside ``scale2ref`` the ``iw``/``ih`` variables belong to the reference
input (the scaled video) while ``main_w``/``mdar`` belong to the
watermark, so the width is ``iw*size/100`` and the height follows the
watermark's own aspect ratio.
"""

from ..shared.models import WatermarkConfig, WatermarkPosition

# Corner placements keep a margin of 2% of the video width on both axes
MARGIN = "W*0.02"

OUTPUT_LABEL = "[outv]"

_POSITIONS: dict[str, str] = {
    WatermarkPosition.TOP_LEFT.value: f"{MARGIN}:{MARGIN}",
    WatermarkPosition.TOP_RIGHT.value: f"W-w-{MARGIN}:{MARGIN}",
    WatermarkPosition.BOTTOM_LEFT.value: f"{MARGIN}:H-h-{MARGIN}",
    WatermarkPosition.CENTER.value: "(W-w)/2:(H-h)/2",
    WatermarkPosition.BOTTOM_RIGHT.value: f"W-w-{MARGIN}:H-h-{MARGIN}",
}


def overlay_position(position: str) -> str:
    """Return the overlay ``x:y`` expression for a position.

    Unrecognised values fall back to bottom-right.

    Example:
        >>> overlay_position("top-left")
        'W*0.02:W*0.02'
        >>> overlay_position("somewhere")
        'W-w-W*0.02:H-h-W*0.02'
    """
    return _POSITIONS.get(position, _POSITIONS[WatermarkPosition.BOTTOM_RIGHT.value])


def clamp_opacity(opacity: float) -> float:
    """Convert an opacity percentage to an alpha value in [0, 1]."""
    alpha = opacity / 100.0
    if alpha < 0:
        return 0.0
    if alpha > 1:
        return 1.0
    return alpha


def build_watermark_filter(scale: str, watermark: WatermarkConfig) -> str:
    """Build the complex filter graph for a watermarked variant.

    Args:
        scale: Video scale expression of the quality (e.g., '-2:720')
        watermark: Watermark configuration from the request

    Returns:
        Filter graph whose video output is labelled ``[outv]``
    """
    alpha = clamp_opacity(watermark.opacity)
    position = overlay_position(watermark.position)

    return ";".join([
        f"[0:v]scale={scale}[base]",
        f"[1:v]format=rgba,colorchannelmixer=aa={alpha:.2f}[wmraw]",
        f"[wmraw][base]scale2ref=w=iw*{watermark.size}/100:h=ow/mdar[wm][main]",
        f"[main][wm]overlay={position}:shortest=1{OUTPUT_LABEL}",
    ])
