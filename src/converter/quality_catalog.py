"""HLS quality ladder.

Static table mapping a quality label to its ffmpeg scaling and rate-control
values and to the bandwidth/resolution advertised in the master manifest.

Rate control is capped CRF: every variant encodes at the same CRF, and
``max_rate``/``buf_size`` bound the bitrate per quality. ``max_rate`` sits
~7% above the nominal bitrate; ``buf_size`` is 1.5x the bitrate.

``bitrate`` is informational only and is never passed to the encoder (a
``-b:v`` target would turn capped CRF into ABR). It records the nominal rate
the ceilings are derived from and always equals ``bandwidth``.
"""

from types import MappingProxyType
from typing import Mapping

from ..shared.exceptions import UnknownQualityError
from ..shared.models import QualityProfile


_PROFILES: list[QualityProfile] = [
    # 240p - Very poor connection
    QualityProfile(
        label="240p",
        scale="-2:240",
        bitrate="400k",
        max_rate="428k",
        buf_size="600k",
        bandwidth=400_000,
        resolution="426x240",
        level="3.0",
    ),
    # 360p - Poor connection
    QualityProfile(
        label="360p",
        scale="-2:360",
        bitrate="800k",
        max_rate="856k",
        buf_size="1200k",
        bandwidth=800_000,
        resolution="640x360",
        level="3.0",
    ),
    # 480p SD - Mobile
    QualityProfile(
        label="480p",
        scale="-2:480",
        bitrate="1400k",
        max_rate="1498k",
        buf_size="2100k",
        bandwidth=1_400_000,
        resolution="854x480",
        level="3.1",
    ),
    # 720p HD - Tablet/Good mobile
    QualityProfile(
        label="720p",
        scale="-2:720",
        bitrate="2800k",
        max_rate="2996k",
        buf_size="4200k",
        bandwidth=2_800_000,
        resolution="1280x720",
        level="4.0",
    ),
    # 1080p Full HD - Desktop/TV
    QualityProfile(
        label="1080p",
        scale="-2:1080",
        bitrate="5000k",
        max_rate="5350k",
        buf_size="7500k",
        bandwidth=5_000_000,
        resolution="1920x1080",
        level="4.1",
    ),
    # 1440p QHD
    QualityProfile(
        label="1440p",
        scale="-2:1440",
        bitrate="8000k",
        max_rate="8560k",
        buf_size="12000k",
        bandwidth=8_000_000,
        resolution="2560x1440",
        level="5.0",
    ),
    # 2160p 4K UHD
    QualityProfile(
        label="2160p",
        scale="-2:2160",
        bitrate="14000k",
        max_rate="14980k",
        buf_size="21000k",
        bandwidth=14_000_000,
        resolution="3840x2160",
        level="5.1",
    ),
]

QUALITY_CATALOG: Mapping[str, QualityProfile] = MappingProxyType(
    {profile.label: profile for profile in _PROFILES}
)


def get_quality_profile(quality: str) -> QualityProfile:
    """Look up a quality label.

    Raises:
        UnknownQualityError: If the label is not in the catalog
    """
    try:
        return QUALITY_CATALOG[quality]
    except KeyError:
        raise UnknownQualityError(quality) from None


def is_known_quality(quality: str) -> bool:
    return quality in QUALITY_CATALOG
