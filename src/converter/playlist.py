"""HLS master playlist generation.

The master playlist is rebuilt from scratch every time a variant finishes,
so it only ever lists variants that are already uploaded.
"""

import os

from ..shared.cancellation import CancellationScope
from ..shared.storage import StorageGateway
from .encoder import VARIANT_PLAYLIST_NAME
from .quality_catalog import get_quality_profile

MASTER_PLAYLIST_NAME = "master.m3u8"


def build_master_playlist(qualities: list[str]) -> str:
    """Render a master playlist for the given completed qualities.

    Variants are ordered by ascending catalog bandwidth regardless of the
    order they completed in. The input list is not modified.

    Raises:
        UnknownQualityError: If a label is not in the catalog

    Example:
        >>> print(build_master_playlist(["720p", "240p"]))
        #EXTM3U
        #EXT-X-VERSION:3
        #EXT-X-STREAM-INF:BANDWIDTH=400000,RESOLUTION=426x240
        240p/playlist.m3u8
        #EXT-X-STREAM-INF:BANDWIDTH=2800000,RESOLUTION=1280x720
        720p/playlist.m3u8
    """
    profiles = sorted(
        (get_quality_profile(q) for q in qualities),
        key=lambda p: p.bandwidth,
    )

    lines = ["#EXTM3U", "#EXT-X-VERSION:3"]
    for profile in profiles:
        lines.append(f"#EXT-X-STREAM-INF:BANDWIDTH={profile.bandwidth},RESOLUTION={profile.resolution}")
        lines.append(f"{profile.label}/{VARIANT_PLAYLIST_NAME}")

    return "\n".join(lines) + "\n"


def master_playlist_key(media_file_id: int) -> str:
    return f"hls/{media_file_id}/{MASTER_PLAYLIST_NAME}"


def publish_master_playlist(
    storage: StorageGateway,
    workspace: str,
    media_file_id: int,
    qualities: list[str],
    scope: CancellationScope,
) -> str:
    """Write the master playlist locally and upload it over the previous one.

    Returns:
        Object key of the master playlist
    """
    content = build_master_playlist(qualities)
    local_path = os.path.join(workspace, MASTER_PLAYLIST_NAME)
    with open(local_path, "w", encoding="utf-8") as f:
        f.write(content)

    key = master_playlist_key(media_file_id)
    storage.upload(local_path, key, scope)
    return key
