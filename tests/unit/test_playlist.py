"""Unit tests for master playlist generation."""

import itertools

import pytest

from src.converter.playlist import build_master_playlist, master_playlist_key
from src.shared.exceptions import UnknownQualityError


def _stream_entries(content: str) -> list[tuple[str, str]]:
    lines = content.strip().split("\n")
    return [
        (lines[i], lines[i + 1])
        for i in range(len(lines))
        if lines[i].startswith("#EXT-X-STREAM-INF")
    ]


class TestBuildMasterPlaylist:
    """Tests for build_master_playlist."""

    def test_header(self):
        content = build_master_playlist(["240p"])
        lines = content.split("\n")
        assert lines[0] == "#EXTM3U"
        assert lines[1] == "#EXT-X-VERSION:3"
        assert content.endswith("\n")

    def test_entry_format(self):
        content = build_master_playlist(["1080p"])
        assert _stream_entries(content) == [
            ("#EXT-X-STREAM-INF:BANDWIDTH=5000000,RESOLUTION=1920x1080", "1080p/playlist.m3u8"),
        ]

    @pytest.mark.parametrize(
        "completed",
        list(itertools.permutations(["1080p", "240p", "720p"])),
    )
    def test_sorted_by_bandwidth_regardless_of_completion_order(self, completed):
        content = build_master_playlist(list(completed))

        refs = [ref for _, ref in _stream_entries(content)]
        assert refs == ["240p/playlist.m3u8", "720p/playlist.m3u8", "1080p/playlist.m3u8"]

    def test_late_low_quality_is_inserted_by_position(self):
        """Test each intermediate playlist is a superset of the previous one."""
        first = build_master_playlist(["1080p"])
        second = build_master_playlist(["1080p", "360p"])

        first_entries = _stream_entries(first)
        second_entries = _stream_entries(second)
        assert set(first_entries) <= set(second_entries)
        assert second_entries[0][1] == "360p/playlist.m3u8"

    def test_input_not_mutated(self):
        completed = ["720p", "240p"]
        build_master_playlist(completed)
        assert completed == ["720p", "240p"]

    def test_empty(self):
        assert build_master_playlist([]) == "#EXTM3U\n#EXT-X-VERSION:3\n"

    def test_unknown_quality(self):
        with pytest.raises(UnknownQualityError):
            build_master_playlist(["240p", "999p"])


def test_master_playlist_key():
    assert master_playlist_key(42) == "hls/42/master.m3u8"
