"""Tests for metadata and attempt models."""

import pytest

from tubemp3.exceptions import InputError
from tubemp3.models.attempt import DownloadAttempt, DownloadOptions, Strategy
from tubemp3.models.metadata import AudioStreamCandidate, VideoMetadata, placeholder_title


class TestDownloadOptions:
    def test_defaults(self):
        opts = DownloadOptions.from_kwargs()
        assert opts.show_progress is True
        assert opts.filename is None
        assert opts.quality is None

    def test_quiet_wins(self):
        assert DownloadOptions.from_kwargs(show_progress=True, quiet=True).show_progress is False

    def test_show_progress_false(self):
        assert DownloadOptions.from_kwargs(show_progress=False).show_progress is False

    def test_quality_normalized(self):
        assert DownloadOptions.from_kwargs(quality="HIGH").quality == "high"

    def test_invalid_quality(self):
        with pytest.raises(InputError):
            DownloadOptions.from_kwargs(quality="best")

    def test_empty_filename_ignored(self):
        assert DownloadOptions.from_kwargs(filename="").filename is None


class TestDownloadAttempt:
    def test_abandon_records_reason(self, tmp_path):
        attempt = DownloadAttempt("AAAAAAAAAAA", "https://x", tmp_path / "a.mp3")
        attempt.abandon(Strategy.DIRECT, ValueError("403"))
        attempt.abandon(Strategy.CIPHER, "encrypted")
        assert attempt.abandoned == ["direct: 403", "cipher: encrypted"]


class TestAudioStreamCandidate:
    def test_from_format(self):
        candidate = AudioStreamCandidate.from_format(
            {"mimeType": "audio/mp4", "bitrate": "131072", "url": "https://cdn", "itag": "140"}
        )
        assert candidate.bitrate == 131072
        assert candidate.itag == 140
        assert candidate.is_audio_only
        assert candidate.is_usable

    @pytest.mark.parametrize("bitrate", [None, "", "abc", 0, -5, True])
    def test_bad_bitrates(self, bitrate):
        candidate = AudioStreamCandidate.from_format({"mimeType": "audio/mp4", "bitrate": bitrate})
        assert candidate.bitrate is None

    def test_non_string_mime(self):
        candidate = AudioStreamCandidate.from_format({"mimeType": 5})
        assert candidate.mime_type == ""
        assert not candidate.is_audio_only


class TestVideoMetadata:
    def test_non_list_formats_ignored(self):
        metadata = VideoMetadata("AAAAAAAAAAA", "T", streaming_data={"formats": "nope"})
        assert metadata.formats == []
        assert metadata.stream_candidates() == []

    def test_non_dict_entries_skipped(self):
        metadata = VideoMetadata(
            "AAAAAAAAAAA", "T", streaming_data={"adaptiveFormats": ["x", {"mimeType": "audio/webm"}]}
        )
        assert len(metadata.stream_candidates()) == 1

    def test_placeholder(self):
        assert placeholder_title("AAAAAAAAAAA") == "YouTube_Video_AAAAAAAAAAA"
