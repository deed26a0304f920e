"""Tests for the exception hierarchy."""

import pytest

from tubemp3.exceptions import (
    InputError,
    NetworkError,
    ParseError,
    StreamUnavailableError,
    ToolExecutionError,
    ToolNotFoundError,
    TubeMP3Error,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error",
        [
            InputError("bad"),
            ToolNotFoundError("ffmpeg"),
            NetworkError("down"),
            ParseError("broken"),
            StreamUnavailableError("none"),
            ToolExecutionError("failed", tool_name="yt-dlp"),
        ],
    )
    def test_all_inherit_from_base(self, error):
        assert isinstance(error, TubeMP3Error)

    def test_categories(self):
        assert InputError("x").category == "input"
        assert ToolNotFoundError("ffmpeg").category == "environment"
        assert NetworkError("x").category == "network"
        assert ParseError("x").category == "parse"
        assert StreamUnavailableError("x").category == "stream_unavailable"
        assert ToolExecutionError("x", tool_name="t").category == "tool_execution"


class TestStage:
    def test_str_without_stage(self):
        assert str(NetworkError("timed out")) == "timed out"

    def test_str_with_stage(self):
        error = NetworkError("timed out")
        error.stage = "metadata fetch"
        assert str(error) == "metadata fetch failed: timed out"
        assert error.message == "timed out"


class TestToDict:
    def test_minimal(self):
        assert TubeMP3Error("boom").to_dict() == {
            "type": "TubeMP3Error",
            "message": "boom",
            "category": "unknown",
        }

    def test_full(self):
        error = ToolExecutionError(
            "failed",
            tool_name="yt-dlp",
            returncode=1,
            details={"reason": "private"},
            suggestion="ask the owner",
        )
        error.stage = "audio acquisition"
        data = error.to_dict()
        assert data["type"] == "ToolExecutionError"
        assert data["stage"] == "audio acquisition"
        assert data["details"] == {"reason": "private", "tool": "yt-dlp", "returncode": 1}
        assert data["suggestion"] == "ask the owner"


class TestSubclassFields:
    def test_tool_not_found_default_message(self):
        error = ToolNotFoundError("ffmpeg")
        assert error.tool_name == "ffmpeg"
        assert "ffmpeg" in str(error)
        assert error.details == {"tool": "ffmpeg"}

    def test_network_error_details(self):
        error = NetworkError("HTTP Error 404", url="https://x", http_code=404)
        assert error.details == {"url": "https://x", "http_code": 404}

    def test_stream_unavailable_mime_types(self):
        error = StreamUnavailableError("none", mime_types=["video/mp4"])
        assert error.mime_types == ["video/mp4"]
        assert StreamUnavailableError("none").mime_types == []

    def test_parse_error_fragment(self):
        assert ParseError("bad", fragment="player_response").fragment == "player_response"
