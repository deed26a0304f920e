"""Tests for tools/ffmpeg.py."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from tubemp3.config import clear_config_cache
from tubemp3.exceptions import ToolExecutionError, ToolNotFoundError
from tubemp3.tools.ffmpeg import FFmpegTool


@pytest.fixture()
def tool():
    return FFmpegTool()


def completed(returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


def writes_output(content: bytes, returncode=0, stderr=""):
    """subprocess.run side effect that writes the last argument (the output file)."""

    def run(cmd, **kwargs):
        if content is not None:
            Path(cmd[-1]).write_bytes(content)
        return completed(returncode, stderr)

    return run


class TestTranscodeToMp3:
    @patch("tubemp3.tools.ffmpeg.find_tool", return_value="/usr/bin/ffmpeg")
    def test_command_line(self, _find, tool, tmp_path):
        src, dst = tmp_path / "in.webm", tmp_path / "out.mp3"
        with patch("subprocess.run", side_effect=writes_output(b"mp3")) as mock_run:
            assert tool.transcode_to_mp3(src, dst) == dst

        cmd = mock_run.call_args.args[0]
        assert cmd == [
            "/usr/bin/ffmpeg", "-y", "-i", str(src), "-vn",
            "-ab", "128k", "-ar", "44100", "-f", "mp3", str(dst),
        ]

    @patch("tubemp3.tools.ffmpeg.find_tool", return_value="/usr/bin/ffmpeg")
    def test_nonzero_exit_with_output_is_success(self, _find, tool, tmp_path, caplog):
        dst = tmp_path / "out.mp3"
        with (
            patch("subprocess.run", side_effect=writes_output(b"mp3", returncode=1)),
            caplog.at_level("WARNING", logger="tubemp3.tools.ffmpeg"),
        ):
            assert tool.transcode_to_mp3(tmp_path / "in", dst) == dst
        assert any("code 1" in r.message for r in caplog.records)

    @patch("tubemp3.tools.ffmpeg.find_tool", return_value="/usr/bin/ffmpeg")
    def test_nonzero_exit_without_output_raises(self, _find, tool, tmp_path):
        dst = tmp_path / "out.mp3"
        run = writes_output(None, returncode=1, stderr="Invalid data found")
        with patch("subprocess.run", side_effect=run), pytest.raises(ToolExecutionError) as exc_info:
            tool.transcode_to_mp3(tmp_path / "in", dst)
        assert exc_info.value.stderr == "Invalid data found"
        assert exc_info.value.returncode == 1

    @patch("tubemp3.tools.ffmpeg.find_tool", return_value="/usr/bin/ffmpeg")
    def test_empty_partial_output_removed(self, _find, tool, tmp_path):
        dst = tmp_path / "out.mp3"
        with (
            patch("subprocess.run", side_effect=writes_output(b"", returncode=1)),
            pytest.raises(ToolExecutionError),
        ):
            tool.transcode_to_mp3(tmp_path / "in", dst)
        assert not dst.exists()

    @patch("tubemp3.tools.ffmpeg.find_tool", return_value="/usr/bin/ffmpeg")
    def test_timeout_raises(self, _find, tool, tmp_path):
        with (
            patch("subprocess.run", side_effect=subprocess.TimeoutExpired("ffmpeg", 5)),
            pytest.raises(ToolExecutionError, match="Timeout"),
        ):
            tool.transcode_to_mp3(tmp_path / "in", tmp_path / "out.mp3")

    @patch("tubemp3.tools.ffmpeg.find_tool", return_value="/usr/bin/ffmpeg")
    def test_timeout_removes_partial_output(self, _find, tool, tmp_path):
        dst = tmp_path / "out.mp3"

        def half_written(cmd, **kwargs):
            Path(cmd[-1]).write_bytes(b"ID3 half-written")
            raise subprocess.TimeoutExpired(cmd, 5)

        with (
            patch("subprocess.run", side_effect=half_written),
            pytest.raises(ToolExecutionError, match="Timeout"),
        ):
            tool.transcode_to_mp3(tmp_path / "in", dst)
        assert not dst.exists()

    @patch("tubemp3.tools.ffmpeg.find_tool", return_value=None)
    def test_missing_tool(self, _find, tool, tmp_path):
        with pytest.raises(ToolNotFoundError):
            tool.transcode_to_mp3(tmp_path / "in", tmp_path / "out.mp3")

    @patch("tubemp3.tools.ffmpeg.find_tool", return_value="/gone/ffmpeg")
    def test_vanished_executable(self, _find, tool, tmp_path):
        with (
            patch("subprocess.run", side_effect=FileNotFoundError("/gone/ffmpeg")),
            pytest.raises(ToolNotFoundError),
        ):
            tool.transcode_to_mp3(tmp_path / "in", tmp_path / "out.mp3")


class TestAvailability:
    @patch("tubemp3.tools.ffmpeg.find_tool", return_value=None)
    def test_not_installed(self, _find, tool):
        assert tool.is_available() is False

    @patch("tubemp3.tools.ffmpeg.find_tool", return_value="/usr/bin/ffmpeg")
    def test_runs_version(self, _find, tool):
        with patch("subprocess.run", return_value=completed(0)) as mock_run:
            assert tool.is_available() is True
        assert mock_run.call_args.args[0] == ["/usr/bin/ffmpeg", "-version"]

    @patch("tubemp3.tools.ffmpeg.find_tool", return_value="/usr/bin/ffmpeg")
    def test_broken_binary(self, _find, tool):
        with patch("subprocess.run", side_effect=OSError("exec format error")):
            assert tool.is_available() is False

    def test_configured_path(self, tool, monkeypatch):
        monkeypatch.setenv("TUBEMP3_FFMPEG", "/opt/ffmpeg/bin/ffmpeg")
        clear_config_cache()
        with patch("tubemp3.tools.ffmpeg.find_tool", return_value=None):
            assert tool.get_path() == "/opt/ffmpeg/bin/ffmpeg"

    def test_name(self, tool):
        assert tool.name == "ffmpeg"
        assert isinstance(tool.install_hint, str) and tool.install_hint


def test_require_path_uses_install_hint(tool):
    with patch.object(FFmpegTool, "get_path", MagicMock(return_value=None)):
        with pytest.raises(ToolNotFoundError) as exc_info:
            tool.require_path()
    assert exc_info.value.suggestion == tool.install_hint
