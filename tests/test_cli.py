"""Tests for the tubemp3 command line."""

from pathlib import Path
from unittest.mock import patch

import pytest

from tubemp3.cli import main
from tubemp3.exceptions import InputError, ToolNotFoundError

URL = "https://youtu.be/AAAAAAAAAAA"


class TestMain:
    @patch("tubemp3.cli.download_mp3")
    def test_success_prints_path(self, mock_download, capsys, tmp_path):
        mock_download.return_value = tmp_path / "Test_Song.mp3"
        main([URL, str(tmp_path)])

        out = capsys.readouterr().out
        assert out.strip() == f"MP3 saved to: {tmp_path / 'Test_Song.mp3'}"
        mock_download.assert_called_once_with(
            URL, tmp_path, quiet=False, filename=None, quality=None
        )

    @patch("tubemp3.cli.download_mp3")
    def test_options(self, mock_download, tmp_path):
        mock_download.return_value = tmp_path / "x.mp3"
        main(["-q", "-o", "out", "--filename", "song", "--quality", "low", URL])
        mock_download.assert_called_once_with(
            URL, Path("out"), quiet=True, filename="song", quality="low"
        )

    @patch("tubemp3.cli.download_mp3")
    def test_no_output_dir(self, mock_download, tmp_path):
        mock_download.return_value = tmp_path / "x.mp3"
        main([URL])
        assert mock_download.call_args.args == (URL, None)

    def test_missing_url_exits_1(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "usage:" in err
        assert "Error:" in err

    @patch("tubemp3.cli.download_mp3")
    def test_error_exits_1(self, mock_download, capsys):
        error = InputError("Invalid YouTube URL")
        error.stage = "URL parsing"
        mock_download.side_effect = error
        with pytest.raises(SystemExit) as exc_info:
            main(["https://example.com"])
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "Error: URL parsing failed: Invalid YouTube URL" in err

    @patch("tubemp3.cli.download_mp3")
    def test_hint_printed(self, mock_download, capsys):
        mock_download.side_effect = ToolNotFoundError("ffmpeg", suggestion="Install ffmpeg")
        with pytest.raises(SystemExit):
            main([URL])
        assert "Hint: Install ffmpeg" in capsys.readouterr().err

    def test_invalid_quality_rejected_by_parser(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--quality", "ultra", URL])
        assert exc_info.value.code == 2
