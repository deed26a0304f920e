"""Tests for progress tracking functionality."""

from __future__ import annotations

import io

from tubemp3.tools.progress import (
    ConsoleProgressReporter,
    DownloadProgress,
    create_console_reporter,
)


class TestDownloadProgress:
    def test_from_bytes(self):
        p = DownloadProgress.from_bytes(50, 200)
        assert p.status == "downloading"
        assert p.percent == 25.0
        assert p.total_bytes == 200

    def test_from_bytes_unknown_total(self):
        p = DownloadProgress.from_bytes(50, None)
        assert p.percent is None
        assert p.total_bytes is None

    def test_from_bytes_finished(self):
        p = DownloadProgress.from_bytes(10, 10, filename="/tmp/a.webm", finished=True)
        assert p.status == "finished"
        assert p.filename == "/tmp/a.webm"

    def test_from_json_line_download(self):
        line = (
            '{"status":"downloading","percent":" 42.5%","speed":"1.0MiB/s",'
            '"eta":"00:10","downloaded_bytes":425,"total_bytes":1000,"filename":"x.webm"}'
        )
        p = DownloadProgress.from_json_line(line)
        assert p is not None
        assert p.percent == 42.5
        assert p.speed == "1.0MiB/s"
        assert p.downloaded_bytes == 425
        assert p.total_bytes == 1000

    def test_from_json_line_postprocess(self):
        line = '{"status":"started","postprocessor":"FFmpegExtractAudio","filename":"x.webm"}'
        p = DownloadProgress.from_json_line(line)
        assert p.status == "started"
        assert p.postprocessor == "FFmpegExtractAudio"

    def test_from_json_line_na_postprocessor(self):
        p = DownloadProgress.from_json_line('{"status":"finished","postprocessor":"NA"}')
        assert p.postprocessor is None

    def test_zero_bytes_become_none(self):
        p = DownloadProgress.from_json_line('{"status":"downloading","downloaded_bytes":0}')
        assert p.downloaded_bytes is None

    def test_non_json_lines(self):
        assert DownloadProgress.from_json_line("[download] 50%") is None
        assert DownloadProgress.from_json_line("{broken") is None
        assert DownloadProgress.from_json_line('{"no_status": 1}') is None
        assert DownloadProgress.from_json_line("") is None


class TestConsoleProgressReporter:
    def test_download_bar(self):
        output = io.StringIO()
        reporter = ConsoleProgressReporter(output=output, bar_width=10)
        reporter(DownloadProgress(status="downloading", percent=50.0, speed="1MiB/s", eta="00:05"))
        text = output.getvalue()
        assert "█████░░░░░" in text
        assert " 50.0%" in text
        assert "@ 1MiB/s" in text
        assert "ETA: 00:05" in text
        assert text.endswith("\r")

    def test_bytes_without_percent(self):
        output = io.StringIO()
        ConsoleProgressReporter(output=output)(
            DownloadProgress(status="downloading", downloaded_bytes=2048)
        )
        assert "2.0KiB" in output.getvalue()

    def test_finished_with_filename(self):
        output = io.StringIO()
        reporter = ConsoleProgressReporter(output=output, prefix="[dl] ")
        reporter(DownloadProgress(status="finished", filename="/tmp/dir/song.webm"))
        assert "[dl] Downloaded: song.webm\n" in output.getvalue()

    def test_postprocessor(self):
        output = io.StringIO()
        reporter = ConsoleProgressReporter(output=output)
        reporter(DownloadProgress(status="started", postprocessor="FFmpegExtractAudio"))
        reporter(DownloadProgress(status="finished", postprocessor="FFmpegExtractAudio"))
        text = output.getvalue()
        assert "Extracting audio..." in text
        assert "Extracting audio: done" in text

    def test_na_values_hidden(self):
        output = io.StringIO()
        ConsoleProgressReporter(output=output)(
            DownloadProgress(status="downloading", percent=1.0, speed="N/A", eta="N/A")
        )
        assert "N/A" not in output.getvalue()


class TestCreateConsoleReporter:
    def test_verbose(self):
        assert isinstance(create_console_reporter(), ConsoleProgressReporter)

    def test_quiet(self):
        assert create_console_reporter(verbose=False) is None
